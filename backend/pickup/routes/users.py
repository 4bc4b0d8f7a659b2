"""
User Profile API Routes
Public profile with recent game history.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session, func, select

from pickup.database import get_session
from pickup.models.game import Game, GameType
from pickup.models.game_signup import GameSignup, SignupStatus
from pickup.models.user import SkillLevel, User
from pickup.routes.games import UserSummary

router = APIRouter()

RECENT_GAMES_LIMIT = 10
RECENT_ORGANIZED_LIMIT = 5


class ProfileGame(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    date: datetime
    duration: int
    location: str
    game_type: GameType
    skill_level: SkillLevel
    current_players: int
    max_players: int


class PlayedGame(ProfileGame):
    organizer: Optional[UserSummary] = None


class ProfileStats(BaseModel):
    total_games_played: int
    total_games_organized: int
    upcoming_games: int


class UserProfileResponse(BaseModel):
    id: int
    name: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skill_level: SkillLevel
    created_at: datetime
    recent_games: List[PlayedGame]
    organized_games: List[ProfileGame]
    stats: ProfileStats


@router.get("/users/{user_id}", response_model=UserProfileResponse)
def get_user_profile(user_id: int, session: Session = Depends(get_session)):
    """
    Get a user's public profile.

    Email is never exposed. History lists are most recent first:
    - recent_games: last 10 confirmed games played
    - organized_games: last 5 games organized
    """
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    confirmed = (GameSignup.user_id == user_id) & (GameSignup.status == SignupStatus.CONFIRMED)

    played = session.exec(
        select(Game)
        .join(GameSignup, GameSignup.game_id == Game.id)
        .where(confirmed)
        .order_by(Game.date.desc())
        .limit(RECENT_GAMES_LIMIT)
    ).all()
    organized = session.exec(
        select(Game).where(Game.organizer_id == user_id).order_by(Game.date.desc()).limit(RECENT_ORGANIZED_LIMIT)
    ).all()

    total_played = session.exec(select(func.count(GameSignup.id)).where(confirmed)).one()
    total_organized = session.exec(select(func.count(Game.id)).where(Game.organizer_id == user_id)).one()
    upcoming = session.exec(
        select(func.count(GameSignup.id))
        .select_from(GameSignup)
        .join(Game, GameSignup.game_id == Game.id)
        .where(confirmed, Game.date > datetime.utcnow())
    ).one()

    return UserProfileResponse(
        id=user.id,
        name=user.name,
        location=user.location,
        bio=user.bio,
        skill_level=user.skill_level,
        created_at=user.created_at,
        recent_games=[PlayedGame.model_validate(g) for g in played],
        organized_games=[ProfileGame.model_validate(g) for g in organized],
        stats=ProfileStats(
            total_games_played=total_played,
            total_games_organized=total_organized,
            upcoming_games=upcoming,
        ),
    )
