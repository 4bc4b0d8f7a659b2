"""
Dashboard API Routes
The caller's organized and joined games.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from pickup.auth import AuthenticatedUser, get_current_user
from pickup.database import get_session
from pickup.models.game import Game
from pickup.models.game_signup import GameSignup, SignupStatus
from pickup.models.user import SkillLevel, User
from pickup.routes.games import GameListItem, build_game_item, signups_by_game
from pickup.services.signups import confirmed_games_for_user

router = APIRouter()


class DashboardUser(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skill_level: SkillLevel
    created_at: datetime


class JoinedGame(BaseModel):
    signup_id: int
    status: SignupStatus
    joined_at: datetime
    game: GameListItem


class DashboardResponse(BaseModel):
    user: DashboardUser
    organized_games: List[GameListItem]
    joined_games: List[JoinedGame]
    upcoming_organized_count: int
    upcoming_joined_count: int


def _organized_games(session: Session, viewer: AuthenticatedUser) -> List[GameListItem]:
    games = session.exec(select(Game).where(Game.organizer_id == viewer.id).order_by(Game.date)).all()
    joined = confirmed_games_for_user(session, viewer.id)
    signed_up = signups_by_game(session, viewer.id)
    return [build_game_item(game, viewer, joined, signed_up) for game in games]


def _joined_games(session: Session, viewer: AuthenticatedUser) -> List[JoinedGame]:
    rows = session.exec(
        select(GameSignup, Game)
        .join(Game, GameSignup.game_id == Game.id)
        .where(GameSignup.user_id == viewer.id)
        .order_by(Game.date)
    ).all()

    result = []
    for signup, game in rows:
        item = build_game_item(game, viewer, [], {game.id: signup})
        result.append(JoinedGame(signup_id=signup.id, status=signup.status, joined_at=signup.created_at, game=item))
    return result


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(session: Session = Depends(get_session), viewer: AuthenticatedUser = Depends(get_current_user)):
    """Summary of the caller's games"""
    user = session.get(User, viewer.id)
    organized = _organized_games(session, viewer)
    joined = _joined_games(session, viewer)

    now = datetime.utcnow()
    return DashboardResponse(
        user=DashboardUser.model_validate(user, from_attributes=True),
        organized_games=organized,
        joined_games=joined,
        upcoming_organized_count=sum(1 for g in organized if g.date > now),
        upcoming_joined_count=sum(1 for j in joined if j.game.date > now),
    )


@router.get("/dashboard/organized", response_model=List[GameListItem])
def get_organized_games(
    session: Session = Depends(get_session), viewer: AuthenticatedUser = Depends(get_current_user)
):
    """Games organized by the caller, soonest first"""
    return _organized_games(session, viewer)


@router.get("/dashboard/joined", response_model=List[JoinedGame])
def get_joined_games(session: Session = Depends(get_session), viewer: AuthenticatedUser = Depends(get_current_user)):
    """Games the caller has signed up for, soonest first"""
    return _joined_games(session, viewer)
