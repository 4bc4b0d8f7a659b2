"""
Game API Routes
Browse, create and view games; join and leave them.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import Session, select

from pickup.auth import AuthenticatedUser, get_current_user, get_optional_user
from pickup.database import get_session
from pickup.models.game import (
    MAX_GAME_DURATION,
    MAX_PLAYERS,
    MIN_GAME_DURATION,
    MIN_PLAYERS,
    Game,
    GameStatus,
    GameType,
)
from pickup.models.game_signup import GameSignup, SignupStatus
from pickup.models.user import SkillLevel, User
from pickup.services.signups import (
    SignupError,
    TimeConflictError,
    check_join_eligibility,
    confirmed_games_for_user,
    join_game,
    leave_game,
)
from pickup.utils.game_conflicts import ConflictResult, check_game_conflict

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class GameCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    date: date
    time: time
    duration: int = Field(default=90, ge=MIN_GAME_DURATION, le=MAX_GAME_DURATION)
    location: str
    max_players: int = Field(default=22, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    price_per_player: float = Field(default=0.0, ge=0)
    game_type: GameType = GameType.CASUAL
    skill_level: SkillLevel = SkillLevel.INTERMEDIATE
    is_public: bool = True

    @field_validator("title", "location")
    @classmethod
    def validate_required_text(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} is required")
        return v.strip()


class JoinGameRequest(BaseModel):
    user_id: Optional[int] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None


class ConflictInfo(BaseModel):
    has_conflict: bool
    message: Optional[str] = None
    conflicting_game_id: Optional[int] = None


class GameResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    date: datetime
    duration: int
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    max_players: int
    current_players: int
    price_per_player: float
    game_type: GameType
    skill_level: SkillLevel
    is_public: bool
    organizer_id: int
    status: GameStatus
    spots_left: int
    is_full: bool
    created_at: datetime
    updated_at: datetime


class GameListItem(GameResponse):
    organizer: Optional[UserSummary] = None
    has_joined: bool = False
    is_organizer: bool = False
    conflict: Optional[ConflictInfo] = None  # only for authenticated callers


class SignupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    game_id: int
    status: SignupStatus
    created_at: datetime


class SignupWithUser(SignupResponse):
    user: UserSummary


class GameDetailResponse(GameListItem):
    signups: List[SignupWithUser] = []


class JoinCheckResponse(BaseModel):
    can_join: bool
    reason: Optional[str] = None  # already-joined | game-full | not-open | time-conflict
    message: Optional[str] = None
    conflict: Optional[ConflictInfo] = None


class JoinGameResponse(BaseModel):
    success: bool
    message: str
    signup: SignupResponse


class LeaveGameResponse(BaseModel):
    success: bool
    message: str


# ============================================================================
# Helpers
# ============================================================================


def conflict_info(result: ConflictResult) -> ConflictInfo:
    conflicting_id = getattr(result.conflicting_game, "id", None) if result.has_conflict else None
    return ConflictInfo(has_conflict=result.has_conflict, message=result.message, conflicting_game_id=conflicting_id)


def signups_by_game(session: Session, user_id: int) -> Dict[int, GameSignup]:
    signups = session.exec(select(GameSignup).where(GameSignup.user_id == user_id)).all()
    return {s.game_id: s for s in signups}


def build_game_item(
    game: Game,
    viewer: Optional[AuthenticatedUser] = None,
    joined_games: Optional[List[Game]] = None,
    signed_up_ids: Optional[Dict[int, GameSignup]] = None,
) -> GameListItem:
    """
    Serialize a game for a viewer.

    The conflict pre-check runs against the viewer's confirmed games, minus
    this game, and is skipped for games the viewer already joined.
    """
    item = GameListItem.model_validate(game)

    if viewer is not None:
        item.has_joined = game.id in (signed_up_ids or {})
        item.is_organizer = game.organizer_id == viewer.id
        if not item.has_joined:
            others = [g for g in (joined_games or []) if g.id != game.id]
            item.conflict = conflict_info(check_game_conflict(game, others))

    return item


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _get_game_or_404(session: Session, game_id: int) -> Game:
    game = session.get(Game, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game


# ============================================================================
# Game Endpoints
# ============================================================================


@router.get("/games", response_model=List[GameListItem])
def list_games(
    location: Optional[str] = Query(default=None),
    game_type: Optional[GameType] = Query(default=None),
    skill_level: Optional[SkillLevel] = Query(default=None),
    session: Session = Depends(get_session),
    viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
):
    """
    List open upcoming games, soonest first.

    Filters:
    - location: case-insensitive substring
    - game_type / skill_level: exact match
    """
    query = select(Game).where(Game.status == GameStatus.OPEN, Game.date >= datetime.utcnow())
    if location and location.strip():
        query = query.where(Game.location.ilike(f"%{_escape_like(location.strip())}%", escape="\\"))
    if game_type is not None:
        query = query.where(Game.game_type == game_type)
    if skill_level is not None:
        query = query.where(Game.skill_level == skill_level)

    games = session.exec(query.order_by(Game.date)).all()

    joined_games: List[Game] = []
    signed_up: Dict[int, GameSignup] = {}
    if viewer is not None:
        joined_games = confirmed_games_for_user(session, viewer.id)
        signed_up = signups_by_game(session, viewer.id)

    return [build_game_item(game, viewer, joined_games, signed_up) for game in games]


@router.post("/games", response_model=GameResponse, status_code=201)
def create_game(
    request: GameCreateRequest,
    session: Session = Depends(get_session),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """Create a game organized by the caller"""
    starts_at = datetime.combine(request.date, request.time)
    if starts_at.tzinfo is not None:
        # Stored as naive UTC
        starts_at = starts_at.astimezone(timezone.utc).replace(tzinfo=None)
    if starts_at <= datetime.utcnow():
        raise HTTPException(status_code=400, detail="Game date must be in the future")

    game = Game(
        title=request.title,
        description=request.description,
        date=starts_at,
        duration=request.duration,
        location=request.location,
        max_players=request.max_players,
        price_per_player=request.price_per_player,
        game_type=request.game_type,
        skill_level=request.skill_level,
        is_public=request.is_public,
        organizer_id=user.id,
    )
    try:
        session.add(game)
        session.commit()
        session.refresh(game)
    except Exception as e:
        session.rollback()
        logger.exception("Failed to create game for user %s", user.id)
        raise HTTPException(status_code=500, detail=f"Failed to create game: {str(e)}")

    logger.info("User %s created game %s '%s' at %s", user.id, game.id, game.title, game.date.isoformat())
    return GameResponse.model_validate(game)


@router.get("/games/{game_id}", response_model=GameDetailResponse)
def get_game(
    game_id: int,
    session: Session = Depends(get_session),
    viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
):
    """Get a game with its organizer and confirmed players"""
    game = _get_game_or_404(session, game_id)

    joined_games: List[Game] = []
    signed_up: Dict[int, GameSignup] = {}
    if viewer is not None:
        joined_games = confirmed_games_for_user(session, viewer.id)
        signed_up = signups_by_game(session, viewer.id)

    item = build_game_item(game, viewer, joined_games, signed_up)

    signups = session.exec(
        select(GameSignup)
        .where(GameSignup.game_id == game_id, GameSignup.status == SignupStatus.CONFIRMED)
        .order_by(GameSignup.created_at, GameSignup.id)
    ).all()
    detail = GameDetailResponse(**item.model_dump())
    detail.signups = [
        SignupWithUser(
            id=s.id,
            user_id=s.user_id,
            game_id=s.game_id,
            status=s.status,
            created_at=s.created_at,
            user=UserSummary.model_validate(session.get(User, s.user_id)),
        )
        for s in signups
    ]
    return detail


@router.get("/games/{game_id}/join-check", response_model=JoinCheckResponse)
def join_check(
    game_id: int,
    session: Session = Depends(get_session),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Pre-check whether the caller can join a game.

    Runs the same checks as the join endpoint without writing anything.
    """
    game = _get_game_or_404(session, game_id)

    error = check_join_eligibility(session, game, user.id)
    if error is None:
        return JoinCheckResponse(can_join=True, conflict=ConflictInfo(has_conflict=False))

    conflict = conflict_info(error.conflict) if isinstance(error, TimeConflictError) else None
    return JoinCheckResponse(can_join=False, reason=error.reason, message=error.message, conflict=conflict)


@router.post("/games/{game_id}/join", response_model=JoinGameResponse)
def join(
    game_id: int,
    request: Optional[JoinGameRequest] = None,
    session: Session = Depends(get_session),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """Join a game as the caller"""
    if request is not None and request.user_id is not None and request.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")

    try:
        signup = join_game(session, game_id, user.id)
    except SignupError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return JoinGameResponse(
        success=True,
        message="Successfully joined the game",
        signup=SignupResponse.model_validate(signup),
    )


@router.post("/games/{game_id}/leave", response_model=LeaveGameResponse)
def leave(
    game_id: int,
    session: Session = Depends(get_session),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """Leave a game the caller has joined"""
    try:
        leave_game(session, game_id, user.id)
    except SignupError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return LeaveGameResponse(success=True, message="Successfully left the game")
