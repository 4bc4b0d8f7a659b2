"""
Game signups: join and leave.

Joining runs every eligibility check (open, not full, not already joined, no
time conflict) before creating a CONFIRMED signup; the signup insert and the
current_players increment commit together. Leaving deletes the signup and
decrements the counter in the same way.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from pickup.models.game import Game, GameStatus
from pickup.models.game_signup import GameSignup, SignupStatus
from pickup.utils.game_conflicts import ConflictResult, check_game_conflict, format_conflict_message

logger = logging.getLogger(__name__)


class SignupError(Exception):
    """Raised when a join or leave cannot proceed"""

    status_code = 400
    reason: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GameNotFoundError(SignupError):
    status_code = 404

    def __init__(self):
        super().__init__("Game not found")


class GameNotOpenError(SignupError):
    reason = "not-open"

    def __init__(self):
        super().__init__("Game is not available for joining")


class GameFullError(SignupError):
    reason = "game-full"

    def __init__(self):
        super().__init__("Game is full")


class AlreadyJoinedError(SignupError):
    reason = "already-joined"

    def __init__(self):
        super().__init__("You have already joined this game")


class NotSignedUpError(SignupError):
    def __init__(self):
        super().__init__("You are not signed up for this game")


class TimeConflictError(SignupError):
    reason = "time-conflict"

    def __init__(self, conflict: ConflictResult):
        super().__init__(format_conflict_message(conflict))
        self.conflict = conflict


def get_signup(session: Session, user_id: int, game_id: int) -> Optional[GameSignup]:
    return session.exec(
        select(GameSignup).where(GameSignup.user_id == user_id, GameSignup.game_id == game_id)
    ).first()


def confirmed_games_for_user(session: Session, user_id: int, exclude_game_id: Optional[int] = None) -> List[Game]:
    """
    Games the user holds a CONFIRMED signup for, in signup order.

    exclude_game_id drops the game being evaluated so a game never conflicts
    with itself.
    """
    query = (
        select(Game)
        .join(GameSignup, GameSignup.game_id == Game.id)
        .where(GameSignup.user_id == user_id, GameSignup.status == SignupStatus.CONFIRMED)
        .order_by(GameSignup.id)
    )
    if exclude_game_id is not None:
        query = query.where(Game.id != exclude_game_id)
    return list(session.exec(query).all())


def check_join_eligibility(session: Session, game: Game, user_id: int) -> Optional[SignupError]:
    """Return the first reason the user cannot join the game, or None."""
    if game.status != GameStatus.OPEN:
        return GameNotOpenError()
    if game.is_full:
        return GameFullError()
    if get_signup(session, user_id, game.id):
        return AlreadyJoinedError()

    conflict = check_game_conflict(game, confirmed_games_for_user(session, user_id, exclude_game_id=game.id))
    if conflict.has_conflict:
        return TimeConflictError(conflict)
    return None


def join_game(session: Session, game_id: int, user_id: int) -> GameSignup:
    """
    Sign a user up for a game.

    Raises:
        SignupError: when the game is missing, closed, full, already joined
            or conflicts with another confirmed game
    """
    game = session.get(Game, game_id)
    if not game:
        raise GameNotFoundError()

    error = check_join_eligibility(session, game, user_id)
    if error is not None:
        logger.info("User %s cannot join game %s: %s", user_id, game_id, error.message)
        raise error

    signup = GameSignup(user_id=user_id, game_id=game_id, status=SignupStatus.CONFIRMED)
    game.current_players += 1
    try:
        session.add(signup)
        session.add(game)
        session.commit()
    except IntegrityError:
        # Lost a race against a concurrent join by the same user
        session.rollback()
        raise AlreadyJoinedError()

    session.refresh(signup)
    logger.info("User %s joined game %s (%d/%d)", user_id, game_id, game.current_players, game.max_players)
    return signup


def leave_game(session: Session, game_id: int, user_id: int) -> Game:
    """
    Remove a user's signup from a game.

    Raises:
        SignupError: when the game is missing or the user is not signed up
    """
    game = session.get(Game, game_id)
    if not game:
        raise GameNotFoundError()

    signup = get_signup(session, user_id, game_id)
    if not signup:
        raise NotSignedUpError()

    session.delete(signup)
    game.current_players = max(game.current_players - 1, 0)
    session.add(game)
    session.commit()
    session.refresh(game)

    logger.info("User %s left game %s (%d/%d)", user_id, game_id, game.current_players, game.max_players)
    return game
