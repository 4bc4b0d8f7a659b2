"""
Game Time-Conflict Detection

A player may not hold two games whose schedules come closer than the buffer:
- Each game occupies [start, start + duration)
- The target is widened by BUFFER_MINUTES on each side and compared with
  each candidate's own interval, so the true gap must be at least the buffer
- Intervals that only touch at an endpoint do not conflict
- Start times are naive UTC; timezone-aware starts are rejected

The same check gates POST /games/{id}/join and annotates listings and the
join pre-check, so every caller goes through check_conflict().
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence, Tuple

BUFFER_MINUTES = 30

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class InvalidScheduleError(ValueError):
    """Raised when a schedule cannot be projected into an interval"""

    pass


@dataclass(frozen=True)
class ScheduledInterval:
    start: datetime
    duration_minutes: int
    label: str = ""
    game: Any = None  # source row, returned as conflicting_game

    def __post_init__(self):
        if not isinstance(self.start, datetime):
            raise InvalidScheduleError(f"start must be a datetime, got {type(self.start).__name__}")
        if self.start.tzinfo is not None:
            raise InvalidScheduleError("start must be a naive UTC datetime")
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise InvalidScheduleError("duration_minutes must be an integer")
        if self.duration_minutes < 0:
            raise InvalidScheduleError(f"duration_minutes must be >= 0, got {self.duration_minutes}")

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def buffered(self, buffer: timedelta) -> Tuple[datetime, datetime]:
        return self.start - buffer, self.end + buffer


@dataclass(frozen=True)
class ConflictResult:
    has_conflict: bool
    conflicting_game: Any = None
    message: Optional[str] = None


NO_CONFLICT = ConflictResult(has_conflict=False)


def _describe_start(start: datetime) -> str:
    return f"{start.strftime(DATE_FORMAT)} at {start.strftime(TIME_FORMAT)}"


def check_conflict(target: ScheduledInterval, candidates: Sequence[ScheduledInterval]) -> ConflictResult:
    """
    Check whether target comes within BUFFER_MINUTES of any candidate.

    Candidates are scanned in input order and the first overlapping one is
    reported. No candidate is skipped, so callers must leave out the signup
    for the target game itself.

    Returns:
        ConflictResult; conflicting_game is the candidate's `game` when set,
        otherwise the candidate interval itself.
    """
    buffer = timedelta(minutes=BUFFER_MINUTES)
    target_start, target_end = target.buffered(buffer)

    for candidate in candidates:
        if target_start < candidate.end and target_end > candidate.start:
            return ConflictResult(
                has_conflict=True,
                conflicting_game=candidate.game if candidate.game is not None else candidate,
                message=f'Conflicts with "{candidate.label}" on {_describe_start(candidate.start)}',
            )

    return NO_CONFLICT


def interval_for_game(game: Any) -> ScheduledInterval:
    """Project a Game row (anything with date, duration and title) into a ScheduledInterval."""
    return ScheduledInterval(start=game.date, duration_minutes=game.duration, label=game.title, game=game)


def check_game_conflict(target_game: Any, joined_games: Sequence[Any]) -> ConflictResult:
    """check_conflict() over Game rows; conflicting_game is the Game row."""
    return check_conflict(interval_for_game(target_game), [interval_for_game(g) for g in joined_games])


def format_conflict_message(result: ConflictResult) -> str:
    """Long-form message shown when a join is rejected; empty when there is no conflict."""
    if not result.has_conflict or result.conflicting_game is None:
        return ""

    conflicting = result.conflicting_game
    if isinstance(conflicting, ScheduledInterval):
        title, start = conflicting.label, conflicting.start
    else:
        title, start = conflicting.title, conflicting.date

    return (
        f'Time conflict with "{title}" ({_describe_start(start)}). '
        f"Games must have at least {BUFFER_MINUTES} minutes between them."
    )
