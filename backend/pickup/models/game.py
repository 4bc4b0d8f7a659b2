from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, String
from sqlmodel import Column, Field, Relationship, SQLModel

from pickup.models.user import SkillLevel

if TYPE_CHECKING:
    from pickup.models.game_signup import GameSignup
    from pickup.models.user import User

DEFAULT_GAME_DURATION = 90  # minutes
MIN_GAME_DURATION = 30
MAX_GAME_DURATION = 240  # 4 hours

MIN_PLAYERS = 2
MAX_PLAYERS = 50
DEFAULT_MAX_PLAYERS = 22


class GameType(str, Enum):
    CASUAL = "CASUAL"
    COMPETITIVE = "COMPETITIVE"
    PICKUP = "PICKUP"
    TOURNAMENT = "TOURNAMENT"


class GameStatus(str, Enum):
    OPEN = "OPEN"
    FULL = "FULL"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Game(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    date: datetime = Field(index=True, sa_type=DateTime(timezone=False))  # scheduled start, naive UTC
    duration: int = Field(default=DEFAULT_GAME_DURATION)  # minutes
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    max_players: int = Field(default=DEFAULT_MAX_PLAYERS)
    current_players: int = Field(default=0)
    price_per_player: float = Field(default=0.0)
    game_type: GameType = Field(default=GameType.CASUAL, sa_column=Column(String, nullable=False))
    skill_level: SkillLevel = Field(default=SkillLevel.INTERMEDIATE, sa_column=Column(String, nullable=False))
    is_public: bool = Field(default=True)
    organizer_id: int = Field(foreign_key="user.id", index=True)
    status: GameStatus = Field(default=GameStatus.OPEN, sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_type=DateTime(timezone=False),
        sa_column_kwargs={"onupdate": datetime.utcnow},
    )

    # Relationships
    organizer: "User" = Relationship(back_populates="organized_games")
    signups: List["GameSignup"] = Relationship(back_populates="game")

    @property
    def spots_left(self) -> int:
        return max(self.max_players - self.current_players, 0)

    @property
    def is_full(self) -> bool:
        return self.current_players >= self.max_players
