from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickup.models.game import Game
    from pickup.models.user import User


class SignupStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class GameSignup(SQLModel, table=True):
    # One signup per user per game
    __table_args__ = (SAUniqueConstraint("user_id", "game_id", name="uq_user_game_signup"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    game_id: int = Field(foreign_key="game.id", index=True)
    status: SignupStatus = Field(default=SignupStatus.CONFIRMED, sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_type=DateTime(timezone=False),
        sa_column_kwargs={"onupdate": datetime.utcnow},
    )

    # Relationships
    user: "User" = Relationship(back_populates="signups")
    game: "Game" = Relationship(back_populates="signups")
