from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickup.models.game import Game
    from pickup.models.game_signup import GameSignup


class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: Optional[str] = None
    password_hash: Optional[str] = Field(default=None)  # bcrypt; null for demo accounts
    auth_provider: str = Field(default="credentials")  # "credentials" | "demo"
    location: Optional[str] = None
    bio: Optional[str] = None
    skill_level: SkillLevel = Field(default=SkillLevel.BEGINNER, sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime(timezone=False))
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_type=DateTime(timezone=False),
        sa_column_kwargs={"onupdate": datetime.utcnow},
    )

    # Relationships
    organized_games: List["Game"] = Relationship(back_populates="organizer")
    signups: List["GameSignup"] = Relationship(back_populates="user")
