from pickup.models.game import Game, GameStatus, GameType
from pickup.models.game_signup import GameSignup, SignupStatus
from pickup.models.user import SkillLevel, User

__all__ = [
    "User",
    "SkillLevel",
    "Game",
    "GameType",
    "GameStatus",
    "GameSignup",
    "SignupStatus",
]
