# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from pickup.models.game import Game  # noqa: F401
from pickup.models.game_signup import GameSignup  # noqa: F401
from pickup.models.user import User  # noqa: F401
