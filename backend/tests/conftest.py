import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from typing import Dict  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from pickup.database import get_session  # noqa: E402
from pickup.main import app  # noqa: E402
from tests.helpers import sign_in  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# One shared in-memory connection; every test gets a fresh schema from the
# session fixture, and the app's get_session is pointed here by the client fixture.
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """get_session replacement bound to the in-memory engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Session on freshly created tables, dropped again after the test"""
    from pickup.models.game import Game  # noqa: F401
    from pickup.models.game_signup import GameSignup  # noqa: F401
    from pickup.models.user import User  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """TestClient whose requests all use the in-memory database

    The override goes in before the client starts, so no request reaches
    the app's own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def organizer_headers(client: TestClient) -> Dict[str, str]:
    return sign_in(client, "Org Anizer")


@pytest.fixture
def player_headers(client: TestClient) -> Dict[str, str]:
    return sign_in(client, "Pat Player")
