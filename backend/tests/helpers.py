from datetime import datetime, timedelta
from typing import Dict, Optional

from fastapi.testclient import TestClient


def future_slot(days: int = 7, hour: int = 14, minute: int = 0) -> datetime:
    """A start time safely in the future, on a fixed wall-clock time"""
    base = datetime.utcnow() + timedelta(days=days)
    return base.replace(hour=hour, minute=minute, second=0, microsecond=0)


def sign_in(client: TestClient, name: str) -> Dict[str, str]:
    """Sign in through the demo provider and return auth headers"""
    response = client.post("/api/auth/signin", json={"provider": "demo", "name": name})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def user_id_for(client: TestClient, headers: Dict[str, str]) -> int:
    response = client.get("/api/auth/session", headers=headers)
    assert response.status_code == 200
    return response.json()["id"]


def create_game(
    client: TestClient,
    headers: Dict[str, str],
    starts_at: datetime,
    duration: int = 90,
    title: str = "Sunday Kickabout",
    max_players: int = 10,
    location: str = "Hackney Marshes",
    extra: Optional[dict] = None,
) -> dict:
    payload = {
        "title": title,
        "date": starts_at.date().isoformat(),
        "time": starts_at.strftime("%H:%M"),
        "duration": duration,
        "location": location,
        "max_players": max_players,
        "price_per_player": 5.0,
        "game_type": "PICKUP",
        "skill_level": "INTERMEDIATE",
        "is_public": True,
    }
    if extra:
        payload.update(extra)
    response = client.post("/api/games", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def join(client: TestClient, game_id: int, headers: Dict[str, str]):
    return client.post(f"/api/games/{game_id}/join", json={}, headers=headers)
