"""Tests for game listing, creation and detail endpoints"""

from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session

from pickup.models.game import Game, GameStatus
from pickup.models.game_signup import GameSignup
from pickup.models.user import User
from tests.helpers import create_game, future_slot, join, user_id_for


def test_create_game(client: TestClient, organizer_headers):
    starts_at = future_slot(days=3, hour=18)
    game = create_game(client, organizer_headers, starts_at, duration=120, title="Thursday Five-a-side")

    assert game["title"] == "Thursday Five-a-side"
    assert game["date"].startswith(starts_at.strftime("%Y-%m-%dT18:00"))
    assert game["duration"] == 120
    assert game["current_players"] == 0
    assert game["spots_left"] == 10
    assert game["is_full"] is False
    assert game["status"] == "OPEN"
    assert game["organizer_id"] == user_id_for(client, organizer_headers)


def test_create_game_requires_auth(client: TestClient):
    starts_at = future_slot()
    response = client.post(
        "/api/games",
        json={
            "title": "No Auth",
            "date": starts_at.date().isoformat(),
            "time": "14:00",
            "location": "Park",
        },
    )
    assert response.status_code == 401


def test_create_game_in_past_is_rejected(client: TestClient, organizer_headers):
    yesterday = datetime.utcnow() - timedelta(days=1)
    response = client.post(
        "/api/games",
        json={"title": "Too Late", "date": yesterday.date().isoformat(), "time": "10:00", "location": "Park"},
        headers=organizer_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Game date must be in the future"


def test_create_game_validation(client: TestClient, organizer_headers):
    starts_at = future_slot()
    base = {"title": "Valid", "date": starts_at.date().isoformat(), "time": "14:00", "location": "Park"}

    for override in (
        {"title": "   "},
        {"location": ""},
        {"duration": 20},
        {"duration": 241},
        {"max_players": 1},
        {"max_players": 51},
        {"price_per_player": -1},
        {"game_type": "ROLLERBALL"},
    ):
        response = client.post("/api/games", json={**base, **override}, headers=organizer_headers)
        assert response.status_code == 422, override


def test_create_game_with_utc_offset_is_stored_as_naive_utc(client: TestClient, organizer_headers):
    starts_at = future_slot(days=3)
    day = starts_at.date()
    base = {"title": "Offset", "date": day.isoformat(), "location": "Park"}

    zulu = client.post("/api/games", json={**base, "time": "14:00Z"}, headers=organizer_headers)
    assert zulu.status_code == 201, zulu.text
    assert zulu.json()["date"].startswith(f"{day.isoformat()}T14:00")

    # 01:30 at +02:00 is 23:30 UTC the day before
    shifted = client.post("/api/games", json={**base, "time": "01:30+02:00"}, headers=organizer_headers)
    assert shifted.status_code == 201, shifted.text
    assert shifted.json()["date"].startswith(f"{(day - timedelta(days=1)).isoformat()}T23:30")


def test_list_games_only_open_upcoming_in_date_order(client: TestClient, session: Session, organizer_headers):
    later = create_game(client, organizer_headers, future_slot(days=5), title="Later")
    sooner = create_game(client, organizer_headers, future_slot(days=2), title="Sooner")
    cancelled = create_game(client, organizer_headers, future_slot(days=3), title="Cancelled")

    row = session.get(Game, cancelled["id"])
    row.status = GameStatus.CANCELLED
    session.add(row)
    session.add(
        Game(
            title="Last Week",
            date=datetime.utcnow() - timedelta(days=7),
            duration=60,
            location="Park",
            organizer_id=user_id_for(client, organizer_headers),
        )
    )
    session.commit()

    response = client.get("/api/games")
    assert response.status_code == 200
    assert [g["id"] for g in response.json()] == [sooner["id"], later["id"]]


def test_list_games_filters(client: TestClient, organizer_headers):
    create_game(client, organizer_headers, future_slot(days=2), title="Marsh", location="Hackney Marshes")
    create_game(
        client,
        organizer_headers,
        future_slot(days=3),
        title="Common",
        location="Clapham Common",
        extra={"game_type": "COMPETITIVE", "skill_level": "EXPERT"},
    )

    by_location = client.get("/api/games", params={"location": "hackney"}).json()
    assert [g["title"] for g in by_location] == ["Marsh"]

    by_type = client.get("/api/games", params={"game_type": "COMPETITIVE"}).json()
    assert [g["title"] for g in by_type] == ["Common"]

    by_skill = client.get("/api/games", params={"skill_level": "INTERMEDIATE"}).json()
    assert [g["title"] for g in by_skill] == ["Marsh"]

    assert client.get("/api/games", params={"location": "wembley"}).json() == []


def test_location_filter_treats_wildcards_literally(client: TestClient, organizer_headers):
    create_game(client, organizer_headers, future_slot(days=2), title="Underscore", location="Court_1")
    create_game(client, organizer_headers, future_slot(days=3), title="Digits", location="Court21")
    create_game(client, organizer_headers, future_slot(days=4), title="Percent", location="100% Astro")

    underscore = client.get("/api/games", params={"location": "t_1"}).json()
    assert [g["title"] for g in underscore] == ["Underscore"]

    percent = client.get("/api/games", params={"location": "%"}).json()
    assert [g["title"] for g in percent] == ["Percent"]


def test_datetimes_are_stored_naive(client: TestClient, session: Session, organizer_headers):
    for model in (Game, GameSignup, User):
        for column in ("created_at", "updated_at"):
            assert model.__table__.c[column].type.timezone is False
    assert Game.__table__.c.date.type.timezone is False

    starts_at = future_slot(days=2, hour=9)
    created = create_game(client, organizer_headers, starts_at)

    stored = session.get(Game, created["id"])
    assert stored.date == starts_at
    assert stored.date.tzinfo is None


def test_anonymous_listing_has_no_viewer_fields(client: TestClient, organizer_headers):
    create_game(client, organizer_headers, future_slot())

    game = client.get("/api/games").json()[0]
    assert game["has_joined"] is False
    assert game["is_organizer"] is False
    assert game["conflict"] is None
    assert game["organizer"]["name"] == "Org Anizer"


def test_listing_flags_time_conflicts_for_viewer(client: TestClient, organizer_headers, player_headers):
    starts_at = future_slot(days=4, hour=14)
    joined = create_game(client, organizer_headers, starts_at, duration=90, title="Joined")
    clashing = create_game(client, organizer_headers, starts_at + timedelta(minutes=119), title="Clashing")
    clear = create_game(client, organizer_headers, starts_at + timedelta(minutes=120), title="Clear")
    assert join(client, joined["id"], player_headers).status_code == 200

    games = {g["id"]: g for g in client.get("/api/games", headers=player_headers).json()}

    assert games[joined["id"]]["has_joined"] is True
    assert games[joined["id"]]["conflict"] is None

    assert games[clashing["id"]]["conflict"]["has_conflict"] is True
    assert games[clashing["id"]]["conflict"]["conflicting_game_id"] == joined["id"]
    assert '"Joined"' in games[clashing["id"]]["conflict"]["message"]

    assert games[clear["id"]]["conflict"] == {"has_conflict": False, "message": None, "conflicting_game_id": None}


def test_listing_marks_organizer(client: TestClient, organizer_headers, player_headers):
    create_game(client, organizer_headers, future_slot())

    assert client.get("/api/games", headers=organizer_headers).json()[0]["is_organizer"] is True
    assert client.get("/api/games", headers=player_headers).json()[0]["is_organizer"] is False


def test_get_game_detail(client: TestClient, organizer_headers, player_headers):
    game = create_game(client, organizer_headers, future_slot(), max_players=4)
    join(client, game["id"], player_headers)

    response = client.get(f"/api/games/{game['id']}", headers=player_headers)
    assert response.status_code == 200
    detail = response.json()
    assert detail["current_players"] == 1
    assert detail["spots_left"] == 3
    assert detail["has_joined"] is True
    assert [s["user"]["name"] for s in detail["signups"]] == ["Pat Player"]
    assert detail["signups"][0]["status"] == "CONFIRMED"


def test_get_missing_game(client: TestClient):
    response = client.get("/api/games/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Game not found"


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
