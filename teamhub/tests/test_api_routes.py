"""
HTTP-level tests for the API routes.

Requests go through the real app (exception handlers, auth dependencies,
validation) backed by a per-test SQLite database.
"""

import datetime

import httpx
import pytest
from unittest.mock import AsyncMock, patch
from sqlalchemy.exc import SQLAlchemyError

from teamhub.api.routes import API_RATE_LIMIT
from teamhub.services import data_service
from teamhub.tests.conftest import auth_headers

EVENT_BODY = {
    "type": "match",
    "title": "League match",
    "date": "2030-05-10",
    "time": "10:00",
    "location": "Away ground",
    "opponent": "FC Rivals",
}


async def _create_event(client, trainer, **overrides):
    body = dict(EVENT_BODY, **overrides)
    response = await client.post("/api/events", json=body, headers=auth_headers(trainer))
    assert response.status_code == 200, response.text
    return response.json()["id"]


async def _create_player(client, trainer, name="Mia Keller", number=10):
    response = await client.post(
        "/api/players", json={"name": name, "number": number}, headers=auth_headers(trainer)
    )
    assert response.status_code == 200, response.text
    return response.json()["id"]


# ============================================================================
# Health & root
# ============================================================================


@pytest.mark.asyncio
async def test_health_is_public(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["timestamp"]


@pytest.mark.asyncio
async def test_root_serves_html(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]


@pytest.fixture
def live_limiter(monkeypatch):
    """The shared limiter switched on, with empty counters before and after."""
    from teamhub.api.routes import limiter

    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


@pytest.mark.asyncio
async def test_rate_limit_applies_to_api_but_not_root(client, live_limiter):
    allowed = int(API_RATE_LIMIT.split("/")[0])

    for _ in range(allowed + 5):
        response = await client.get("/")
        assert response.status_code == 200

    for _ in range(allowed):
        response = await client.get("/api/health")
        assert response.status_code == 200

    response = await client.get("/api/health")
    assert response.status_code == 429


# ============================================================================
# Auth
# ============================================================================


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_register_then_login(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"email": "coach@example.com", "password": "secret123", "name": "Coach", "role": "trainer"},
        )
        assert response.status_code == 200
        registered = response.json()
        assert registered["token"]
        assert registered["user"]["role"] == "trainer"

        response = await client.post(
            "/api/auth/login", json={"email": "coach@example.com", "password": "secret123"}
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered["user"]["id"]

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, trainer):
        response = await client.post(
            "/api/auth/register",
            json={"email": trainer["email"], "password": "secret123", "name": "Dup", "role": "parent"},
        )
        assert response.status_code == 409
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_register_unknown_player_is_400(self, client):
        response = await client.post(
            "/api/auth/register",
            json={
                "email": "fresh@example.com",
                "password": "secret123",
                "name": "Fresh",
                "role": "parent",
                "player_id": 999,
            },
        )
        assert response.status_code == 400
        assert response.json() == {"errors": [{"field": "player_id", "message": "Player not found"}]}

    @pytest.mark.asyncio
    async def test_register_field_errors(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"email": "bad", "password": "1", "name": "X", "role": "coach"},
        )
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert fields == {"email", "password", "role"}

    @pytest.mark.asyncio
    async def test_register_missing_field(self, client):
        response = await client.post("/api/auth/register", json={"password": "secret123"})
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"email", "name", "role"} <= fields

    @pytest.mark.asyncio
    async def test_login_errors_identical(self, client, parent):
        wrong_password = await client.post(
            "/api/auth/login", json={"email": parent["email"], "password": "nope"}
        )
        unknown_email = await client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"}
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()

    @pytest.mark.asyncio
    async def test_me(self, client, parent):
        response = await client.get("/api/auth/me", headers=auth_headers(parent))
        assert response.status_code == 200
        assert response.json()["email"] == parent["email"]
        assert "password_hash" not in response.json()


# ============================================================================
# Authorization
# ============================================================================


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client):
        response = await client.get("/api/events")
        assert response.status_code == 401
        assert response.json() == {"error": "No token provided"}

    @pytest.mark.asyncio
    async def test_bad_token_is_403(self, client):
        response = await client.get("/api/events", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 403
        assert response.json() == {"error": "Invalid token"}

    @pytest.mark.asyncio
    async def test_parent_cannot_create_event(self, client, parent):
        response = await client.post("/api/events", json=EVENT_BODY, headers=auth_headers(parent))
        assert response.status_code == 403

        response = await client.get("/api/events", headers=auth_headers(parent))
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_parent_cannot_delete_event(self, client, trainer, parent):
        event_id = await _create_event(client, trainer)

        response = await client.delete(f"/api/events/{event_id}", headers=auth_headers(parent))
        assert response.status_code == 403

        response = await client.get(f"/api/events/{event_id}", headers=auth_headers(parent))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_player_cannot_add_roster_entry(self, client, player_user):
        response = await client.post(
            "/api/players", json={"name": "Sneaky", "number": 5}, headers=auth_headers(player_user)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_parent_cannot_update_event(self, client, trainer, parent):
        event_id = await _create_event(client, trainer)
        before = (await client.get(f"/api/events/{event_id}", headers=auth_headers(trainer))).json()

        response = await client.put(
            f"/api/events/{event_id}",
            json={"location": "Parking lot", "status": "cancelled"},
            headers=auth_headers(parent),
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Trainer access required"}

        after = (await client.get(f"/api/events/{event_id}", headers=auth_headers(trainer))).json()
        assert after == before

    @pytest.mark.asyncio
    async def test_player_cannot_publish_news(self, client, player_user):
        response = await client.post(
            "/api/news",
            json={"title": "No training ever", "content": "...", "published": True},
            headers=auth_headers(player_user),
        )
        assert response.status_code == 403

        response = await client.get("/api/news")
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_parent_cannot_update_player(self, client, trainer, parent):
        player_id = await _create_player(client, trainer)

        response = await client.put(
            f"/api/players/{player_id}", json={"number": 99}, headers=auth_headers(parent)
        )
        assert response.status_code == 403

        response = await client.get("/api/players", headers=auth_headers(trainer))
        assert [p["number"] for p in response.json()] == [10]


# ============================================================================
# Events & confirmations
# ============================================================================


class TestEventRoutes:
    @pytest.mark.asyncio
    async def test_event_lifecycle(self, client, trainer):
        event_id = await _create_event(client, trainer)

        response = await client.put(
            f"/api/events/{event_id}",
            json={"location": "Home ground", "status": "completed"},
            headers=auth_headers(trainer),
        )
        assert response.status_code == 200

        response = await client.get(f"/api/events/{event_id}", headers=auth_headers(trainer))
        event = response.json()
        assert event["location"] == "Home ground"
        assert event["status"] == "completed"
        assert event["opponent"] == "FC Rivals"
        assert event["time"] == "10:00"

        response = await client.delete(f"/api/events/{event_id}", headers=auth_headers(trainer))
        assert response.status_code == 200

        response = await client.get(f"/api/events/{event_id}", headers=auth_headers(trainer))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_field(self, client, trainer):
        event_id = await _create_event(client, trainer)

        response = await client.put(
            f"/api/events/{event_id}",
            json={"title": "Renamed", "created_by": 999},
            headers=auth_headers(trainer),
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "created_by"

        response = await client.get(f"/api/events/{event_id}", headers=auth_headers(trainer))
        assert response.json()["title"] == EVENT_BODY["title"]

    @pytest.mark.asyncio
    async def test_update_with_empty_body(self, client, trainer):
        event_id = await _create_event(client, trainer)
        response = await client.put(f"/api/events/{event_id}", json={}, headers=auth_headers(trainer))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_event_bad_time(self, client, trainer):
        response = await client.post(
            "/api/events", json=dict(EVENT_BODY, time="25:99"), headers=auth_headers(trainer)
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "time"

    @pytest.mark.asyncio
    async def test_confirmation_upsert(self, client, trainer, parent):
        event_id = await _create_event(client, trainer)
        player_id = await _create_player(client, trainer)

        for status in ("confirmed", "declined"):
            response = await client.post(
                f"/api/events/{event_id}/confirmation",
                json={"player_id": player_id, "status": status},
                headers=auth_headers(parent),
            )
            assert response.status_code == 200
            assert response.json() == {"message": "Status updated"}

        response = await client.get(
            f"/api/events/{event_id}/confirmations", headers=auth_headers(parent)
        )
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["status"] == "declined"
        assert rows[0]["confirmed_by"] == parent["name"]

        response = await client.get("/api/events", headers=auth_headers(parent))
        event = response.json()[0]
        assert event["confirmed_count"] == 0
        assert event["declined_count"] == 1

    @pytest.mark.asyncio
    async def test_confirmation_invalid_status(self, client, trainer, parent):
        event_id = await _create_event(client, trainer)
        player_id = await _create_player(client, trainer)

        response = await client.post(
            f"/api/events/{event_id}/confirmation",
            json={"player_id": player_id, "status": "probably"},
            headers=auth_headers(parent),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_confirmation_unknown_event(self, client, trainer, parent):
        player_id = await _create_player(client, trainer)
        response = await client.post(
            "/api/events/999/confirmation",
            json={"player_id": player_id, "status": "confirmed"},
            headers=auth_headers(parent),
        )
        assert response.status_code == 404


# ============================================================================
# Players, messages, news, stats
# ============================================================================


class TestRosterRoutes:
    @pytest.mark.asyncio
    async def test_jersey_number_range(self, client, trainer):
        response = await client.post(
            "/api/players", json={"name": "Hundred", "number": 100}, headers=auth_headers(trainer)
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "number"

    @pytest.mark.asyncio
    async def test_retire_player(self, client, trainer, parent):
        player_id = await _create_player(client, trainer)

        response = await client.put(
            f"/api/players/{player_id}", json={"status": "inactive"}, headers=auth_headers(trainer)
        )
        assert response.status_code == 200

        response = await client.get("/api/players", headers=auth_headers(parent))
        assert response.json() == []

    @pytest.mark.asyncio
    @patch("teamhub.services.data_service.list_players", new_callable=AsyncMock)
    async def test_store_failure_is_generic_500(self, mock_list, client, parent):
        mock_list.side_effect = SQLAlchemyError("connection refused on 10.0.0.5")

        response = await client.get("/api/players", headers=auth_headers(parent))
        assert response.status_code == 500
        assert "10.0.0.5" not in response.text
        assert response.json() == {"error": "Failed to load players"}

    @pytest.mark.asyncio
    @patch("teamhub.services.data_service.list_players", new_callable=AsyncMock)
    async def test_unexpected_failure_is_internal_server_error(self, mock_list, app, parent):
        mock_list.side_effect = RuntimeError("pool exhausted for teamhub:s3cret")

        # The error middleware re-raises after responding; keep the response
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as raw_client:
            response = await raw_client.get("/api/players", headers=auth_headers(parent))

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "s3cret" not in response.text


class TestMessageRoutes:
    @pytest.mark.asyncio
    async def test_parent_sees_parent_and_all_messages(self, client, trainer, parent):
        for subject, recipient in (("All", "all"), ("Parents", "parents"), ("Players", "players")):
            response = await client.post(
                "/api/messages",
                json={"subject": subject, "content": "...", "recipient_type": recipient},
                headers=auth_headers(trainer),
            )
            assert response.status_code == 200

        response = await client.get("/api/messages", headers=auth_headers(parent))
        assert {m["subject"] for m in response.json()} == {"All", "Parents"}

    @pytest.mark.asyncio
    async def test_parent_cannot_send(self, client, parent):
        response = await client.post(
            "/api/messages", json={"subject": "Hi", "content": "..."}, headers=auth_headers(parent)
        )
        assert response.status_code == 403


class TestNewsRoutes:
    @pytest.mark.asyncio
    async def test_news_is_public_and_published_only(self, client, trainer):
        for title, published in (("Draft", False), ("Cup win", True)):
            response = await client.post(
                "/api/news",
                json={"title": title, "content": "...", "published": published},
                headers=auth_headers(trainer),
            )
            assert response.status_code == 200

        response = await client.get("/api/news")
        assert response.status_code == 200
        assert [n["title"] for n in response.json()] == ["Cup win"]


class TestStatsRoutes:
    @pytest.mark.asyncio
    async def test_stats(self, client, trainer, parent):
        await _create_player(client, trainer)
        event_id = await _create_event(client, trainer)

        with patch.object(data_service.datetime_utils, "today", return_value=datetime.date(2030, 1, 1)):
            response = await client.get("/api/stats", headers=auth_headers(parent))

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_players"] == 1
        assert stats["next_event"]["id"] == event_id
        assert stats["next_event_attendance"] == {"confirmed": 0, "declined": 0}
