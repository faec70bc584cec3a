import asyncio

import httpx
import pytest

from app.main import app
from app.middleware import metrics
from app.middleware.metrics import body_snippet, derive_action
from app.models.api_event import build_api_event


@pytest.mark.parametrize("method,path,action", [
    ("GET", "/api/weather/search", "search"),
    ("GET", "/api/weather/current", "weather_current"),
    ("GET", "/api/weather/forecast", "weather_forecast"),
    ("GET", "/api/weather/geolocation", "weather_geolocation"),
    ("GET", "/api/weather/historical", "weather_historical"),
    ("POST", "/api/cccd/register", "cccd_register"),
    ("POST", "/api/user/favorites", "add_favorite"),
    ("DELETE", "/api/user/favorites/abc", "remove_favorite"),
    ("GET", "/api/user/favorites", None),
    ("POST", "/api/user/search-history", "user_search_history_add"),
    ("POST", "/api/auth/login/cccd", "auth_login"),
    ("POST", "/api/auth/register", "auth_register"),
    ("GET", "/api/auth/me", "auth_me"),
    ("POST", "/api/discord/subscribe", "discord_event"),
    ("GET", "/api/discord/status", None),
    ("GET", "/api/admin/stats", None),
])
def test_derive_action(method, path, action):
    assert derive_action(method, path) == action


def test_body_snippet_keeps_only_keys():
    raw = b'{"email": "a@b.com", "password": "secret", "a": 1, "b": 2, "c": 3, "d": 4}'
    assert body_snippet(raw) == ["email", "password", "a", "b", "c"]


@pytest.mark.parametrize("raw", [b"", b"not json", b"[1, 2]"])
def test_body_snippet_ignores_non_objects(raw):
    assert body_snippet(raw) is None


def test_build_api_event_drops_empty_meta():
    event = build_api_event({"method": "GET", "query": None, "action": "search"}, user_id="u1", ip="1.2.3.4")
    assert event["meta"] == {"method": "GET", "action": "search"}
    assert event["userId"] == "u1"
    assert event["type"] == "request"
    assert event["ts"].tzinfo is not None


@pytest.mark.asyncio
async def test_requests_are_recorded_with_user(db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        registered = await http.post("/api/auth/register", json={
            "email": "metrics@example.com", "username": "metrics", "password": "secret123"
        })
        assert registered.status_code == 201
        token = registered.json()["token"]

        me = await http.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200

        # Not under /api, so not recorded
        await http.get("/live")
    await asyncio.gather(*list(metrics._pending_writes))

    events = await db["apievents"].find({}).to_list(length=None)
    by_action = {e["meta"]["action"]: e for e in events}
    assert len(events) == 2
    assert set(by_action) == {"auth_register", "auth_me"}

    register_event, me_event = by_action["auth_register"], by_action["auth_me"]
    assert "userId" not in register_event
    assert register_event["meta"]["bodySnippet"] == ["email", "username", "password"]
    assert register_event["meta"]["status"] == 201

    user = await db["users"].find_one({"email": "metrics@example.com"})
    assert me_event["userId"] == user["_id"]
    assert "bodySnippet" not in me_event["meta"]
