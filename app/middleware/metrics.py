"""
app/middleware/metrics.py

Purpose: Lightweight usage telemetry

- Records one ApiEvent per /api/ request for admin aggregation
- Derives a higher-level action name from method + path
- Writes are fire-and-forget and never affect the response
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from fastapi import Request

from app.core.logging import get_logger
from app.db.mongo import get_api_events_collection
from app.models.api_event import build_api_event
from utils.constants import ACTION_DISCORD_EVENT, ACTION_SEARCH

logger = get_logger(__name__)

BODY_SNIPPET_KEYS = 5

_pending_writes: set = set()


def derive_action(method: str, path: str) -> Optional[str]:
    p = path.lower()
    method = method.upper()

    if p.startswith("/api/weather/search"):
        return ACTION_SEARCH
    if p.startswith("/api/weather/current"):
        return "weather_current"
    if p.startswith("/api/weather/forecast"):
        return "weather_forecast"
    if p.startswith("/api/weather/geolocation"):
        return "weather_geolocation"
    if p.startswith("/api/weather/historical"):
        return "weather_historical"

    if p.startswith("/api/cccd"):
        return "cccd_register" if "/register" in p else "cccd"

    if p.startswith("/api/user/favorites"):
        if method == "POST":
            return "add_favorite"
        if method in ("DELETE", "PUT"):
            return "remove_favorite"
        return None
    if p.startswith("/api/user/search-history") and method == "POST":
        return "user_search_history_add"

    if p.startswith("/api/auth"):
        if "/login" in p:
            return "auth_login"
        if "/register" in p:
            return "auth_register"
        if "/me" in p:
            return "auth_me"
        return "auth"

    if p.startswith("/api/discord") and method == "POST":
        return ACTION_DISCORD_EVENT

    return None


def body_snippet(raw: bytes) -> Optional[List[str]]:
    """First few top-level keys of a JSON object body; never the values."""
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return list(payload.keys())[:BODY_SNIPPET_KEYS]


async def record_event(event: Dict[str, Any]):
    try:
        await get_api_events_collection().insert_one(event)
    except Exception as e:
        logger.warning(f"Metrics write failed: {e}")


def _schedule(event: Dict[str, Any]):
    task = asyncio.create_task(record_event(event))
    _pending_writes.add(task)
    task.add_done_callback(_pending_writes.discard)


async def metrics_middleware(request: Request, call_next):
    path = request.url.path
    if not path.startswith("/api/"):
        return await call_next(request)

    snippet = None
    if "application/json" in request.headers.get("content-type", ""):
        snippet = body_snippet(await request.body())

    response = await call_next(request)

    # Set by get_current_user when the route is authenticated
    user = getattr(request.state, "user", None)
    meta = {
        "method": request.method,
        "path": path,
        "query": dict(request.query_params) or None,
        "bodySnippet": snippet,
        "userAgent": request.headers.get("user-agent"),
        "action": derive_action(request.method, path),
        "status": response.status_code,
    }
    event = build_api_event(
        meta,
        user_id=user.get("_id") if user else None,
        ip=request.client.host if request.client else None,
    )
    _schedule(event)
    return response
