"""
app/services/admin_service.py

Purpose: Admin dashboard data and user moderation

- Dashboard stats and time-bucketed metrics (short TTL cache)
- Admin audit log (write + paginated read with user population)
- User listing, editing, ban/unban and deletion
- Per-user analytics
"""

import time
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_admin_audits_collection, get_api_events_collection, get_users_collection
from app.models.admin_audit import AUDIT_ACTIONS, build_admin_audit
from app.models.serialization import serialize_doc, to_object_id
from app.models.user import PUBLIC_PROJECTION, safe_user
from utils.constants import (
    ACTION_DISCORD_EVENT,
    ACTION_SEARCH,
    METRIC_API_EVENTS,
    METRIC_DISCORD_NOTIFICATIONS,
    METRIC_NEW_USERS,
    METRIC_SEARCHES,
    METRICS_CACHE_SECONDS,
    MSG_USER_NOT_FOUND,
    STATS_CACHE_SECONDS,
)
from utils.time_utils import as_utc, days_ago, start_of_today, utcnow
from utils.validation_utils import escape_regex

logger = get_logger(__name__)

METRICS = (METRIC_API_EVENTS, METRIC_SEARCHES, METRIC_NEW_USERS, METRIC_DISCORD_NOTIFICATIONS)
DAY_FORMAT = "%Y-%m-%d"
HOUR_FORMAT = "%Y-%m-%dT%H:00:00"


class TTLCache:
    """Small in-process cache for aggregation results."""

    def __init__(self):
        self._store: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        record = self._store.get(key)
        if record is None:
            return None
        expires, value = record
        if time.monotonic() > expires:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: float):
        self._store[key] = (time.monotonic() + ttl, value)

    def clear(self):
        self._store.clear()


aggregation_cache = TTLCache()


def clamp_page(page: Any) -> int:
    try:
        return max(1, int(page))
    except (TypeError, ValueError):
        return 1


def clamp_limit(limit: Any, default: int) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = default
    return min(100, max(10, value))


# ============================================================
# STATS & METRICS
# ============================================================

async def get_stats() -> Dict[str, Any]:
    cache_key = "admin:stats:all"
    cached = aggregation_cache.get(cache_key)
    if cached is not None:
        return {"cached": True, **cached}

    users = get_users_collection()
    events = get_api_events_collection()
    today = start_of_today()

    top_cities = await events.aggregate([
        {"$match": {
            "ts": {"$gte": today},
            "meta.action": ACTION_SEARCH,
            "meta.query.q": {"$exists": True},
        }},
        {"$group": {"_id": "$meta.query.q", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
        {"$limit": 5},
    ]).to_list(length=None)

    stats = {
        "usersCount": await users.count_documents({}),
        "bannedCount": await users.count_documents({"banned": True}),
        "active7d": await users.count_documents({"createdAt": {"$gte": days_ago(7)}}),
        "eventsToday": await events.count_documents({"ts": {"$gte": today}}),
        "totalEvents": await events.count_documents({}),
        "discordConnections": await users.count_documents({"discord.userId": {"$exists": True, "$ne": None}}),
        "discordSubscribed": await users.count_documents({"discord.subscribed": True}),
        "topCities": top_cities,
    }

    aggregation_cache.set(cache_key, stats, STATS_CACHE_SECONDS)
    return stats


def parse_days(days: Any, default: int = 7) -> int:
    """
    Raises:
        ValidationError: Not an integer in 1..365
    """
    if days is None or days == "":
        return default
    try:
        value = int(days)
    except (TypeError, ValueError):
        raise ValidationError("Invalid days parameter")
    if value <= 0 or value > 365:
        raise ValidationError("Invalid days parameter")
    return value


def build_metrics_pipeline(metric: str, start: Any, bucket: str) -> List[Dict[str, Any]]:
    date_format = HOUR_FORMAT if bucket == "hour" else DAY_FORMAT
    date_field = "$createdAt" if metric == METRIC_NEW_USERS else "$ts"

    if metric == METRIC_NEW_USERS:
        match: Dict[str, Any] = {"createdAt": {"$gte": start}}
    else:
        match = {"ts": {"$gte": start}}
        if metric == METRIC_SEARCHES:
            match["meta.action"] = ACTION_SEARCH
        elif metric == METRIC_DISCORD_NOTIFICATIONS:
            match["meta.action"] = ACTION_DISCORD_EVENT

    return [
        {"$match": match},
        {"$group": {
            "_id": {"$dateToString": {"format": date_format, "date": date_field}},
            "count": {"$sum": 1},
        }},
        {"$sort": {"_id": 1}},
    ]


async def get_metrics(metric: Optional[str], days: Any, bucket: Optional[str]) -> Dict[str, Any]:
    """
    Time-bucketed counts for the dashboard charts.

    Args:
        metric: api_events | searches | new_users | discord_notifications
        days: Window size, 1..365
        bucket: "hour" or "day" (anything else means day)
    """
    metric = metric if metric in METRICS else METRIC_API_EVENTS
    days = parse_days(days)
    bucket = "hour" if bucket == "hour" else "day"

    cache_key = f"metrics:{metric}:{days}:{bucket}"
    cached = aggregation_cache.get(cache_key)
    if cached is not None:
        return {"cached": True, "data": cached}

    collection = get_users_collection() if metric == METRIC_NEW_USERS else get_api_events_collection()
    pipeline = build_metrics_pipeline(metric, days_ago(days), bucket)
    rows = await collection.aggregate(pipeline).to_list(length=None)

    aggregation_cache.set(cache_key, rows, METRICS_CACHE_SECONDS)
    return {"cached": False, "data": rows}


# ============================================================
# AUDIT LOG
# ============================================================

async def log_admin_audit(
    admin_id: Any,
    action: str,
    target_user_id: Optional[Any] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
    target_email: Optional[str] = None
):
    """
    Records an admin action. Failures are logged, never raised, so the
    moderation action itself still succeeds.
    """
    try:
        if target_email is None and target_user_id is not None:
            target = await get_users_collection().find_one({"_id": target_user_id}, {"email": 1})
            target_email = target.get("email") if target else None

        await get_admin_audits_collection().insert_one(build_admin_audit(
            admin_id=admin_id,
            action=action,
            target_user_id=target_user_id,
            target_email=target_email,
            meta=meta,
            ip=ip,
        ))
    except Exception as e:
        logger.warning(f"Failed to log admin audit: {e}")


async def _populate_users(ids: List[Any]) -> Dict[Any, Dict[str, Any]]:
    ids = [i for i in set(ids) if i is not None]
    if not ids:
        return {}
    cursor = get_users_collection().find({"_id": {"$in": ids}}, {"username": 1, "email": 1})
    return {doc["_id"]: doc async for doc in cursor}


async def list_audits(
    page: Any = 1,
    limit: Any = 50,
    admin_id: Optional[str] = None,
    action: Optional[str] = None,
    days: Any = 30
) -> Dict[str, Any]:
    page = clamp_page(page)
    limit = clamp_limit(limit, 50)
    try:
        days = int(days)
    except (TypeError, ValueError):
        days = 30

    query: Dict[str, Any] = {"ts": {"$gte": days_ago(days)}}
    if admin_id:
        query["adminId"] = to_object_id(admin_id) or admin_id
    if action:
        if action not in AUDIT_ACTIONS:
            raise ValidationError("Invalid action")
        query["action"] = action

    audits_collection = get_admin_audits_collection()
    total = await audits_collection.count_documents(query)
    cursor = (
        audits_collection.find(query)
        .sort("ts", DESCENDING)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    audits = await cursor.to_list(length=limit)

    people = await _populate_users(
        [a.get("adminId") for a in audits] + [a.get("targetUserId") for a in audits]
    )
    for audit in audits:
        audit["adminId"] = people.get(audit.get("adminId"), audit.get("adminId"))
        audit["targetUserId"] = people.get(audit.get("targetUserId"), audit.get("targetUserId"))

    return {"total": total, "page": page, "perPage": limit, "audits": serialize_doc(audits)}


# ============================================================
# USER MANAGEMENT
# ============================================================

def _require_object_id(user_id: str):
    oid = to_object_id(user_id)
    if oid is None:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)
    return oid


async def list_users(
    page: Any = 1,
    limit: Any = 20,
    q: Optional[str] = None,
    status: Optional[str] = None
) -> Dict[str, Any]:
    page = clamp_page(page)
    limit = clamp_limit(limit, 20)

    query: Dict[str, Any] = {}
    q = q.strip() if q else None
    if q:
        pattern = {"$regex": escape_regex(q), "$options": "i"}
        query["$or"] = [{"username": pattern}, {"email": pattern}, {"fullName": pattern}]
    if status == "banned":
        query["banned"] = True
    elif status == "active":
        query["banned"] = {"$ne": True}

    users = get_users_collection()
    total = await users.count_documents(query)
    cursor = (
        users.find(query, PUBLIC_PROJECTION)
        .sort("createdAt", DESCENDING)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    found = await cursor.to_list(length=limit)
    return {"total": total, "page": page, "perPage": limit, "users": [safe_user(u) for u in found]}


async def get_user(user_id: str) -> Dict[str, Any]:
    user = await get_users_collection().find_one({"_id": _require_object_id(user_id)}, PUBLIC_PROJECTION)
    if not user:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)
    return safe_user(user)


async def update_user(admin: Dict[str, Any], user_id: str, changes: Dict[str, Any], ip: Optional[str] = None) -> Dict[str, Any]:
    """
    Applies a safe subset of profile changes (already validated).
    """
    oid = _require_object_id(user_id)
    with LogContext(user_id=str(admin["_id"]), action="edit_user"):
        user = await get_users_collection().find_one_and_update(
            {"_id": oid},
            {"$set": {**changes, "updatedAt": utcnow()}},
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise ResourceNotFoundError(MSG_USER_NOT_FOUND)

        await log_admin_audit(admin["_id"], "edit_user", oid, {"changes": list(changes.keys())}, ip,
                              target_email=user.get("email"))
        logger.info(f"✏️ Admin updated user {user_id}")
        return safe_user(user)


async def set_ban(admin: Dict[str, Any], user_id: str, action: str, ip: Optional[str] = None) -> Dict[str, Any]:
    if action not in ("ban", "unban"):
        raise ValidationError("Invalid action")

    oid = _require_object_id(user_id)
    banned = action == "ban"
    user = await get_users_collection().find_one_and_update(
        {"_id": oid},
        {"$set": {"banned": banned, "updatedAt": utcnow()}},
        projection=PUBLIC_PROJECTION,
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)

    await log_admin_audit(admin["_id"], "ban_user" if banned else "unban_user", oid, {}, ip,
                          target_email=user.get("email"))
    logger.info(f"🔨 Admin {'banned' if banned else 'unbanned'} user {user_id}",
                extra={"user_id": str(admin["_id"])})
    return safe_user(user)


async def delete_user(admin: Dict[str, Any], user_id: str, ip: Optional[str] = None) -> Dict[str, Any]:
    oid = _require_object_id(user_id)
    user = await get_users_collection().find_one_and_delete({"_id": oid}, projection=PUBLIC_PROJECTION)
    if not user:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)

    await log_admin_audit(admin["_id"], "delete_user", oid, {"email": user.get("email")}, ip,
                          target_email=user.get("email"))
    logger.info(f"🗑️ Admin deleted user {user_id}", extra={"user_id": str(admin["_id"])})
    return safe_user(user)


async def get_user_analytics(user_id: str) -> Dict[str, Any]:
    oid = _require_object_id(user_id)
    user = await get_users_collection().find_one({"_id": oid}, PUBLIC_PROJECTION)
    if not user:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)

    events = get_api_events_collection()
    since = days_ago(30)
    user_events = await events.count_documents({"userId": oid, "ts": {"$gte": since}})
    breakdown = await events.aggregate([
        {"$match": {"userId": oid, "ts": {"$gte": since}}},
        {"$group": {"_id": "$meta.action", "count": {"$sum": 1}}},
    ]).to_list(length=None)

    history = user.get("searchHistory") or []
    ten_days_ago = days_ago(10)
    recent = [
        entry for entry in history
        if entry.get("searchedAt") and as_utc(entry["searchedAt"]) >= ten_days_ago
    ]

    return {
        "user": safe_user(user),
        "userEvents": user_events,
        "searches": serialize_doc(history[:20]),
        "favorites": serialize_doc((user.get("favoriteCities") or [])[:20]),
        "activityBreakdown": breakdown,
        "recentSearches": serialize_doc(recent),
    }
