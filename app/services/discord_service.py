"""
app/services/discord_service.py

Purpose: Discord link and notification subscription state

- Connect a Discord user/channel to a web account
- Subscribe / unsubscribe to city notifications
- Notification city and time updates
- Bot-side helpers (link by email, unsubscribe by Discord id, mark notified)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_users_collection
from app.services.user_service import update_and_return
from utils.constants import (
    MSG_DISCORD_CONNECT_FIRST,
    MSG_DISCORD_NOT_CONNECTED,
    MSG_DISCORD_NOT_SUBSCRIBED,
    MSG_USER_NOT_FOUND,
)
from utils.time_utils import parse_notification_time, utcnow

logger = get_logger(__name__)


def _discord(user: Dict[str, Any]) -> Dict[str, Any]:
    return user.get("discord") or {}


def is_connected(user: Dict[str, Any]) -> bool:
    return bool(_discord(user).get("userId"))


def _require_connection(user: Dict[str, Any], message: str = MSG_DISCORD_NOT_CONNECTED):
    if not is_connected(user):
        raise ValidationError(message)


def discord_status(user: Dict[str, Any]) -> Dict[str, Any]:
    discord = _discord(user)
    return {
        "connected": bool(discord.get("userId")),
        "subscribed": bool(discord.get("subscribed")),
        "notificationCity": discord.get("notificationCity"),
        "notificationTime": discord.get("notificationTime"),
        "lastNotification": discord.get("lastNotification"),
    }


# ============================================================
# WEB ROUTES
# ============================================================

async def connect(user: Dict[str, Any], discord_user_id: str, channel_id: str) -> Dict[str, Any]:
    with LogContext(user_id=str(user["_id"]), discord_user=discord_user_id):
        updated = await update_and_return(user["_id"], {"$set": {
            "discord.userId": discord_user_id,
            "discord.channelId": channel_id,
            "discord.subscribed": False,
        }})
        logger.info("🔗 Discord account connected")
        return updated["discord"]


async def subscribe(
    user: Dict[str, Any],
    city: str,
    notification_time: Optional[str] = None
) -> Dict[str, Any]:
    """
    Turns on notifications for a city.

    Raises:
        ValidationError: Discord account not connected
    """
    _require_connection(user, MSG_DISCORD_CONNECT_FIRST)

    changes: Dict[str, Any] = {
        "discord.subscribed": True,
        "discord.notificationCity": city,
        "discord.lastNotification": None,
    }
    if notification_time:
        changes["discord.notificationTime"] = parse_notification_time(notification_time)

    updated = await update_and_return(user["_id"], {"$set": changes})
    logger.info(f"🔔 Subscribed to notifications for {city}", extra={"user_id": str(user["_id"])})
    return updated["discord"]


async def unsubscribe(user: Dict[str, Any]) -> Dict[str, Any]:
    _require_connection(user)
    updated = await update_and_return(user["_id"], {"$set": {
        "discord.subscribed": False,
        "discord.notificationCity": None,
    }})
    logger.info("🔕 Unsubscribed from notifications", extra={"user_id": str(user["_id"])})
    return updated["discord"]


async def update_city(user: Dict[str, Any], city: str) -> Dict[str, Any]:
    _require_connection(user)
    if not _discord(user).get("subscribed"):
        raise ValidationError(MSG_DISCORD_NOT_SUBSCRIBED)

    updated = await update_and_return(user["_id"], {"$set": {"discord.notificationCity": city}})
    return updated["discord"]


async def update_notification_time(user: Dict[str, Any], notification_time: Optional[str]) -> Dict[str, Any]:
    """Sets (or clears, with None) the daily HH:MM notification time."""
    _require_connection(user)
    value = parse_notification_time(notification_time) if notification_time else None
    updated = await update_and_return(user["_id"], {"$set": {"discord.notificationTime": value}})
    return updated["discord"]


# ============================================================
# BOT HELPERS
# ============================================================

async def link_by_email(email: str, discord_user_id: str, channel_id: str, city: str) -> Dict[str, Any]:
    """
    Used by the /subscribe slash command: links the Discord user to the
    web account holding this email and subscribes them.

    Raises:
        ResourceNotFoundError: No account with that email
    """
    users = get_users_collection()
    user = await users.find_one({"email": email.strip().lower()}, {"_id": 1})
    if not user:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)

    updated = await update_and_return(user["_id"], {"$set": {
        "discord.userId": discord_user_id,
        "discord.channelId": channel_id,
        "discord.subscribed": True,
        "discord.notificationCity": city,
        "discord.lastNotification": None,
    }})
    logger.info(f"🔔 Bot subscription for {city}", extra={"discord_user": discord_user_id})
    return updated


async def unsubscribe_by_discord_id(discord_user_id: str) -> bool:
    """Returns False when no subscribed account is linked to this Discord user."""
    result = await get_users_collection().update_one(
        {"discord.userId": discord_user_id, "discord.subscribed": True},
        {"$set": {
            "discord.subscribed": False,
            "discord.notificationCity": None,
            "updatedAt": utcnow(),
        }}
    )
    return result.modified_count > 0


async def get_subscribed_users() -> List[Dict[str, Any]]:
    cursor = get_users_collection().find(
        {"discord.subscribed": True, "discord.userId": {"$ne": None}},
        {"username": 1, "email": 1, "discord": 1},
    )
    return await cursor.to_list(length=None)


async def mark_notified(user_id: Any, when: datetime):
    await get_users_collection().update_one(
        {"_id": user_id},
        {"$set": {"discord.lastNotification": when}}
    )
