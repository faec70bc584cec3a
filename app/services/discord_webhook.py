"""
app/services/discord_webhook.py

Purpose: Admin notifications over a Discord webhook

- Posts an embed when a banned user attempts to log in
- Never raises: delivery problems are logged and swallowed
"""

from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from utils.constants import BANNED_ALERT_COLOR
from utils.time_utils import utcnow

logger = get_logger(__name__)


def build_banned_login_embed(user: Dict[str, Any]) -> Dict[str, Any]:
    now = utcnow()
    embed = {
        "title": "🚫 Banned User Login Attempt",
        "color": BANNED_ALERT_COLOR,
        "fields": [
            {
                "name": "User",
                "value": f"{user.get('username')} ({user.get('email')})",
                "inline": True,
            },
            {
                "name": "User ID",
                "value": str(user.get("_id")),
                "inline": True,
            },
            {
                "name": "Time",
                "value": now.strftime("%Y-%m-%d %H:%M:%S UTC"),
                "inline": False,
            },
        ],
        "timestamp": now.isoformat(),
    }
    if user.get("cccd"):
        embed["fields"].append({"name": "CCCD", "value": user["cccd"], "inline": True})
    return embed


async def send_banned_user_login_notification(
    user: Dict[str, Any],
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> bool:
    """
    Notifies the admin channel about a banned user's login attempt.

    Returns:
        True if the webhook accepted the message
    """
    webhook_url = settings.DISCORD_WEBHOOK_URL
    if not webhook_url:
        logger.warning("DISCORD_WEBHOOK_URL not set, skipping banned user notification")
        return False

    try:
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            response = await client.post(
                webhook_url,
                json={"embeds": [build_banned_login_embed(user)]}
            )
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Error sending Discord webhook notification: {e}")
        return False

    logger.info(f"Sent banned user notification to Discord for {user.get('username')}")
    return True
