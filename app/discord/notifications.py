"""
app/discord/notifications.py

Purpose: Scheduled Discord weather notifications

- Minute cron: users with a notificationTime get one update when the local
  clock matches it, users without one get an update at the top of each hour
- Daily forecast summary for users without a custom time
- Per-user failures are logged and skipped
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

import discord
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.discord.embeds import create_forecast_embed, create_weather_embed
from app.services import discord_service, weather_service
from utils.time_utils import local_datetime, local_hhmm, same_minute, utcnow

logger = get_logger(__name__)

# (channel_id, content, embed) -> None
Sender = Callable[[str, str, discord.Embed], Awaitable[None]]


def is_due(discord_state: Dict[str, Any], now: datetime, tz_name: str) -> bool:
    """
    Decides whether a subscribed user should be notified in this minute.
    """
    if same_minute(discord_state.get("lastNotification"), now):
        return False

    notification_time = discord_state.get("notificationTime")
    if notification_time:
        return local_hhmm(now, tz_name) == notification_time
    return local_datetime(now, tz_name).minute == 0


def find_due_users(users: List[Dict[str, Any]], now: datetime, tz_name: str) -> List[Dict[str, Any]]:
    return [
        user for user in users
        if (user.get("discord") or {}).get("notificationCity")
        and is_due(user["discord"], now, tz_name)
    ]


class NotificationScheduler:
    """
    Owns the APScheduler jobs and the delivery loop.

    The sender is injected so delivery can run without a gateway connection.
    """

    def __init__(self, sender: Sender, tz_name: Optional[str] = None):
        self.sender = sender
        self.tz_name = tz_name or settings.NOTIFICATION_TIMEZONE
        self.scheduler = AsyncIOScheduler(timezone=self.tz_name)

    def start(self):
        self.scheduler.add_job(
            self.send_due_notifications,
            CronTrigger(minute="*", timezone=self.tz_name),
            id="weather_notifications",
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.send_daily_summaries,
            CronTrigger(hour=settings.DAILY_SUMMARY_HOUR, minute=0, timezone=self.tz_name),
            id="daily_summary",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"⏰ Notification scheduler started ({self.tz_name})")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def send_due_notifications(self, now: Optional[datetime] = None) -> int:
        """
        Returns:
            Number of notifications delivered
        """
        now = now or utcnow()
        users = await discord_service.get_subscribed_users()
        due = find_due_users(users, now, self.tz_name)
        if due:
            logger.info(f"Sending weather notifications to {len(due)} user(s)")

        sent = 0
        for user in due:
            state = user["discord"]
            city = state["notificationCity"]
            with LogContext(user_id=str(user["_id"]), city=city):
                try:
                    data = await weather_service.get_weather_by_city(city)
                    embed = create_weather_embed(weather_service.summarize_weather(data))
                    await self.sender(
                        state["channelId"],
                        f"🌤️ **Weather Update for {city}**",
                        embed,
                    )
                    await discord_service.mark_notified(user["_id"], now)
                    sent += 1
                    logger.info(f"Sent notification to {user.get('username')}")
                except Exception as e:
                    logger.error(f"Error sending notification to {user.get('username')}: {e}")
        return sent

    async def send_daily_summaries(self) -> int:
        users = await discord_service.get_subscribed_users()
        sent = 0
        for user in users:
            state = user.get("discord") or {}
            city = state.get("notificationCity")
            if not city or state.get("notificationTime"):
                continue
            with LogContext(user_id=str(user["_id"]), city=city):
                try:
                    forecast = await weather_service.get_forecast_by_city(city)
                    await self.sender(
                        state["channelId"],
                        f"🌅 **Daily Weather Summary for {city}**",
                        create_forecast_embed(forecast),
                    )
                    sent += 1
                except Exception as e:
                    logger.error(f"Error sending daily summary to {user.get('username')}: {e}")
        return sent
