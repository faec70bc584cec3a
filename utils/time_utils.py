"""
utils/time_utils.py

Purpose: Time helpers

- UTC-aware "now" and normalization of naive datetimes
- Day boundaries for metrics
- Notification time (HH:MM) parsing and matching
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

NOTIFICATION_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Treats naive datetimes (as returned by Mongo without tz_aware) as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_ago(days: float, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def start_of_today(now: Optional[datetime] = None) -> datetime:
    """Midnight UTC of the current day."""
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def from_unix(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_notification_time(value: Optional[str]) -> Optional[str]:
    """
    Validates a "HH:MM" 24h string.

    Returns:
        The normalized value, or None for empty input

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) == 4 and value[1] == ":":
        value = f"0{value}"
    if not NOTIFICATION_TIME_PATTERN.match(value):
        raise ValueError("Notification time must be in HH:MM format")
    return value


def local_hhmm(now: datetime, tz_name: str) -> str:
    """Formats a moment as HH:MM in the given timezone."""
    return as_utc(now).astimezone(ZoneInfo(tz_name)).strftime("%H:%M")


def local_datetime(now: datetime, tz_name: str) -> datetime:
    return as_utc(now).astimezone(ZoneInfo(tz_name))


def same_minute(a: Optional[datetime], b: Optional[datetime]) -> bool:
    """True when both moments fall in the same UTC minute."""
    if a is None or b is None:
        return False
    a, b = as_utc(a), as_utc(b)
    return a.replace(second=0, microsecond=0) == b.replace(second=0, microsecond=0)


def format_short_date(dt: datetime) -> str:
    """Formats like 'Mon, Jan 5'."""
    return f"{dt.strftime('%a, %b')} {dt.day}"
