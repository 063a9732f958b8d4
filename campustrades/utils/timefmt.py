"""Timestamps and the relative time shown under each chat message."""
from datetime import datetime, timedelta, timezone
from typing import Optional
import os

import pytz

DISPLAY_TIMEZONE = os.environ.get("DISPLAY_TIMEZONE", "UTC")


def utcnow() -> datetime:
    """Aware UTC now; every stored timestamp is timezone-aware UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive values as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_relative_time(
    timestamp: datetime,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> str:
    """
    Render a message timestamp for display.

    The first matching rule wins:
    "now" under a minute, "{n}m" under an hour, "HH:MM" on the same
    calendar day, "Yesterday", otherwise "{Mon} {day}".

    Args:
        timestamp: Message creation time (naive values are taken as UTC)
        now: Reference time, defaults to the current time
        tz_name: Display timezone, defaults to DISPLAY_TIMEZONE

    Returns:
        The display string
    """
    tz = pytz.timezone(tz_name or DISPLAY_TIMEZONE)
    local_ts = as_utc(timestamp).astimezone(tz)
    local_now = as_utc(now or utcnow()).astimezone(tz)

    minutes = int((local_now - local_ts).total_seconds() // 60)
    if minutes < 1:
        return "now"
    if minutes < 60:
        return f"{minutes}m"
    if local_ts.date() == local_now.date():
        return local_ts.strftime("%H:%M")
    if local_ts.date() == local_now.date() - timedelta(days=1):
        return "Yesterday"
    return f"{local_ts.strftime('%b')} {local_ts.day}"
