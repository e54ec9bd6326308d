"""Calendar-day helpers bound to the configured timezone."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from dailyten.config import get_settings


def get_zone(name: str | None = None) -> ZoneInfo:
    """Resolve the configured timezone (or `name`) to a ZoneInfo."""
    return ZoneInfo(name or get_settings().timezone)


def today(tz: ZoneInfo | None = None, now: datetime | None = None) -> date:
    """Current calendar date in `tz`, independent of the host's local zone."""
    tz = tz or get_zone()
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(tz).date()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
