"""Timezone helpers shared by the scheduling and reminder code."""

import calendar
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (as read back from SQLite) and convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def school_tz(name: Optional[str] = None) -> ZoneInfo:
    try:
        return ZoneInfo(name or settings.SCHOOL_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(settings.SCHOOL_TIMEZONE)


def parse_datetime(value: str, tz: Optional[ZoneInfo] = None) -> datetime:
    """Parse an ISO-8601 string; naive values are read in the school timezone."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or school_tz())
    return parsed.astimezone(timezone.utc)


def js_day_of_week(value) -> int:
    """Day of week with Sunday as 0, matching the availability table."""
    return (value.weekday() + 1) % 7


def add_months(value: datetime, months: int) -> datetime:
    """Same day ``months`` later, clamped to the last day of shorter months."""
    index = value.month - 1 + months
    year, month = value.year + index // 12, index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
