"""Calendar view helpers.

Pure date arithmetic used by the campus dashboards: Monday-anchored weeks,
month grids padded so that every month starts on a Monday column, and
grouping of sessions by their local calendar day.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from app.utils.timezone import ensure_utc

DateLike = Union[date, datetime]


def get_week_start(value: DateLike) -> DateLike:
    """Return the Monday of the week containing ``value``.

    Datetimes keep their tzinfo and are truncated to midnight.
    """
    start = value - timedelta(days=value.weekday())
    if isinstance(start, datetime):
        return start.replace(hour=0, minute=0, second=0, microsecond=0)
    return start


def get_week_days(week_start: date) -> List[date]:
    return [week_start + timedelta(days=i) for i in range(7)]


def get_month_days(year: int, month: int) -> List[Optional[date]]:
    """Days of the month preceded by ``None`` cells up to the first weekday."""
    first_day = date(year, month, 1)
    padding = first_day.weekday()
    days_in_month = calendar.monthrange(year, month)[1]
    cells: List[Optional[date]] = [None] * padding
    cells.extend(date(year, month, day) for day in range(1, days_in_month + 1))
    return cells


def shift_month(year: int, month: int, delta: int) -> tuple:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def day_key(value: DateLike, tz: Optional[ZoneInfo] = None) -> str:
    if isinstance(value, datetime):
        value = ensure_utc(value)
        if tz is not None:
            value = value.astimezone(tz)
        value = value.date()
    return value.isoformat()


def _scheduled_at(session: Any) -> datetime:
    if isinstance(session, dict):
        raw = session["scheduled_at"]
        if isinstance(raw, str):
            raw = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        return ensure_utc(raw)
    return ensure_utc(session.scheduled_at)


def _teacher_id(session: Any) -> Optional[str]:
    if isinstance(session, dict):
        teacher = session.get("teacher") or {}
        value = session.get("teacher_id") or teacher.get("id")
    else:
        value = session.teacher_id
    return str(value) if value is not None else None


def filter_by_teacher(sessions: Iterable[Any], teacher_id: Optional[str]) -> List[Any]:
    if not teacher_id or teacher_id == "all":
        return list(sessions)
    return [s for s in sessions if _teacher_id(s) == str(teacher_id)]


def sessions_for_day(sessions: Iterable[Any], day: Optional[date], tz: Optional[ZoneInfo] = None) -> List[Any]:
    if day is None:
        return []
    key = day.isoformat()
    matches = [s for s in sessions if day_key(_scheduled_at(s), tz) == key]
    return sorted(matches, key=_scheduled_at)


def group_sessions_by_day(sessions: Iterable[Any], tz: Optional[ZoneInfo] = None) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = {}
    for session in sorted(sessions, key=_scheduled_at):
        grouped.setdefault(day_key(_scheduled_at(session), tz), []).append(session)
    return grouped
