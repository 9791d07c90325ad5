from datetime import date, datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from app.utils.calendar import (
    filter_by_teacher, get_month_days, get_week_days, get_week_start, group_sessions_by_day, sessions_for_day,
    shift_month,
)
from app.utils.timezone import add_months, js_day_of_week, parse_datetime

MADRID = ZoneInfo("Europe/Madrid")


def test_week_starts_on_monday():
    assert get_week_start(date(2026, 10, 21)) == date(2026, 10, 19)
    assert get_week_start(date(2026, 10, 19)) == date(2026, 10, 19)
    # Sunday belongs to the week that started six days earlier
    assert get_week_start(date(2026, 10, 25)) == date(2026, 10, 19)


def test_week_start_truncates_datetimes_to_midnight():
    start = get_week_start(datetime(2026, 10, 22, 17, 45, tzinfo=MADRID))
    assert start == datetime(2026, 10, 19, 0, 0, tzinfo=MADRID)


def test_week_days():
    days = get_week_days(date(2026, 10, 19))
    assert len(days) == 7
    assert days[0] == date(2026, 10, 19)
    assert days[-1] == date(2026, 10, 25)


def test_month_grid_is_padded_to_monday():
    cells = get_month_days(2026, 10)
    # October 2026 starts on a Thursday
    assert cells[:3] == [None, None, None]
    assert cells[3] == date(2026, 10, 1)
    assert cells[-1] == date(2026, 10, 31)

    february = get_month_days(2026, 2)
    assert february[:6] == [None] * 6
    assert february[6] == date(2026, 2, 1)


def test_shift_month_wraps_years():
    assert shift_month(2026, 12, 1) == (2027, 1)
    assert shift_month(2026, 1, -1) == (2025, 12)


def test_grouping_uses_the_local_day():
    late = SimpleNamespace(scheduled_at=datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc), teacher_id="t1")
    early = SimpleNamespace(scheduled_at=datetime(2026, 10, 20, 8, 0, tzinfo=timezone.utc), teacher_id="t2")

    grouped = group_sessions_by_day([early, late], MADRID)
    # 23:30 UTC is already the next day in Madrid
    assert list(grouped) == ["2026-10-20"]
    assert grouped["2026-10-20"] == [late, early]

    assert list(group_sessions_by_day([late], None)) == ["2026-10-19"]


def test_sessions_for_day_accepts_serialized_sessions():
    sessions = [
        {"scheduled_at": "2026-10-20T09:00:00Z", "teacher_id": "t1"},
        {"scheduled_at": "2026-10-21T09:00:00Z", "teacher_id": "t1"},
    ]
    assert sessions_for_day(sessions, date(2026, 10, 20), MADRID) == [sessions[0]]
    assert sessions_for_day(sessions, None) == []


def test_filter_by_teacher():
    sessions = [{"teacher_id": "t1"}, {"teacher": {"id": "t2"}}]
    assert filter_by_teacher(sessions, "all") == sessions
    assert filter_by_teacher(sessions, None) == sessions
    assert filter_by_teacher(sessions, "t2") == [sessions[1]]


def test_js_day_of_week_starts_on_sunday():
    assert js_day_of_week(date(2026, 10, 25)) == 0
    assert js_day_of_week(date(2026, 10, 19)) == 1
    assert js_day_of_week(date(2026, 10, 24)) == 6


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2026, 1, 31, 10, 0), 1) == datetime(2026, 2, 28, 10, 0)
    assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)


def test_parse_datetime_reads_naive_values_as_school_time():
    assert parse_datetime("2026-10-20T10:00:00") == datetime(2026, 10, 20, 8, 0, tzinfo=timezone.utc)
    assert parse_datetime("2026-10-20T10:00:00Z") == datetime(2026, 10, 20, 10, 0, tzinfo=timezone.utc)
