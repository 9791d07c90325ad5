"""Data behind the campus pages: student home, teacher week view and admin calendar."""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.i18n import DAY_NAMES, MONTH_NAMES, safe_lang
from app.models.profile import Profile, StudentTeacher
from app.models.session import ClassSession
from app.schemas.calendar import SessionResponse
from app.services.scheduling_service import SchedulingService
from app.utils.calendar import (
    filter_by_teacher, get_month_days, get_week_days, get_week_start, group_sessions_by_day, shift_month,
)
from app.utils.timezone import ensure_utc, school_tz, utcnow

logger = logging.getLogger(__name__)


def _dump(sessions: List[ClassSession]) -> List[Dict[str, Any]]:
    return [SessionResponse.model_validate(s).model_dump(mode="json") for s in sessions]


def _local_range(first: date, last: date):
    """UTC bounds covering the local days ``first`` .. ``last`` inclusive."""
    tz = school_tz()
    start = ensure_utc(datetime.combine(first, time(0, 0), tzinfo=tz))
    end = ensure_utc(datetime.combine(last + timedelta(days=1), time(0, 0), tzinfo=tz))
    return start, end


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.scheduling = SchedulingService(db)

    def _sessions_between(self, user: Profile, start: datetime, end: datetime) -> List[ClassSession]:
        return [s for s in self.scheduling.list_sessions(user, start=start, end=end) if ensure_utc(s.scheduled_at) < end]

    def student_home(self, user: Profile, lang: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = ensure_utc(now) if now else utcnow()
        subscription = self.scheduling.get_active_subscription(user.id)
        sessions = self.scheduling.list_sessions(user)

        upcoming = [s for s in sessions if s.status == "scheduled" and ensure_utc(s.scheduled_at) >= now]
        past = [s for s in sessions if s not in upcoming]
        past.sort(key=lambda s: ensure_utc(s.scheduled_at), reverse=True)

        primary = (
            self.db.query(StudentTeacher)
            .options(joinedload(StudentTeacher.teacher))
            .filter(StudentTeacher.student_id == user.id, StudentTeacher.is_primary.is_(True))
            .first()
        )

        subscription_data = None
        if subscription is not None:
            package = subscription.package
            subscription_data = {
                "id": str(subscription.id),
                "package": (package.display_name or {}).get(lang) or package.name,
                "status": subscription.status,
                "ends_at": ensure_utc(subscription.ends_at).isoformat(),
                "sessions_total": subscription.sessions_total,
                "sessions_used": subscription.sessions_used,
                "sessions_remaining": self.scheduling.remaining_sessions(subscription),
            }

        return {
            "subscription": subscription_data,
            "teacher": {"id": str(primary.teacher.id), "full_name": primary.teacher.full_name} if primary else None,
            "next_class": _dump(upcoming[:1])[0] if upcoming else None,
            "upcoming": _dump(upcoming),
            "past": _dump(past),
        }

    def teacher_week(self, user: Profile, lang: str, week_of: Optional[date] = None) -> Dict[str, Any]:
        tz = school_tz()
        week_start = get_week_start(week_of or utcnow().astimezone(tz).date())
        days = get_week_days(week_start)
        start, end = _local_range(days[0], days[-1])

        sessions = self._sessions_between(user, start, end)
        grouped = group_sessions_by_day(sessions, tz)

        students = (
            self.db.query(Profile)
            .join(StudentTeacher, StudentTeacher.student_id == Profile.id)
            .filter(StudentTeacher.teacher_id == user.id)
            .order_by(Profile.full_name)
            .all()
        )

        names = DAY_NAMES[safe_lang(lang)]
        return {
            "week_start": week_start.isoformat(),
            "previous_week": (week_start - timedelta(days=7)).isoformat(),
            "next_week": (week_start + timedelta(days=7)).isoformat(),
            "days": [
                {"date": day.isoformat(), "label": names[day.weekday()], "sessions": _dump(grouped.get(day.isoformat(), []))}
                for day in days
            ],
            "students": [
                {"id": str(s.id), "full_name": s.full_name, "email": s.email, "notes": s.notes} for s in students
            ],
        }

    def admin_calendar(self, user: Profile, lang: str, view: str = "week", anchor: Optional[date] = None,
                       teacher_id: Optional[str] = None) -> Dict[str, Any]:
        tz = school_tz()
        anchor = anchor or utcnow().astimezone(tz).date()
        lang = safe_lang(lang)

        if view == "month":
            cells = get_month_days(anchor.year, anchor.month)
            real_days = [c for c in cells if c is not None]
            start, end = _local_range(real_days[0], real_days[-1])
            prev_year, prev_month = shift_month(anchor.year, anchor.month, -1)
            next_year, next_month = shift_month(anchor.year, anchor.month, 1)
            navigation = {
                "title": f"{MONTH_NAMES[lang][anchor.month - 1]} {anchor.year}",
                "previous": date(prev_year, prev_month, 1).isoformat(),
                "next": date(next_year, next_month, 1).isoformat(),
            }
        else:
            view = "week"
            week_start = get_week_start(anchor)
            cells = get_week_days(week_start)
            start, end = _local_range(cells[0], cells[-1])
            navigation = {
                "title": week_start.isoformat(),
                "previous": (week_start - timedelta(days=7)).isoformat(),
                "next": (week_start + timedelta(days=7)).isoformat(),
            }

        sessions = filter_by_teacher(self._sessions_between(user, start, end), teacher_id)
        grouped = group_sessions_by_day(sessions, tz)
        teachers = self.db.query(Profile).filter(Profile.role == "teacher").order_by(Profile.full_name).all()

        return {
            "view": view,
            "navigation": navigation,
            "teacher_filter": teacher_id or "all",
            "teachers": [{"id": str(t.id), "full_name": t.full_name} for t in teachers],
            "cells": [
                None if day is None else {"date": day.isoformat(), "sessions": _dump(grouped.get(day.isoformat(), []))}
                for day in cells
            ],
            "counts": dict(Counter(s.status for s in sessions)),
            "total": len(sessions),
        }
