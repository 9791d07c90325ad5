"""Class scheduling rules.

Booking, conflict detection, slot generation and the session lifecycle all go
through :class:`SchedulingService`. Times are stored in UTC; weekly teacher
availability is expressed in the school timezone.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.i18n import format_long_date, format_time, safe_lang
from app.models.profile import Profile, StudentTeacher
from app.models.session import ClassSession, TeacherAvailability
from app.models.subscription import Subscription
from app.services.email_service import email_service
from app.services.meeting_service import meeting_service
from app.utils.timezone import ensure_utc, js_day_of_week, school_tz, utcnow

logger = logging.getLogger(__name__)

SESSION_ACTIONS = ("complete", "cancel", "no_show", "update_notes")
STAFF_ROLES = ("teacher", "admin")


class SchedulingError(ValueError):
    """A booking or lifecycle rule was violated; carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def parse_hhmm(value: str) -> time:
    try:
        hours, minutes = value.split(":")[:2]
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise SchedulingError(f"Invalid time '{value}', expected HH:MM")


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and end_a > start_b


def session_end(session: ClassSession) -> datetime:
    return ensure_utc(session.scheduled_at) + timedelta(minutes=session.duration_minutes or 0)


def generate_weekly_dates(day_of_week: int, at: time, start_date: date, end_date: date,
                          limit: int, tz=None) -> List[datetime]:
    """Weekly occurrences of ``day_of_week`` (0=Sunday) at ``at`` local time, as UTC datetimes."""
    tz = tz or school_tz()
    current = start_date
    while js_day_of_week(current) != day_of_week:
        current += timedelta(days=1)

    dates = []
    while current <= end_date and len(dates) < limit:
        local = datetime.combine(current, at, tzinfo=tz)
        dates.append(ensure_utc(local))
        current += timedelta(days=7)
    return dates


class SchedulingService:
    def __init__(self, db: Session):
        self.db = db

    # Subscriptions / capacity

    def get_active_subscription(self, student_id) -> Optional[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.student_id == student_id,
                Subscription.status == "active",
                Subscription.ends_at >= utcnow(),
            )
            .order_by(Subscription.created_at.desc())
            .first()
        )

    def scheduled_count(self, subscription_id) -> int:
        return (
            self.db.query(func.count(ClassSession.id))
            .filter(ClassSession.subscription_id == subscription_id, ClassSession.status == "scheduled")
            .scalar()
            or 0
        )

    def remaining_sessions(self, subscription: Subscription) -> int:
        """Sessions that can still be booked: total minus consumed minus already scheduled."""
        used = subscription.sessions_used or 0
        return max(subscription.sessions_total - used - self.scheduled_count(subscription.id), 0)

    def _require_subscription(self, student_id, needed: int = 1) -> Subscription:
        subscription = self.get_active_subscription(student_id)
        if subscription is None:
            raise SchedulingError("Student has no active subscription")
        remaining = self.remaining_sessions(subscription)
        if remaining <= 0:
            raise SchedulingError("No sessions remaining in subscription")
        if needed > remaining:
            raise SchedulingError(
                f"Not enough sessions remaining. Tried to schedule {needed}, but only {remaining} available."
            )
        return subscription

    # Conflicts

    def find_conflicts(self, teacher_id, start: datetime, duration_minutes: int,
                       exclude_id=None) -> List[ClassSession]:
        start = ensure_utc(start)
        end = start + timedelta(minutes=duration_minutes)
        # Any session overlapping [start, end) must begin before ``end`` and after start - MAX
        window_start = start - timedelta(minutes=settings.MAX_SESSION_MINUTES)
        query = self.db.query(ClassSession).filter(
            ClassSession.teacher_id == teacher_id,
            ClassSession.status != "cancelled",
            ClassSession.scheduled_at < end,
            ClassSession.scheduled_at > window_start,
        )
        if exclude_id is not None:
            query = query.filter(ClassSession.id != exclude_id)
        return [s for s in query.all() if overlaps(start, end, ensure_utc(s.scheduled_at), session_end(s))]

    # Slots

    def available_slots(self, teacher_id, day: date, duration_minutes: int,
                        now: Optional[datetime] = None) -> List[Dict[str, str]]:
        """Free slots for ``teacher_id`` on ``day`` built from the weekly availability windows."""
        self._check_duration(duration_minutes)
        tz = school_tz()
        now = ensure_utc(now) if now else utcnow()
        step = timedelta(minutes=duration_minutes)

        windows = (
            self.db.query(TeacherAvailability)
            .filter(
                TeacherAvailability.teacher_id == teacher_id,
                TeacherAvailability.day_of_week == js_day_of_week(day),
                TeacherAvailability.is_active.is_(True),
            )
            .order_by(TeacherAvailability.start_time)
            .all()
        )
        if not windows:
            return []

        day_start = ensure_utc(datetime.combine(day, time(0, 0), tzinfo=tz))
        day_end = day_start + timedelta(days=1)
        busy = [
            (ensure_utc(s.scheduled_at), session_end(s))
            for s in self.db.query(ClassSession).filter(
                ClassSession.teacher_id == teacher_id,
                ClassSession.status != "cancelled",
                ClassSession.scheduled_at < day_end,
                ClassSession.scheduled_at > day_start - timedelta(minutes=settings.MAX_SESSION_MINUTES),
            )
        ]

        slots = {}
        for window in windows:
            try:
                window_start_time, window_end_time = parse_hhmm(window.start_time), parse_hhmm(window.end_time)
            except SchedulingError as e:
                logger.warning(f"Skipping availability window {window.id} of teacher {teacher_id}: {e}")
                continue
            slot_start = ensure_utc(datetime.combine(day, window_start_time, tzinfo=tz))
            window_end = ensure_utc(datetime.combine(day, window_end_time, tzinfo=tz))
            while slot_start + step <= window_end:
                slot_end = slot_start + step
                if slot_start > now and not any(overlaps(slot_start, slot_end, b_start, b_end) for b_start, b_end in busy):
                    slots[slot_start] = {"slot_start": slot_start.isoformat(), "slot_end": slot_end.isoformat()}
                slot_start = slot_end

        return [slots[key] for key in sorted(slots)]

    # Booking

    def _check_duration(self, duration_minutes: int) -> None:
        if duration_minutes <= 0 or duration_minutes > settings.MAX_SESSION_MINUTES:
            raise SchedulingError(f"durationMinutes must be between 1 and {settings.MAX_SESSION_MINUTES}")

    def _get_profile(self, profile_id, roles: Iterable[str], label: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if profile is None or profile.role not in roles:
            raise SchedulingError(f"{label} not found", status_code=404)
        return profile

    def primary_teacher_id(self, student_id):
        pairing = (
            self.db.query(StudentTeacher)
            .filter(StudentTeacher.student_id == student_id, StudentTeacher.is_primary.is_(True))
            .first()
        )
        return pairing.teacher_id if pairing else None

    def resolve_teacher(self, actor: Profile, student_id, teacher_id=None) -> Profile:
        """Teachers always book for themselves; admins pick a teacher or fall back to the primary one."""
        if actor.role == "teacher":
            return actor
        teacher_id = teacher_id or self.primary_teacher_id(student_id)
        if teacher_id is None:
            raise SchedulingError("teacherId is required")
        return self._get_profile(teacher_id, STAFF_ROLES, "Teacher")

    def _new_session(self, subscription: Subscription, student: Profile, teacher: Profile,
                     scheduled_at: datetime, duration_minutes: int, meet_link: Optional[str],
                     auto_create_meeting: bool) -> ClassSession:
        session_id = uuid.uuid4()
        if not meet_link and auto_create_meeting:
            meet_link = meeting_service.create_meeting_link(session_id)
        session = ClassSession(
            id=session_id,
            subscription_id=subscription.id,
            student_id=student.id,
            teacher_id=teacher.id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            meet_link=meet_link or None,
            status="scheduled",
            reminder_sent=False,
        )
        self.db.add(session)
        return session

    def create_session(self, actor: Profile, student_id, scheduled_at: datetime, teacher_id=None,
                       duration_minutes: int = None, meet_link: Optional[str] = None,
                       auto_create_meeting: bool = True) -> ClassSession:
        duration_minutes = duration_minutes or settings.DEFAULT_SESSION_MINUTES
        self._check_duration(duration_minutes)
        scheduled_at = ensure_utc(scheduled_at)
        if scheduled_at <= utcnow():
            raise SchedulingError("Cannot schedule a class in the past")

        student = self._get_profile(student_id, ("student",), "Student")
        teacher = self.resolve_teacher(actor, student.id, teacher_id)
        subscription = self._require_subscription(student.id)

        if self.find_conflicts(teacher.id, scheduled_at, duration_minutes):
            raise SchedulingError("Time slot is not available", status_code=409)

        session = self._new_session(subscription, student, teacher, scheduled_at, duration_minutes,
                                    meet_link, auto_create_meeting)
        self.db.commit()
        self.db.refresh(session)
        logger.info(f"Session {session.id} scheduled for student {student.id} with teacher {teacher.id}")
        return session

    def create_bulk_sessions(self, actor: Profile, student_id, dates: List[datetime], teacher_id=None,
                             duration_minutes: int = None, meet_link: Optional[str] = None,
                             auto_create_meeting: bool = True) -> List[ClassSession]:
        """Book every date or none: capacity and all conflicts are checked before inserting."""
        if not dates:
            raise SchedulingError("studentId and an array of sessions dates are required")
        duration_minutes = duration_minutes or settings.DEFAULT_SESSION_MINUTES
        self._check_duration(duration_minutes)
        dates = sorted(ensure_utc(d) for d in dates)

        student = self._get_profile(student_id, ("student",), "Student")
        teacher = self.resolve_teacher(actor, student.id, teacher_id)
        subscription = self._require_subscription(student.id, needed=len(dates))

        step = timedelta(minutes=duration_minutes)
        now = utcnow()
        tz = school_tz()
        for index, start in enumerate(dates):
            local = start.astimezone(tz)
            if start <= now:
                raise SchedulingError(f"Cannot schedule a class in the past ({local:%Y-%m-%d %H:%M})")
            if self.find_conflicts(teacher.id, start, duration_minutes):
                raise SchedulingError(
                    f"Conflict detected on {local:%Y-%m-%d} at {local:%H:%M}. There is an existing class.",
                    status_code=409,
                )
            if index and overlaps(dates[index - 1], dates[index - 1] + step, start, start + step):
                raise SchedulingError(f"Requested classes overlap on {local:%Y-%m-%d}", status_code=409)

        sessions = [
            self._new_session(subscription, student, teacher, start, duration_minutes, meet_link, auto_create_meeting)
            for start in dates
        ]
        self.db.commit()
        for session in sessions:
            self.db.refresh(session)
        logger.info(f"{len(sessions)} sessions bulk-scheduled for student {student.id}")
        return sessions

    def create_recurring_sessions(self, actor: Profile, student_id, day_of_week: int, at: str,
                                  start_date: date, end_date: Optional[date] = None, teacher_id=None,
                                  duration_minutes: int = None, meet_link: Optional[str] = None,
                                  auto_create_meeting: bool = True) -> Dict[str, Any]:
        if day_of_week < 0 or day_of_week > 6:
            raise SchedulingError("dayOfWeek must be 0-6")
        at_time = parse_hhmm(at)

        student = self._get_profile(student_id, ("student",), "Student")
        teacher = self.resolve_teacher(actor, student.id, teacher_id)
        subscription = self._require_subscription(student.id)

        tz = school_tz()
        final_end = end_date or ensure_utc(subscription.ends_at).astimezone(tz).date()
        # Only future occurrences count against the remaining capacity
        now_local = utcnow().astimezone(tz)
        first_day = max(start_date, now_local.date())
        if first_day == now_local.date() and datetime.combine(first_day, at_time, tzinfo=tz) <= now_local:
            first_day += timedelta(days=1)
        dates = generate_weekly_dates(day_of_week, at_time, first_day, final_end,
                                      self.remaining_sessions(subscription), tz)
        if not dates:
            raise SchedulingError("No valid dates found in the given range for this day of week")

        created, errors = [], []
        for scheduled_at in dates:
            try:
                created.append(self.create_session(
                    actor, student.id, scheduled_at, teacher.id, duration_minutes, meet_link, auto_create_meeting
                ))
            except SchedulingError as e:
                self.db.rollback()
                errors.append(f"{scheduled_at.astimezone(tz):%Y-%m-%d}: {e}")

        return {"created": len(created), "total_requested": len(dates), "sessions": created, "errors": errors or None}

    # Lifecycle

    def get_session(self, session_id) -> ClassSession:
        session = self.db.query(ClassSession).filter(ClassSession.id == session_id).first()
        if session is None:
            raise SchedulingError("Session not found", status_code=404)
        return session

    def apply_action(self, actor: Profile, session_id, action: str, notes: Optional[str] = None,
                     reason: Optional[str] = None) -> ClassSession:
        session = self.get_session(session_id)

        can_modify = (
            actor.role == "admin"
            or (actor.role == "teacher" and session.teacher_id == actor.id)
            or (actor.role == "student" and session.student_id == actor.id and action == "cancel")
        )
        if not can_modify:
            raise SchedulingError("Forbidden", status_code=403)
        if action not in SESSION_ACTIONS:
            raise SchedulingError("Invalid action")
        if action != "update_notes" and session.status != "scheduled":
            raise SchedulingError(f"Session is already {session.status}", status_code=409)

        now = utcnow()
        if action == "complete":
            session.status = "completed"
            session.completed_at = now
            if notes:
                session.teacher_notes = notes
            self._consume_session(session)
        elif action == "cancel":
            if actor.role == "student":
                hours_until = (ensure_utc(session.scheduled_at) - now).total_seconds() / 3600
                if hours_until < settings.STUDENT_CANCEL_NOTICE_HOURS:
                    raise SchedulingError(
                        f"Sessions must be cancelled at least {settings.STUDENT_CANCEL_NOTICE_HOURS} hours in advance"
                    )
            session.status = "cancelled"
            session.cancelled_at = now
            session.cancelled_by = actor.id
            if reason:
                session.cancellation_reason = reason
        elif action == "no_show":
            # A no-show still consumes the session
            session.status = "no_show"
            session.completed_at = now
            self._consume_session(session)
        else:
            session.teacher_notes = notes or ""

        self.db.commit()
        self.db.refresh(session)
        logger.info(f"Session {session.id}: {action} by {actor.role} {actor.id}")
        return session

    def _consume_session(self, session: ClassSession) -> None:
        subscription = session.subscription
        if subscription is not None:
            subscription.sessions_used = (subscription.sessions_used or 0) + 1

    # Queries

    def list_sessions(self, actor: Profile, student_id=None, teacher_id=None, status: Optional[str] = None,
                      start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[ClassSession]:
        query = self.db.query(ClassSession).options(
            joinedload(ClassSession.student), joinedload(ClassSession.teacher)
        )
        if actor.role == "student":
            query = query.filter(ClassSession.student_id == actor.id)
        elif actor.role == "teacher":
            query = query.filter(ClassSession.teacher_id == actor.id)

        if student_id and actor.role != "student":
            query = query.filter(ClassSession.student_id == student_id)
        if teacher_id:
            query = query.filter(ClassSession.teacher_id == teacher_id)
        if status:
            query = query.filter(ClassSession.status == status)
        if start:
            query = query.filter(ClassSession.scheduled_at >= start)
        if end:
            query = query.filter(ClassSession.scheduled_at <= end)
        return query.order_by(ClassSession.scheduled_at.asc()).all()


def confirmation_emails(sessions: List[ClassSession]) -> List[Dict[str, Any]]:
    """One confirmation per party for the first session, noting any additional classes booked with it."""
    if not sessions:
        return []
    first = min(sessions, key=lambda s: ensure_utc(s.scheduled_at))
    local = ensure_utc(first.scheduled_at).astimezone(school_tz())
    payloads = []
    for person in (first.student, first.teacher):
        if person is None or not person.email:
            continue
        lang = safe_lang(person.preferred_language)
        payloads.append({
            "email": person.email,
            "lang": lang,
            "recipient_name": person.display_name,
            "date": format_long_date(local, lang),
            "time_str": format_time(local),
            "duration": first.duration_minutes,
            "meet_link": first.meet_link,
            "extra_classes": len(sessions) - 1,
        })
    return payloads


def send_confirmation_emails(payloads: List[Dict[str, Any]]) -> None:
    for payload in payloads:
        result = email_service.send_class_confirmation(**payload)
        if not result.get("success"):
            logger.warning(f"Confirmation email to {payload['email']} not sent: {result.get('error')}")
