import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.i18n import format_long_date, format_time, safe_lang
from app.models.session import ClassSession
from app.services.email_service import email_service
from app.utils.timezone import ensure_utc, school_tz, utcnow

logger = logging.getLogger(__name__)


class ReminderService:
    """Day-before class reminders for students and teachers."""

    def __init__(self, db: Session):
        self.db = db

    def sessions_needing_reminders(self, now: Optional[datetime] = None):
        now = ensure_utc(now) if now else utcnow()
        window_start = now + timedelta(hours=settings.REMINDER_WINDOW_START_HOURS)
        window_end = now + timedelta(hours=settings.REMINDER_WINDOW_END_HOURS)
        logger.info(f"Looking for sessions between {window_start.isoformat()} and {window_end.isoformat()}")
        return (
            self.db.query(ClassSession)
            .options(joinedload(ClassSession.student), joinedload(ClassSession.teacher))
            .filter(
                ClassSession.status == "scheduled",
                ClassSession.reminder_sent.is_(False),
                ClassSession.scheduled_at >= window_start,
                ClassSession.scheduled_at <= window_end,
            )
            .order_by(ClassSession.scheduled_at)
            .all()
        )

    def _send(self, recipient, session: ClassSession, **counterpart) -> Dict[str, Any]:
        lang = safe_lang(recipient.preferred_language)
        local = ensure_utc(session.scheduled_at).astimezone(school_tz())
        return email_service.send_class_reminder(
            recipient.email,
            lang,
            recipient.display_name,
            format_long_date(local, lang),
            format_time(local),
            meet_link=session.meet_link,
            **counterpart,
        )

    def send_reminders(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Email both parties of every scheduled class starting within the reminder window
        and flag the session so it is not reminded twice.
        """
        result = {
            "success": True,
            "timestamp": utcnow().isoformat(),
            "processed": 0,
            "sent": 0,
            "failed": 0,
            "errors": [],
        }

        sessions = self.sessions_needing_reminders(now)
        logger.info(f"Found {len(sessions)} sessions needing reminders")

        for session in sessions:
            result["processed"] += 1
            student, teacher = session.student, session.teacher

            if student is None or teacher is None or not student.email or not teacher.email:
                result["errors"].append(f"Session {session.id}: Missing email addresses")
                continue

            deliveries = (
                ("student", student, {"teacher_name": teacher.display_name}),
                ("teacher", teacher, {"student_name": student.display_name}),
            )
            for label, recipient, counterpart in deliveries:
                outcome = self._send(recipient, session, **counterpart)
                if outcome.get("success"):
                    result["sent"] += 1
                else:
                    result["errors"].append(
                        f"Session {session.id}: Failed to send to {label} {recipient.email}"
                    )

            session.reminder_sent = True
            self.db.commit()

        # Two emails per session
        result["failed"] = result["processed"] * 2 - result["sent"]
        logger.info(f"Reminders completed: {result['sent']} emails sent, {result['failed']} failed")
        return result
