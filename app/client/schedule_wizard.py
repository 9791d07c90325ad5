"""
State behind the "schedule a class" wizard used by teachers and admins.

Pick student, teacher, date and duration; choose one of the teacher's free
slots or type a custom time; then book a single class or a weekly series.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from app.client.api_client import CampusAPIError, CampusClient
from app.utils.timezone import js_day_of_week, parse_datetime, school_tz

logger = logging.getLogger(__name__)

SLOTS_ERROR = "Error al cargar horarios disponibles"
SUBMIT_ERROR = "Error al programar la clase"


class ScheduleWizard:
    def __init__(self, client: CampusClient):
        self.client = client
        self.reset()

    def reset(self):
        self.step = 1
        self.student_id: Optional[str] = None
        self.teacher_id: Optional[str] = None
        self.date: Optional[str] = None
        self.duration = 60
        self.available_slots: List[Dict[str, str]] = []
        self.selected_slot: Optional[Dict[str, str]] = None
        self.use_custom_time = False
        self.custom_time = "09:00"
        self.meet_link = ""
        self.auto_create_meeting = True
        self.is_recurring = False
        self.recurring_end_date: Optional[str] = None
        self.recurring_result: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.error: Optional[str] = None

    def fetch_slots(self) -> List[Dict[str, str]]:
        """Load the teacher's free slots for the chosen date and duration."""
        if not self.date or not self.teacher_id or self.use_custom_time:
            return self.available_slots

        self.is_loading = True
        self.error = None
        try:
            self.available_slots = self.client.get_available_slots(self.teacher_id, self.date, self.duration)
        except CampusAPIError as e:
            logger.warning(f"Slot lookup failed: {e}")
            self.available_slots = []
            self.error = SLOTS_ERROR
        finally:
            self.is_loading = False
        self.selected_slot = None
        return self.available_slots

    def scheduled_at(self) -> Optional[str]:
        if self.use_custom_time:
            return f"{self.date}T{self.custom_time}:00"
        if self.selected_slot:
            return self.selected_slot["slot_start"]
        return None

    def _local_time(self, scheduled_at: str) -> str:
        if self.use_custom_time:
            return self.custom_time
        return parse_datetime(scheduled_at).astimezone(school_tz()).strftime("%H:%M")

    def submit(self) -> Optional[Dict[str, Any]]:
        """Book the class (or the weekly series). Returns the API response, or None when nothing was sent."""
        if not self.student_id or not self.teacher_id or not self.date:
            return None
        scheduled_at = self.scheduled_at()
        if scheduled_at is None:
            return None

        self.is_loading = True
        self.error = None
        self.recurring_result = None
        try:
            if self.is_recurring:
                result = self.client.create_recurring_sessions(
                    self.student_id,
                    self.teacher_id,
                    js_day_of_week(date.fromisoformat(self.date)),
                    self._local_time(scheduled_at),
                    self.date,
                    end_date=self.recurring_end_date or None,
                    duration_minutes=self.duration,
                    meet_link=self.meet_link or None,
                    auto_create_meeting=self.auto_create_meeting,
                )
                self.recurring_result = {"created": result.get("created", 0), "errors": result.get("errors")}
            else:
                result = self.client.create_session(
                    self.student_id,
                    self.teacher_id,
                    scheduled_at,
                    self.duration,
                    meet_link=self.meet_link or None,
                    auto_create_meeting=self.auto_create_meeting,
                )
            return result
        except CampusAPIError as e:
            logger.warning(f"Scheduling failed: {e}")
            self.error = SUBMIT_ERROR
            return None
        finally:
            self.is_loading = False


def generate_weekly_dates(start: date, at: str, count: int,
                          holidays: Optional[Iterable[date]] = None) -> List[datetime]:
    """
    ``count`` school-time datetimes one week apart starting on ``start`` at ``at`` (HH:MM).
    Holiday dates are dropped from the series, not replaced.
    """
    hours, minutes = (int(part) for part in at.split(":"))
    skip = set(holidays or ())
    current = datetime(start.year, start.month, start.day, hours, minutes, tzinfo=school_tz())

    dates = []
    for _ in range(count):
        if current.date() not in skip:
            dates.append(current)
        current = current + timedelta(days=7)
    return dates


def submit_bulk(client: CampusClient, student_id: str, teacher_id: str, dates: List[datetime],
                duration_minutes: int = 60) -> Dict[str, Any]:
    if not student_id or not dates:
        raise ValueError("A student and at least one date are required")
    return client.create_bulk_sessions(student_id, teacher_id, [d.isoformat() for d in dates], duration_minutes)
