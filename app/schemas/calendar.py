from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from uuid import UUID

from app.schemas.base import CamelModel, as_school_time
from app.utils.timezone import ensure_utc


class PersonBrief(BaseModel):
    id: UUID
    full_name: Optional[str] = None
    email: str

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    id: UUID
    subscription_id: UUID
    student_id: UUID
    teacher_id: Optional[UUID] = None
    scheduled_at: datetime
    duration_minutes: int
    status: str
    meet_link: Optional[str] = None
    teacher_notes: Optional[str] = None
    reminder_sent: bool = False
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    student: Optional[PersonBrief] = None
    teacher: Optional[PersonBrief] = None

    class Config:
        from_attributes = True

    @field_validator("scheduled_at", "completed_at", "cancelled_at")
    @classmethod
    def _utc(cls, value):
        # Naive values read back from the database are UTC
        return ensure_utc(value)


class Slot(BaseModel):
    slot_start: str
    slot_end: str


class SlotList(BaseModel):
    slots: List[Slot]


class SessionCreate(CamelModel):
    student_id: UUID
    scheduled_at: datetime
    teacher_id: Optional[UUID] = None
    duration_minutes: Optional[int] = None
    meet_link: Optional[str] = None
    auto_create_meeting: bool = True

    @field_validator("scheduled_at")
    @classmethod
    def _school_time(cls, value):
        return as_school_time(value)


class BulkSessionCreate(CamelModel):
    student_id: UUID
    sessions: List[datetime] = Field(min_length=1)
    teacher_id: Optional[UUID] = None
    duration_minutes: Optional[int] = None
    meet_link: Optional[str] = None
    auto_create_meeting: bool = True

    @field_validator("sessions")
    @classmethod
    def _school_times(cls, values):
        return [as_school_time(v) for v in values]


class RecurringSessionCreate(CamelModel):
    student_id: UUID
    day_of_week: int
    time: str
    start_date: date
    end_date: Optional[date] = None
    teacher_id: Optional[UUID] = None
    duration_minutes: Optional[int] = None
    meet_link: Optional[str] = None
    auto_create_meeting: bool = True


class RecurringSessionResult(BaseModel):
    created: int
    total_requested: int
    sessions: List[SessionResponse]
    errors: Optional[List[str]] = None


class SessionAction(CamelModel):
    session_id: UUID
    action: str
    notes: Optional[str] = None
    reason: Optional[str] = None


class AvailabilityCreate(CamelModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    teacher_id: Optional[UUID] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _clock_time(cls, value):
        try:
            parsed = datetime.strptime(value, "%H:%M")
        except ValueError:
            raise ValueError("must be a HH:MM time between 00:00 and 23:59")
        # Zero-padded so windows compare as strings
        return parsed.strftime("%H:%M")


class AvailabilityResponse(BaseModel):
    id: UUID
    teacher_id: UUID
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool

    class Config:
        from_attributes = True


class StudentNotesUpdate(CamelModel):
    student_id: Optional[UUID] = None
    notes: Optional[str] = None


class AvailabilityDelete(CamelModel):
    id: Optional[UUID] = None
