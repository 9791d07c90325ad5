from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
from uuid import UUID
import logging

from app.database import get_db
from app.schemas.calendar import (
    SessionCreate, BulkSessionCreate, RecurringSessionCreate, RecurringSessionResult,
    SessionAction, SessionResponse, SlotList,
)
from app.models.profile import Profile
from app.auth.dependencies import get_current_user, get_current_staff
from app.core.config import settings
from app.services.scheduling_service import (
    SchedulingService, SchedulingError, confirmation_emails, send_confirmation_emails,
)
from app.utils.timezone import parse_datetime

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(error: SchedulingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=str(error))


@router.get("/available-slots", response_model=SlotList)
async def available_slots(
    teacherId: Optional[UUID] = None,
    day: Optional[date] = Query(None, alias="date"),
    duration: int = settings.DEFAULT_SESSION_MINUTES,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Free slots for a teacher on a given day"""
    if not teacherId or not day:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="teacherId and date are required")
    try:
        slots = SchedulingService(db).available_slots(teacherId, day, duration)
    except SchedulingError as e:
        raise _http_error(e)
    return {"slots": slots}


@router.get("/sessions")
async def list_sessions(
    studentId: Optional[UUID] = None,
    teacherId: Optional[UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        start = parse_datetime(from_) if from_ else None
        end = parse_datetime(to) if to else None
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from/to must be ISO-8601 datetimes")

    sessions = SchedulingService(db).list_sessions(current_user, studentId, teacherId, status_filter, start, end)
    return {"sessions": [SessionResponse.model_validate(s) for s in sessions]}


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    data: SessionCreate,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    """Schedule one class"""
    try:
        session = SchedulingService(db).create_session(
            current_user,
            data.student_id,
            data.scheduled_at,
            teacher_id=data.teacher_id,
            duration_minutes=data.duration_minutes,
            meet_link=data.meet_link,
            auto_create_meeting=data.auto_create_meeting,
        )
    except SchedulingError as e:
        raise _http_error(e)

    background_tasks.add_task(send_confirmation_emails, confirmation_emails([session]))
    return {"session": SessionResponse.model_validate(session)}


@router.post("/bulk-sessions", status_code=status.HTTP_201_CREATED)
async def create_bulk_sessions(
    data: BulkSessionCreate,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    """Schedule several classes at once; nothing is booked if any date conflicts"""
    try:
        sessions = SchedulingService(db).create_bulk_sessions(
            current_user,
            data.student_id,
            data.sessions,
            teacher_id=data.teacher_id,
            duration_minutes=data.duration_minutes,
            meet_link=data.meet_link,
            auto_create_meeting=data.auto_create_meeting,
        )
    except SchedulingError as e:
        raise _http_error(e)

    # One summary email per party
    background_tasks.add_task(send_confirmation_emails, confirmation_emails(sessions))
    return {
        "success": True,
        "count": len(sessions),
        "sessions": [SessionResponse.model_validate(s) for s in sessions],
    }


@router.post("/recurring-sessions", status_code=status.HTTP_201_CREATED, response_model=RecurringSessionResult)
async def create_recurring_sessions(
    data: RecurringSessionCreate,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    """Book the same weekday and time every week until endDate or the end of the subscription"""
    try:
        result = SchedulingService(db).create_recurring_sessions(
            current_user,
            data.student_id,
            data.day_of_week,
            data.time,
            data.start_date,
            end_date=data.end_date,
            teacher_id=data.teacher_id,
            duration_minutes=data.duration_minutes,
            meet_link=data.meet_link,
            auto_create_meeting=data.auto_create_meeting,
        )
    except SchedulingError as e:
        raise _http_error(e)

    if result["sessions"]:
        background_tasks.add_task(send_confirmation_emails, confirmation_emails(result["sessions"]))
    result["sessions"] = [SessionResponse.model_validate(s) for s in result["sessions"]]
    return result


@router.post("/session-action")
async def session_action(
    data: SessionAction,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """complete / cancel / no_show / update_notes"""
    try:
        session = SchedulingService(db).apply_action(
            current_user, data.session_id, data.action, notes=data.notes, reason=data.reason
        )
    except SchedulingError as e:
        raise _http_error(e)
    return {"success": True, "session": SessionResponse.model_validate(session)}
