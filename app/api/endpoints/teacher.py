from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging

from app.database import get_db
from app.schemas.calendar import AvailabilityCreate, AvailabilityDelete, AvailabilityResponse, StudentNotesUpdate
from app.models.profile import Profile, StudentTeacher
from app.models.session import TeacherAvailability
from app.auth.dependencies import get_current_staff

logger = logging.getLogger(__name__)

router = APIRouter()


def _target_teacher(current_user: Profile, teacher_id: Optional[UUID]):
    # Only admins may act on another teacher's calendar
    return teacher_id if current_user.role == "admin" and teacher_id else current_user.id


@router.get("/teacher/availability")
async def get_availability(
    teacherId: Optional[UUID] = None,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    rows = db.query(TeacherAvailability).filter(
        TeacherAvailability.teacher_id == _target_teacher(current_user, teacherId),
        TeacherAvailability.is_active.is_(True)
    ).order_by(TeacherAvailability.day_of_week, TeacherAvailability.start_time).all()
    return {"availability": [AvailabilityResponse.model_validate(r) for r in rows]}


@router.post("/teacher/availability", status_code=status.HTTP_201_CREATED)
async def add_availability(
    data: AvailabilityCreate,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    """Add a weekly availability window (0=Sunday)"""
    if data.start_time >= data.end_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="startTime must be before endTime")

    teacher_id = _target_teacher(current_user, data.teacher_id)
    existing = db.query(TeacherAvailability).filter(
        TeacherAvailability.teacher_id == teacher_id,
        TeacherAvailability.day_of_week == data.day_of_week,
        TeacherAvailability.start_time == data.start_time,
        TeacherAvailability.end_time == data.end_time
    ).first()

    if existing is not None and existing.is_active:
        return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "Slot already exists"})

    if existing is not None:
        # Previously removed window
        existing.is_active = True
        row = existing
    else:
        row = TeacherAvailability(
            teacher_id=teacher_id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_active=True
        )
        db.add(row)

    db.commit()
    db.refresh(row)
    return {"availability": AvailabilityResponse.model_validate(row)}


@router.delete("/teacher/availability")
async def delete_availability(
    data: AvailabilityDelete,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    if not data.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing availability id")

    query = db.query(TeacherAvailability).filter(TeacherAvailability.id == data.id)
    if current_user.role != "admin":
        query = query.filter(TeacherAvailability.teacher_id == current_user.id)
    row = query.first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability not found")

    # Soft delete
    row.is_active = False
    db.commit()
    return {"success": True}


@router.post("/update-student-notes")
async def update_student_notes(
    data: StudentNotesUpdate,
    current_user: Profile = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    if not data.student_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="studentId is required")

    if current_user.role != "admin":
        assignment = db.query(StudentTeacher).filter(
            StudentTeacher.teacher_id == current_user.id,
            StudentTeacher.student_id == data.student_id
        ).first()
        if not assignment:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student not assigned to you")

    student = db.query(Profile).filter(Profile.id == data.student_id, Profile.role == "student").first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    student.notes = data.notes or ""
    db.commit()
    logger.info(f"Notes updated for student {student.id} by {current_user.role} {current_user.id}")
    return {"success": True}
