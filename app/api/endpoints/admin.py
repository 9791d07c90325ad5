from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from typing import List
import logging

from app.database import get_db
from app.schemas.admin import TeacherAssignment, LeadStatusUpdate
from app.schemas.lead import LeadResponse
from app.models.profile import Profile, StudentTeacher
from app.models.lead import Lead, LEAD_STATUSES
from app.auth.dependencies import get_current_admin
from app.utils.timezone import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_pair(data: TeacherAssignment):
    if not data.student_id or not data.teacher_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing studentId or teacherId"
        )


@router.post("/assign-teacher")
async def assign_teacher(
    data: TeacherAssignment,
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Make ``teacherId`` the student's primary teacher"""
    _require_pair(data)

    student = db.query(Profile).filter(Profile.id == data.student_id, Profile.role == "student").first()
    teacher = db.query(Profile).filter(Profile.id == data.teacher_id, Profile.role.in_(("teacher", "admin"))).first()
    if not student or not teacher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student or teacher not found")

    primary = db.query(StudentTeacher).filter(
        StudentTeacher.student_id == student.id,
        StudentTeacher.is_primary.is_(True)
    ).first()
    pairing = db.query(StudentTeacher).filter(
        StudentTeacher.student_id == student.id,
        StudentTeacher.teacher_id == teacher.id
    ).first()

    if pairing is not None:
        # Promote the existing pairing; the previous primary row is replaced
        if primary is not None and primary.id != pairing.id:
            db.delete(primary)
        pairing.is_primary = True
        pairing.assigned_at = utcnow()
    elif primary is not None:
        primary.teacher_id = teacher.id
        primary.assigned_at = utcnow()
    else:
        db.add(StudentTeacher(student_id=student.id, teacher_id=teacher.id, is_primary=True, assigned_at=utcnow()))

    db.commit()
    logger.info(f"Teacher {teacher.id} assigned to student {student.id} by admin {current_admin.id}")
    return {"success": True, "message": "Teacher successfully assigned"}


@router.post("/remove-teacher")
async def remove_teacher(
    data: TeacherAssignment,
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    _require_pair(data)
    deleted = db.query(StudentTeacher).filter(
        StudentTeacher.student_id == data.student_id,
        StudentTeacher.teacher_id == data.teacher_id
    ).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Removed {deleted} pairing(s) student {data.student_id} / teacher {data.teacher_id}")
    return {"success": True}


@router.get("/users")
async def list_users(
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Teachers, and students with their active subscription and primary teacher"""
    teachers = db.query(Profile).filter(Profile.role == "teacher").order_by(Profile.full_name).all()
    students = (
        db.query(Profile)
        .options(joinedload(Profile.subscriptions), joinedload(Profile.teacher_assignments).joinedload(StudentTeacher.teacher))
        .filter(Profile.role == "student")
        .order_by(Profile.created_at.desc())
        .all()
    )

    formatted_students = []
    for student in students:
        active = next((s for s in student.subscriptions if s.status == "active"), None)
        primary = next((a.teacher for a in student.teacher_assignments if a.is_primary), None)
        formatted_students.append({
            "id": str(student.id),
            "fullName": student.full_name,
            "email": student.email,
            "createdAt": student.created_at.isoformat() if student.created_at else None,
            "activeSubscription": {
                "id": str(active.id),
                "status": active.status,
                "sessions_total": active.sessions_total,
                "sessions_used": active.sessions_used,
                "package": {"name": active.package.name, "display_name": active.package.display_name},
            } if active else None,
            "primaryTeacher": {"id": str(primary.id), "full_name": primary.full_name} if primary else None,
        })

    return {
        "teachers": [{"id": str(t.id), "full_name": t.full_name, "email": t.email} for t in teachers],
        "students": formatted_students,
    }


@router.get("/leads", response_model=List[LeadResponse])
async def list_leads(
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return db.query(Lead).order_by(Lead.created_at.desc()).all()


@router.put("/leads")
async def update_lead_status(
    data: LeadStatusUpdate,
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    if not data.lead_id or not data.new_status:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing leadId or newStatus parameters")
    if data.new_status not in LEAD_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid status value. Must be new, contacted, or discarded"
        )

    lead = db.query(Lead).filter(Lead.id == data.lead_id).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    lead.status = data.new_status
    db.commit()
    return {"success": True}
