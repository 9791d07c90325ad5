from typing import Optional
from uuid import UUID

from app.schemas.base import CamelModel


class TeacherAssignment(CamelModel):
    student_id: Optional[UUID] = None
    teacher_id: Optional[UUID] = None


class LeadStatusUpdate(CamelModel):
    lead_id: Optional[UUID] = None
    new_status: Optional[str] = None
