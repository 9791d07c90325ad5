from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database import Base

ROLES = ("admin", "teacher", "student")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    role = Column(String, nullable=False, default="student")  # admin, teacher, student
    full_name = Column(String, nullable=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    preferred_language = Column(String, default="es")
    timezone = Column(String, default="Europe/Madrid")
    notes = Column(Text, nullable=True)  # Teacher notes about the student
    payment_customer_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    subscriptions = relationship(
        "Subscription", back_populates="student", order_by="Subscription.created_at.desc()"
    )
    teacher_assignments = relationship(
        "StudentTeacher", foreign_keys="StudentTeacher.student_id", back_populates="student"
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]


class StudentTeacher(Base):
    __tablename__ = "student_teachers"
    __table_args__ = (UniqueConstraint("student_id", "teacher_id", name="uq_student_teacher"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    teacher_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    is_primary = Column(Boolean, default=False)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    student = relationship("Profile", foreign_keys=[student_id], back_populates="teacher_assignments")
    teacher = relationship("Profile", foreign_keys=[teacher_id])
