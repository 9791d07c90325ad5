from app.database import Base

# Import all models here to ensure they are registered with SQLAlchemy
from .profile import Profile, StudentTeacher
from .subscription import Package, Subscription, Payment
from .session import ClassSession, TeacherAvailability
from .lead import Lead

__all__ = [
    "Base",
    "Profile",
    "StudentTeacher",
    "Package",
    "Subscription",
    "Payment",
    "ClassSession",
    "TeacherAvailability",
    "Lead",
]
