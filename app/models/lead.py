from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
import uuid

from app.database import Base

LEAD_STATUSES = ("new", "contacted", "discarded")


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=True)
    email = Column(String, nullable=False, index=True)
    interest = Column(String, default="general")
    lang = Column(String, default="es")
    status = Column(String, default="new")  # new, contacted, discarded
    consent = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
