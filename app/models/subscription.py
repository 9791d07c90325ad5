from sqlalchemy import Column, String, Integer, DateTime, Text, Boolean, Numeric, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database import Base

SUBSCRIPTION_STATUSES = ("active", "paused", "cancelled", "expired", "pending")
PAYMENT_STATUSES = ("succeeded", "pending", "failed", "refunded")


class Package(Base):
    __tablename__ = "packages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, unique=True, nullable=False)
    display_name = Column(JSON, nullable=False, default=dict)  # {"es": ..., "en": ..., "ru": ...}
    price_monthly = Column(Numeric(10, 2), nullable=False)
    sessions_per_month = Column(Integer, nullable=False)
    # Payment-provider price identifiers per commitment length
    price_1m = Column(String, nullable=True)
    price_3m = Column(String, nullable=True)
    price_6m = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(Uuid, ForeignKey("packages.id"), nullable=False)
    status = Column(String, default="pending")  # active, paused, cancelled, expired, pending
    duration_months = Column(Integer, nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    sessions_total = Column(Integer, nullable=False)
    sessions_used = Column(Integer, default=0)
    provider_subscription_id = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    student = relationship("Profile", back_populates="subscriptions")
    package = relationship("Package")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    subscription_id = Column(Uuid, ForeignKey("subscriptions.id"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, default="EUR")
    status = Column(String, default="pending")  # succeeded, pending, failed, refunded
    provider_payment_id = Column(String, unique=True, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    subscription = relationship("Subscription")
