import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.profile import Profile
from app.models.subscription import Package, Payment, Subscription
from app.services.payment_service import payment_service
from app.services.pricing import duration_from_price_id
from app.utils.timezone import add_months, utcnow

logger = logging.getLogger(__name__)

ACTIVATION_EVENTS = ("subscription.activated", "subscription.charged")
STATUS_EVENTS = {
    "subscription.cancelled": "cancelled",
    "subscription.halted": "paused",
    "subscription.paused": "paused",
    "subscription.resumed": "active",
}


class CheckoutError(ValueError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class SubscriptionService:
    def __init__(self, db: Session):
        self.db = db

    def active_packages(self):
        return (
            self.db.query(Package)
            .filter(Package.is_active.is_(True))
            .order_by(Package.price_monthly)
            .all()
        )

    def find_package_by_price(self, price_id: str) -> Tuple[Optional[Package], Optional[int]]:
        package = (
            self.db.query(Package)
            .filter(
                Package.is_active.is_(True),
                or_(Package.price_1m == price_id, Package.price_3m == price_id, Package.price_6m == price_id),
            )
            .first()
        )
        if package is None:
            return None, None
        return package, duration_from_price_id(package, price_id)

    def has_active_subscription(self, student_id) -> bool:
        return (
            self.db.query(Subscription.id)
            .filter(Subscription.student_id == student_id, Subscription.status == "active")
            .first()
            is not None
        )

    def start_checkout(self, student: Profile, price_id: Optional[str], lang: str) -> str:
        """Create a hosted checkout for ``price_id`` and return its URL."""
        if not price_id:
            raise CheckoutError("priceId is required")
        if self.has_active_subscription(student.id):
            raise CheckoutError("Ya tienes una suscripción activa")
        package, months = self.find_package_by_price(price_id)
        if package is None:
            raise CheckoutError("Invalid price ID")

        notes = {
            "student_id": str(student.id),
            "package_id": str(package.id),
            "price_id": price_id,
            "months": str(months),
            "lang": lang,
        }
        result = payment_service.create_subscription_checkout(price_id, notes, customer_email=student.email)
        if not result["success"] or not result.get("url"):
            raise CheckoutError("Payment provider error", status_code=502)

        logger.info(f"Checkout {result.get('subscription_id')} started for student {student.id} ({package.name}, {months}m)")
        return result["url"]

    # Webhook

    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        event_type = event.get("event")
        payload = event.get("payload") or {}
        entity = (payload.get("subscription") or {}).get("entity") or {}
        payment = (payload.get("payment") or {}).get("entity")

        if event_type in ACTIVATION_EVENTS:
            subscription, created = self.activate_subscription(entity, payment)
            return {"handled": subscription is not None, "created": created, "subscription": subscription}

        if event_type in STATUS_EVENTS:
            subscription = self._by_provider_id(entity.get("id"))
            if subscription is not None:
                subscription.status = STATUS_EVENTS[event_type]
                self.db.commit()
                logger.info(f"Subscription {subscription.id} marked {subscription.status}")
            return {"handled": subscription is not None, "created": False}

        logger.info(f"Ignoring webhook event {event_type}")
        return {"handled": False, "created": False}

    def _by_provider_id(self, provider_subscription_id: Optional[str]) -> Optional[Subscription]:
        if not provider_subscription_id:
            return None
        return (
            self.db.query(Subscription)
            .filter(Subscription.provider_subscription_id == provider_subscription_id)
            .first()
        )

    def activate_subscription(self, entity: Dict[str, Any],
                              payment: Optional[Dict[str, Any]] = None) -> Tuple[Optional[Subscription], bool]:
        """
        Create the local subscription for a paid provider subscription.
        Repeated deliveries only record payments that are not stored yet.
        """
        provider_id = entity.get("id")
        existing = self._by_provider_id(provider_id)
        if existing is not None:
            self._record_payment(existing, payment)
            self.db.commit()
            return existing, False

        notes = entity.get("notes") or {}
        student_id = notes.get("student_id")
        price_id = notes.get("price_id") or entity.get("plan_id")
        if not student_id or not price_id:
            logger.error("Missing notes in subscription webhook payload")
            return None, False

        student = self.db.query(Profile).filter(Profile.id == _as_uuid(student_id)).first()
        package, months = self.find_package_by_price(price_id)
        if student is None or package is None or months is None:
            logger.error(f"Package or student not found for price {price_id} / student {student_id}")
            return None, False

        starts_at = _timestamp(entity.get("current_start")) or utcnow()
        subscription = Subscription(
            student_id=student.id,
            package_id=package.id,
            status="active",
            duration_months=months,
            starts_at=starts_at,
            ends_at=add_months(starts_at, months),
            sessions_total=package.sessions_per_month * months,
            sessions_used=0,
            provider_subscription_id=provider_id,
        )
        self.db.add(subscription)
        if entity.get("customer_id") and not student.payment_customer_id:
            student.payment_customer_id = entity["customer_id"]
        self.db.flush()
        self._record_payment(subscription, payment, description=f"{package.name} - {months} month(s)")
        self.db.commit()
        self.db.refresh(subscription)
        logger.info(f"Subscription {subscription.id} activated for student {student.id}")
        return subscription, True

    def _record_payment(self, subscription: Subscription, payment: Optional[Dict[str, Any]],
                        description: Optional[str] = None) -> Optional[Payment]:
        if not payment or not payment.get("id"):
            return None
        exists = self.db.query(Payment.id).filter(Payment.provider_payment_id == payment["id"]).first()
        if exists is not None:
            return None

        row = Payment(
            student_id=subscription.student_id,
            subscription_id=subscription.id,
            # Provider amounts are in the currency's smallest unit
            amount=Decimal(payment.get("amount") or 0) / 100,
            currency=(payment.get("currency") or settings.PAYMENT_CURRENCY).upper(),
            status="succeeded" if payment.get("status") in ("captured", "authorized", None) else "failed",
            provider_payment_id=payment["id"],
            description=description or f"Subscription {subscription.id}",
        )
        self.db.add(row)
        return row


def _timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
