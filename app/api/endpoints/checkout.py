from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks, Request, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import json
import logging

from app.database import get_db
from app.schemas.checkout import CheckoutCreate, CheckoutResponse, PackageResponse
from app.models.profile import Profile
from app.auth.dependencies import get_current_user
from app.core.i18n import safe_lang
from app.services.email_service import email_service
from app.services.payment_service import payment_service
from app.services.pricing import price_table
from app.services.subscription_service import SubscriptionService, CheckoutError
from app.utils.timezone import ensure_utc, school_tz

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/packages", response_model=List[PackageResponse])
async def list_packages(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active packages with the total for each commitment length"""
    return [
        PackageResponse(
            id=package.id,
            name=package.name,
            display_name=package.display_name or {},
            price_monthly=package.price_monthly,
            sessions_per_month=package.sessions_per_month,
            prices=price_table(package),
        )
        for package in SubscriptionService(db).active_packages()
    ]


@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    data: CheckoutCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        url = SubscriptionService(db).start_checkout(current_user, data.price_id, safe_lang(data.lang))
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return CheckoutResponse(url=url)


def _send_welcome_email(email: str, student_name: str, package_name: str, months: int,
                        sessions_total: int, ends_at: str):
    result = email_service.send_subscription_confirmation(
        email, student_name, package_name, months, sessions_total, ends_at
    )
    if not result["success"]:
        logger.warning(f"Welcome email to {email} not sent: {result['error']}")


@router.post("/payments/webhook")
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_razorpay_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """Razorpay subscription events"""
    payload = (await request.body()).decode("utf-8")

    verification = payment_service.verify_webhook(payload, x_razorpay_signature)
    if not verification["success"]:
        code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if verification["error"] == "Webhook secret not configured"
            else status.HTTP_400_BAD_REQUEST
        )
        return JSONResponse(status_code=code, content={"error": verification["error"]})

    try:
        event = json.loads(payload)
    except ValueError:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid payload"})

    service = SubscriptionService(db)
    try:
        outcome = service.handle_event(event)
    except Exception as e:
        # Acknowledge anyway so the provider does not retry forever
        db.rollback()
        logger.error(f"Error processing webhook {event.get('event')}: {e}")
        return {"received": True}

    if outcome.get("created"):
        subscription = outcome["subscription"]
        student, package = subscription.student, subscription.package
        lang = safe_lang(student.preferred_language)
        background_tasks.add_task(
            _send_welcome_email,
            student.email,
            student.display_name,
            (package.display_name or {}).get(lang) or package.name,
            subscription.duration_months,
            subscription.sessions_total,
            ensure_utc(subscription.ends_at).astimezone(school_tz()).strftime("%d/%m/%Y"),
        )

    return {"received": True}
