from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks, Request
from sqlalchemy.orm import Session
from email_validator import validate_email, EmailNotValidError
import logging

from app.database import get_db
from app.schemas.lead import LeadCreate
from app.models.lead import Lead
from app.core.i18n import safe_lang
from app.services.captcha_service import captcha_service
from app.services.email_service import email_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _notify_school(name, email, interest, lang):
    result = email_service.send_lead_notification(name, email, interest, lang)
    if not result["success"]:
        logger.warning(f"Lead notification for {email} not sent: {result['message']}")


@router.post("/subscribe")
async def subscribe(
    data: LeadCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Lead capture from the marketing site"""
    try:
        email = validate_email(data.email or "", check_deliverability=False).normalized
    except EmailNotValidError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email inválido")

    if not data.consent:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Consent is required")

    verification = captcha_service.verify(data.captcha_token, request.client.host if request.client else None)
    if not verification["success"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Captcha verification failed")

    lead = Lead(
        name=(data.name or "").strip() or None,
        email=email,
        interest=data.interest or "general",
        lang=safe_lang(data.lang),
        status="new",
        consent=True,
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info(f"Lead {lead.id} captured ({lead.interest})")

    background_tasks.add_task(_notify_school, lead.name, lead.email, lead.interest, lead.lang)
    return {"message": "Success"}
