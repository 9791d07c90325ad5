from fastapi import APIRouter, Depends, HTTPException, status, Header
from sqlalchemy.orm import Session
from typing import Optional
import hmac
import logging

from app.database import get_db
from app.core.config import settings
from app.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    expected = f"Bearer {settings.CRON_SECRET}"
    if not settings.CRON_SECRET or not authorization or not hmac.compare_digest(authorization, expected):
        logger.warning("[CRON] Unauthorized request to send-reminders")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.get("/send-reminders", dependencies=[Depends(verify_cron_secret)])
async def send_reminders(db: Session = Depends(get_db)):
    """Email reminders for classes starting in roughly 24 hours"""
    return ReminderService(db).send_reminders()
