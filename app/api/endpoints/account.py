from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.schemas.account import ProfileUpdate
from app.models.profile import Profile
from app.auth.dependencies import get_current_user
from app.core.i18n import safe_lang
from app.utils.timezone import school_tz

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/update-profile")
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the caller's own profile"""
    current_user.full_name = profile_data.full_name or None
    current_user.phone = profile_data.phone or None
    current_user.preferred_language = safe_lang(profile_data.preferred_language)
    # Unknown zone names fall back to the school timezone
    current_user.timezone = school_tz(profile_data.timezone).key
    db.commit()
    logger.info(f"Profile {current_user.id} updated")
    return {"success": True}
