from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
from uuid import UUID
import logging

from app.database import get_db
from app.models.profile import Profile
from app.auth.dependencies import get_current_user_optional
from app.auth.redirects import campus_redirect, role_home
from app.core.config import settings
from app.core.i18n import is_supported, labels, translate
from app.services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter()


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


def _check_lang(lang: str):
    if not is_supported(lang):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


def _page(name: str, lang: str, user: Optional[Profile], **data):
    return {
        "page": name,
        "lang": lang,
        "title": translate(lang, f"{name}.title"),
        "labels": labels(lang, "campus"),
        "user": {"id": str(user.id), "role": user.role, "full_name": user.full_name, "email": user.email} if user else None,
        **data,
    }


# Unprefixed routes go to the default locale

@router.get("/login", include_in_schema=False)
async def login_default():
    return _redirect(f"/{settings.DEFAULT_LANG}/login")


@router.get("/campus", include_in_schema=False)
async def campus_default():
    return _redirect(f"/{settings.DEFAULT_LANG}/campus")


@router.get("/campus/{section}", include_in_schema=False)
async def campus_section_default(section: str):
    return _redirect(f"/{settings.DEFAULT_LANG}/campus/{section}")


@router.get("/{lang}/login")
async def login_page(lang: str, current_user: Optional[Profile] = Depends(get_current_user_optional)):
    _check_lang(lang)
    if current_user is not None:
        return _redirect(role_home(current_user.role, lang))
    return {"page": "login", "lang": lang, "title": translate(lang, "login.title")}


@router.get("/{lang}/campus")
async def student_campus(
    lang: str,
    current_user: Optional[Profile] = Depends(get_current_user_optional),
    db: Session = Depends(get_db)
):
    _check_lang(lang)
    target = campus_redirect(current_user.role if current_user else None, None, lang)
    if target:
        return _redirect(target)
    return _page("campus.student", lang, current_user, **DashboardService(db).student_home(current_user, lang))


@router.get("/{lang}/campus/teacher")
async def teacher_campus(
    lang: str,
    week: Optional[date] = None,
    current_user: Optional[Profile] = Depends(get_current_user_optional),
    db: Session = Depends(get_db)
):
    _check_lang(lang)
    target = campus_redirect(current_user.role if current_user else None, "teacher", lang)
    if target:
        return _redirect(target)
    return _page("campus.teacher", lang, current_user, **DashboardService(db).teacher_week(current_user, lang, week))


@router.get("/{lang}/campus/admin")
async def admin_campus(
    lang: str,
    view: str = "week",
    day: Optional[date] = None,
    teacherId: Optional[UUID] = None,
    current_user: Optional[Profile] = Depends(get_current_user_optional),
    db: Session = Depends(get_db)
):
    _check_lang(lang)
    target = campus_redirect(current_user.role if current_user else None, "admin", lang)
    if target:
        return _redirect(target)
    calendar = DashboardService(db).admin_calendar(
        current_user, lang, view, day, str(teacherId) if teacherId else None
    )
    return _page("campus.admin", lang, current_user, **calendar)
