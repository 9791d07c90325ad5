from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.database import get_db
from app.schemas.auth import SignIn, Token, ProfileResponse
from app.models.profile import Profile
from app.auth.jwt import create_access_token, verify_password
from app.auth.dependencies import get_current_user, get_current_user_optional
from app.auth.redirects import role_home
from app.core.config import settings
from app.core.i18n import safe_lang

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signin", response_model=Token)
async def signin(credentials: SignIn, response: Response, db: Session = Depends(get_db)):
    """Sign in with email and password; the token is returned and also set as a cookie"""
    user = db.query(Profile).filter(Profile.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": str(user.id), "role": user.role, "email": user.email})
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    logger.info(f"User {user.id} signed in as {user.role}")
    return Token(
        access_token=access_token,
        token_type="bearer",
        redirect_to=role_home(user.role, safe_lang(user.preferred_language)),
    )


@router.post("/signout")
async def signout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True}


@router.get("/me", response_model=ProfileResponse)
async def me(current_user: Profile = Depends(get_current_user)):
    return current_user


@router.get("/post-login")
async def post_login(lang: Optional[str] = None, current_user: Optional[Profile] = Depends(get_current_user_optional)):
    """Role-based redirect after signing in"""
    lang = safe_lang(lang)
    if current_user is None:
        logger.info("[post-login] No user found, redirecting to login")
        return RedirectResponse(f"/{lang}/login", status_code=status.HTTP_302_FOUND)
    return RedirectResponse(role_home(current_user.role, lang), status_code=status.HTTP_302_FOUND)
