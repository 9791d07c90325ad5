from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import uuid

from app.auth.jwt import decode_token
from app.core.config import settings
from app.database import get_db
from app.models.profile import Profile

# auto_error=False so that the session cookie can be used instead of the header
security = HTTPBearer(auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def resolve_user(token: Optional[str], db: Session) -> Optional[Profile]:
    """Profile behind a token, or None when the token is missing, invalid or stale."""
    if not token:
        return None
    payload = decode_token(token)
    if payload is None or payload.get("sub") is None:
        return None
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        return None
    return db.query(Profile).filter(Profile.id == user_id).first()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """Get current user from the Bearer token or the session cookie"""
    user = resolve_user(_token_from_request(request, credentials), db)
    if user is None:
        raise _credentials_exception()
    return user


def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[Profile]:
    return resolve_user(_token_from_request(request, credentials), db)


def get_current_staff(current_user: Profile = Depends(get_current_user)) -> Profile:
    """Teacher or admin"""
    if current_user.role not in ("teacher", "admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )
    return current_user


def get_current_admin(current_user: Profile = Depends(get_current_user)) -> Profile:
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden. Admin privileges required."
        )
    return current_user
