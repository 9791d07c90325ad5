from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID

from app.schemas.base import CamelModel


class LeadCreate(CamelModel):
    # Validated in the endpoint so that a bad address answers 400, not 422
    email: Optional[str] = None
    name: Optional[str] = None
    interest: Optional[str] = None
    lang: Optional[str] = None
    consent: bool = False
    captcha_token: Optional[str] = None


class LeadResponse(BaseModel):
    id: UUID
    name: Optional[str] = None
    email: str
    interest: Optional[str] = None
    lang: Optional[str] = None
    status: str
    consent: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
