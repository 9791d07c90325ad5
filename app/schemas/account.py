from typing import Optional

from app.schemas.base import CamelModel


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    preferred_language: Optional[str] = None
    timezone: Optional[str] = None
