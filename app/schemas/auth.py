from pydantic import BaseModel, EmailStr
from typing import Optional
from uuid import UUID


class SignIn(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    redirect_to: str


class ProfileResponse(BaseModel):
    id: UUID
    role: str
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    preferred_language: Optional[str] = None
    timezone: Optional[str] = None

    class Config:
        from_attributes = True
