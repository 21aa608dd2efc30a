import re
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from app.models.enums import UserRole

_PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    firstName: str = Field(min_length=1, max_length=50)
    lastName: str = Field(min_length=1, max_length=50)
    phone: Optional[str] = None
    role: Optional[UserRole] = None

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not _PHONE_RE.match(v):
            raise ValueError("Please enter a valid phone number")
        return v

class CheckUserRequest(BaseModel):
    identifier: Optional[str] = None

class LoginRequest(BaseModel):
    email: str
    password: str

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: dict = {}

class RefreshRequest(BaseModel):
    refresh_token: str
