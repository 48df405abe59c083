from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.validators import is_valid_phone, normalize_phone


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminLoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    role: str


class InstructorLoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"


class PortalLoginRequest(BaseModel):
    phone: str
    code: str = Field(..., min_length=1, max_length=20)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("phone must have 10 or 11 digits")
        return normalize_phone(v)


class PortalLoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"


class CurrentAdmin(BaseModel):
    """Authenticated admin resolved from an ADMIN-audience token."""

    id: int
    role: str
    email: Optional[str] = None


class CurrentInstructor(BaseModel):
    """Authenticated instructor resolved from an INSTRUCTOR-audience token."""

    id: int
    email: Optional[str] = None
    name: Optional[str] = None


class PortalUser(BaseModel):
    """Student identity for the portal: the phone the passcode was issued to."""

    phone: str
