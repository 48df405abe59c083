from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.enums import DeliveryMode, Gender, InstructorApplicationStatus
from app.core.validators import clean_str_list, is_valid_phone, normalize_phone

MAX_INSTRUCTOR_SUBJECTS = 8
MAX_INSTRUCTOR_MODES = 5


class InstructorApplicationCreate(BaseModel):
    """Instructor sign-up. photo_url points at an already uploaded image."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str
    email: EmailStr
    subjects: List[str]
    modes: List[DeliveryMode]
    region: Optional[str] = Field(None, max_length=100)
    education: Optional[str] = Field(None, max_length=255)
    career: Optional[str] = Field(None, max_length=2000)
    major: Optional[str] = Field(None, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=120)
    gender: Optional[str] = None
    photo_url: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("phone must have 10 or 11 digits")
        return normalize_phone(v)

    @field_validator("subjects", mode="before")
    @classmethod
    def clean_subjects(cls, v):
        subjects = clean_str_list(v, MAX_INSTRUCTOR_SUBJECTS)
        if not subjects:
            raise ValueError("subjects required")
        return subjects

    @field_validator("modes", mode="before")
    @classmethod
    def clean_modes(cls, v):
        modes = list(dict.fromkeys(clean_str_list(v, MAX_INSTRUCTOR_MODES)))
        if not modes:
            raise ValueError("modes required")
        return modes

    @field_validator("gender")
    @classmethod
    def known_gender_only(cls, v: Optional[str]) -> Optional[str]:
        # Unknown values are dropped rather than rejected
        if v and v.strip().upper() in Gender.__members__:
            return v.strip().upper()
        return None


class InstructorApplicationCreated(BaseModel):
    id: int
    status: str


class InstructorApplicationReview(BaseModel):
    status: InstructorApplicationStatus
    note: Optional[str] = Field(None, max_length=2000)


class InstructorApplicationReviewResult(BaseModel):
    id: int
    status: str
    instructor_id: Optional[int] = None
    temp_password: Optional[str] = Field(None, description="Only set on approval; shown once")


class InstructorApplicationResponse(BaseModel):
    id: int
    name: str
    phone: str
    email: str
    subjects: List[str]
    modes: List[str]
    region: Optional[str] = None
    education: Optional[str] = None
    career: Optional[str] = None
    major: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    photo_url: Optional[str] = None
    status: str
    review_note: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InstructorPublicResponse(BaseModel):
    """Public instructor card. No contact details."""

    id: int
    name: str
    subjects: List[str]
    modes: List[str]
    region: Optional[str] = None
    education: Optional[str] = None
    career: Optional[str] = None
    major: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    photo_url: Optional[str] = None

    class Config:
        from_attributes = True
