from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.core.enums import DeliveryMode
from app.core.validators import clean_str_list, is_valid_phone, normalize_phone

MAX_STUDENT_SUBJECTS = 5


class StudentApplicationCreate(BaseModel):
    """Public application form. Phone is stored digits-only."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str
    subjects: List[str] = Field(..., description="Requested subjects in priority order; at most 5 kept")
    target: Optional[str] = Field(None, max_length=100)
    mode: DeliveryMode
    region: Optional[str] = Field(None, max_length=100)
    note: Optional[str] = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("phone must have 10 or 11 digits")
        return normalize_phone(v)

    @field_validator("subjects", mode="before")
    @classmethod
    def clean_subjects(cls, v):
        subjects = clean_str_list(v, MAX_STUDENT_SUBJECTS)
        if not subjects:
            raise ValueError("subjects required")
        return subjects

    @field_validator("target", "region", "note")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class LegacyEnrollRequest(BaseModel):
    """v1 enroll form: single `subject` or `subjects`, no mode (defaults to REMOTE)."""

    name: str
    phone: str
    subject: Optional[str] = None
    subjects: Optional[Union[List[str], str]] = None
    target: Optional[str] = None
    note: Optional[str] = None
    mode: Optional[DeliveryMode] = None

    def to_application(self) -> StudentApplicationCreate:
        subjects = self.subjects if self.subjects else ([self.subject] if self.subject else [])
        return StudentApplicationCreate(
            name=self.name,
            phone=self.phone,
            subjects=subjects,
            target=self.target,
            mode=self.mode or DeliveryMode.REMOTE,
            region=None,
            note=self.note,
        )


class StudentApplicationCreated(BaseModel):
    id: int
    status: str


class StudentApplicationResponse(BaseModel):
    id: int
    name: str
    phone: str
    subjects: List[str]
    target: Optional[str] = None
    mode: str
    region: Optional[str] = None
    note: Optional[str] = None
    status: str
    selected_instructor_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
