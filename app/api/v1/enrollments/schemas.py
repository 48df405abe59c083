from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


# ----- Transitions -----

class SelectInstructorRequest(BaseModel):
    instructor_id: int = Field(..., gt=0, alias="instructorId")

    class Config:
        populate_by_name = True


class SelectInstructorResponse(BaseModel):
    enrollment_id: int
    student_application_id: int
    instructor_id: int
    status: str


class PaymentRequestCreate(BaseModel):
    """Amount is re-checked in the service; a non-positive amount never reaches the store."""

    amount: Decimal = Field(..., description="Positive amount to charge")
    title: Optional[str] = Field(None, max_length=255)


class PaymentRequestResponse(BaseModel):
    payment_id: int
    enrollment_id: int
    status: str
    payment_url: Optional[str] = None


class MarkPaidResponse(BaseModel):
    enrollment_id: int
    status: str
    portal_code: str = Field(..., description="Plain 6-digit portal code; shown once")
    portal_code_expires_at: datetime


class SetPeriodRequest(BaseModel):
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def validate_range(self) -> "SetPeriodRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


# ----- Read models -----

class EnrollmentResponse(BaseModel):
    id: int
    student_application_id: int
    instructor_id: int
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    consulted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AdminEnrollmentItem(BaseModel):
    id: int
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    consulted_at: Optional[datetime] = None
    student_name: str
    student_phone: str
    instructor_name: str
    instructor_email: str


class PaymentResponse(BaseModel):
    id: int
    enrollment_id: int
    amount: Decimal
    title: str
    status: str
    product_id: Optional[str] = None
    product_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EnrollmentStudentInfo(BaseModel):
    id: int
    name: str
    phone: str
    subjects: List[str]
    mode: str
    region: Optional[str] = None


class InstructorEnrollmentItem(BaseModel):
    id: int
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    consulted_at: Optional[datetime] = None
    student_application: EnrollmentStudentInfo
    payments: List[PaymentResponse] = Field(default_factory=list)


class PortalEnrollmentItem(BaseModel):
    id: int
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    mode: str
    instructor_name: str
    instructor_region: Optional[str] = None
