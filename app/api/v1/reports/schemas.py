from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.core.enums import ReportStatus, ReportType


class ReportCreate(BaseModel):
    enrollment_id: int = Field(..., gt=0, alias="enrollmentId")
    type: ReportType
    title: str = Field(..., min_length=1, max_length=255)
    summary: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[float] = None
    raw_data: Optional[Any] = Field(None, alias="rawData")

    class Config:
        populate_by_name = True


class ReportCreated(BaseModel):
    report_id: int
    status: str


class ReportReview(BaseModel):
    status: ReportStatus
    note: Optional[str] = Field(None, max_length=2000)


class ReportResponse(BaseModel):
    """Admin view: includes review state."""

    id: int
    enrollment_id: int
    instructor_id: int
    type: str
    title: str
    summary: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[float] = None
    raw_data: Optional[Any] = None
    status: str
    review_note: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PortalReportResponse(BaseModel):
    """Student view of an approved report. Review fields are not exposed."""

    id: int
    enrollment_id: int
    type: str
    title: str
    summary: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[float] = None
    raw_data: Optional[Any] = None
    created_at: datetime

    class Config:
        from_attributes = True
