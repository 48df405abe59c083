from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin, get_current_instructor
from app.auth.schemas import CurrentInstructor
from app.core.enums import ReportStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.notifications.outbox import dispatch_after_transition

from .schemas import ReportCreate, ReportCreated, ReportResponse, ReportReview
from . import service

instructor_router = APIRouter(prefix="/api/v1/instructor/reports", tags=["instructor-reports"])
admin_router = APIRouter(
    prefix="/api/v1/admin/reports",
    tags=["admin-reports"],
    dependencies=[Depends(get_current_admin)],
)


@instructor_router.post("", response_model=ReportCreated, status_code=status.HTTP_201_CREATED)
async def submit_report(
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
    current_instructor: CurrentInstructor = Depends(get_current_instructor),
) -> ReportCreated:
    """Submit a progress report. It stays hidden from the student until an admin approves it."""
    try:
        result = await service.submit_report(db, current_instructor.id, payload)
    except ServiceError as e:
        raise e.to_http()
    await dispatch_after_transition(db)
    return result


@admin_router.get("", response_model=List[ReportResponse])
async def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status", description="PENDING, APPROVED, REJECTED"),
    db: AsyncSession = Depends(get_db),
) -> List[ReportResponse]:
    return await service.list_reports(db, status_filter=status_filter)


@admin_router.put("/{report_id}/review", response_model=ReportResponse)
async def review_report(
    report_id: int,
    payload: ReportReview,
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """Approve or reject a report. Reviewing again overwrites the previous decision."""
    try:
        return await service.review_report(db, report_id, payload.status, payload.note)
    except ServiceError as e:
        raise e.to_http()
