from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.notifications.outbox import dispatch_after_transition

from .schemas import AdminEnrollmentItem, EnrollmentResponse, MarkPaidResponse, SetPeriodRequest
from . import service

router = APIRouter(
    prefix="/api/v1/admin/enrollments",
    tags=["admin-enrollments"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("", response_model=List[AdminEnrollmentItem])
async def list_enrollments(
    db: AsyncSession = Depends(get_db),
) -> List[AdminEnrollmentItem]:
    """Latest enrollments with student and instructor names."""
    return await service.list_enrollments_for_admin(db)


@router.put("/{enrollment_id}/set-period", response_model=EnrollmentResponse)
async def set_period(
    enrollment_id: int,
    payload: SetPeriodRequest,
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Set the tutoring period. Does not change status."""
    try:
        return await service.set_period(db, enrollment_id, payload.start_date, payload.end_date)
    except ServiceError as e:
        raise e.to_http()


@router.post("/{enrollment_id}/mark-paid", response_model=MarkPaidResponse)
async def mark_paid(
    enrollment_id: int,
    db: AsyncSession = Depends(get_db),
) -> MarkPaidResponse:
    """Mark the enrollment PAID and issue a portal code. The plain code is only in this response and the ledger."""
    try:
        result = await service.mark_paid(db, enrollment_id)
    except ServiceError as e:
        raise e.to_http()
    await dispatch_after_transition(db)
    return result
