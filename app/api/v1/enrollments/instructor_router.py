from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_instructor
from app.auth.schemas import CurrentInstructor
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.integrations.commerce import CommerceClient, get_commerce_client
from app.notifications.outbox import dispatch_after_transition

from .schemas import (
    EnrollmentResponse,
    InstructorEnrollmentItem,
    PaymentRequestCreate,
    PaymentRequestResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/instructor/enrollments", tags=["instructor-enrollments"])


@router.get("", response_model=List[InstructorEnrollmentItem])
async def list_my_enrollments(
    db: AsyncSession = Depends(get_db),
    current_instructor: CurrentInstructor = Depends(get_current_instructor),
) -> List[InstructorEnrollmentItem]:
    return await service.list_enrollments_for_instructor(db, current_instructor.id)


@router.put("/{enrollment_id}/consult-done", response_model=EnrollmentResponse)
async def consult_done(
    enrollment_id: int,
    db: AsyncSession = Depends(get_db),
    current_instructor: CurrentInstructor = Depends(get_current_instructor),
) -> EnrollmentResponse:
    """Record the consultation. Only the owning instructor may do this."""
    try:
        return await service.mark_consult_done(db, enrollment_id, current_instructor.id)
    except ServiceError as e:
        raise e.to_http()


@router.post("/{enrollment_id}/request-payment", response_model=PaymentRequestResponse)
async def request_payment(
    enrollment_id: int,
    payload: PaymentRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_instructor: CurrentInstructor = Depends(get_current_instructor),
    commerce: CommerceClient = Depends(get_commerce_client),
) -> PaymentRequestResponse:
    """Ask the student to pay. payment_url is null while no store link can be created."""
    try:
        result = await service.request_payment(
            db,
            enrollment_id,
            current_instructor.id,
            amount=payload.amount,
            title=payload.title,
            commerce=commerce,
        )
    except ServiceError as e:
        raise e.to_http()
    await dispatch_after_transition(db)
    return result
