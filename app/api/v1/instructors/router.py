from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin
from app.core.enums import DeliveryMode, InstructorApplicationStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.notifications.outbox import dispatch_after_transition

from .schemas import (
    InstructorApplicationCreate,
    InstructorApplicationCreated,
    InstructorApplicationResponse,
    InstructorApplicationReview,
    InstructorApplicationReviewResult,
    InstructorPublicResponse,
)
from . import service

router = APIRouter(tags=["instructors"])


@router.get("/api/v1/public/instructors", response_model=List[InstructorPublicResponse])
async def list_instructors(
    subject: Optional[str] = Query(None),
    mode: Optional[DeliveryMode] = Query(None),
    region: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[InstructorPublicResponse]:
    """Active instructors filtered by subject, delivery mode and region."""
    return await service.list_active_instructors(db, subject=subject, mode=mode, region=region)


@router.post(
    "/api/v1/public/instructor-applications",
    response_model=InstructorApplicationCreated,
    status_code=status.HTTP_201_CREATED,
)
async def submit_instructor_application(
    payload: InstructorApplicationCreate,
    db: AsyncSession = Depends(get_db),
) -> InstructorApplicationCreated:
    result = await service.submit_instructor_application(db, payload)
    await dispatch_after_transition(db)
    return result


@router.get(
    "/api/v1/admin/instructor-applications",
    response_model=List[InstructorApplicationResponse],
    dependencies=[Depends(get_current_admin)],
)
async def list_instructor_applications(
    status_filter: Optional[InstructorApplicationStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[InstructorApplicationResponse]:
    return await service.list_instructor_applications(db, status_filter=status_filter)


@router.put(
    "/api/v1/admin/instructor-applications/{application_id}/review",
    response_model=InstructorApplicationReviewResult,
    dependencies=[Depends(get_current_admin)],
)
async def review_instructor_application(
    application_id: int,
    payload: InstructorApplicationReview,
    db: AsyncSession = Depends(get_db),
) -> InstructorApplicationReviewResult:
    """Approve (creates or re-activates the instructor account) or reject an application."""
    try:
        result = await service.review_instructor_application(db, application_id, payload.status, payload.note)
    except ServiceError as e:
        raise e.to_http()
    await dispatch_after_transition(db)
    return result
