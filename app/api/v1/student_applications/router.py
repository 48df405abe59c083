from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.enrollments import service as enrollment_service
from app.api.v1.enrollments.schemas import SelectInstructorRequest, SelectInstructorResponse
from app.auth.dependencies import get_current_admin
from app.core.enums import ApplicationStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.notifications.outbox import dispatch_after_transition

from .schemas import (
    LegacyEnrollRequest,
    StudentApplicationCreate,
    StudentApplicationCreated,
    StudentApplicationResponse,
)
from . import service

router = APIRouter(tags=["student-applications"])


@router.post(
    "/api/v1/public/student-applications",
    response_model=StudentApplicationCreated,
    status_code=status.HTTP_201_CREATED,
)
async def submit_student_application(
    payload: StudentApplicationCreate,
    db: AsyncSession = Depends(get_db),
) -> StudentApplicationCreated:
    result = await service.submit_student_application(db, payload)
    await dispatch_after_transition(db)
    return result


@router.post(
    "/api/v1/applications/enroll",
    response_model=StudentApplicationCreated,
    status_code=status.HTTP_201_CREATED,
)
async def legacy_enroll(
    payload: LegacyEnrollRequest,
    db: AsyncSession = Depends(get_db),
) -> StudentApplicationCreated:
    """Old enroll form kept for existing pages. Same as a REMOTE student application."""
    try:
        application = payload.to_application()
    except ValueError as e:
        raise ServiceError(str(e), status.HTTP_400_BAD_REQUEST).to_http()
    result = await service.submit_student_application(db, application)
    await dispatch_after_transition(db)
    return result


@router.post(
    "/api/v1/public/student-applications/{application_id}/select-instructor",
    response_model=SelectInstructorResponse,
)
async def select_instructor(
    application_id: int,
    payload: SelectInstructorRequest,
    db: AsyncSession = Depends(get_db),
) -> SelectInstructorResponse:
    """Student picks an instructor; creates the enrollment in BEFORE_PAYMENT."""
    try:
        result = await enrollment_service.select_instructor(db, application_id, payload.instructor_id)
    except ServiceError as e:
        raise e.to_http()
    await dispatch_after_transition(db)
    return result


@router.get(
    "/api/v1/admin/student-applications",
    response_model=List[StudentApplicationResponse],
    dependencies=[Depends(get_current_admin)],
)
async def list_student_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[StudentApplicationResponse]:
    return await service.list_student_applications(db, status_filter=status_filter)
