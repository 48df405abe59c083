from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.enrollments import service as enrollment_service
from app.api.v1.enrollments.schemas import PortalEnrollmentItem
from app.api.v1.reports import service as report_service
from app.api.v1.reports.schemas import PortalReportResponse
from app.auth.dependencies import get_current_portal_user
from app.auth.schemas import PortalLoginRequest, PortalLoginResponse, PortalUser
from app.auth.services import login_portal
from app.core.exceptions import ServiceError
from app.db.session import get_db

router = APIRouter(prefix="/api/v1/portal", tags=["portal"])


@router.post("/login", response_model=PortalLoginResponse)
async def login(
    payload: PortalLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> PortalLoginResponse:
    """Exchange phone + 6-digit code for a PORTAL token."""
    try:
        return await login_portal(db, payload)
    except ServiceError as e:
        raise e.to_http()


@router.get("/enrollments", response_model=List[PortalEnrollmentItem])
async def list_my_enrollments(
    db: AsyncSession = Depends(get_db),
    portal_user: PortalUser = Depends(get_current_portal_user),
) -> List[PortalEnrollmentItem]:
    return await enrollment_service.list_enrollments_for_phone(db, portal_user.phone)


@router.get("/enrollments/{enrollment_id}/reports", response_model=List[PortalReportResponse])
async def list_enrollment_reports(
    enrollment_id: int,
    db: AsyncSession = Depends(get_db),
    portal_user: PortalUser = Depends(get_current_portal_user),
) -> List[PortalReportResponse]:
    """Approved reports only."""
    try:
        return await report_service.list_portal_reports(db, portal_user.phone, enrollment_id)
    except ServiceError as e:
        raise e.to_http()
