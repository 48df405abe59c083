from fastapi import APIRouter, Depends
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import AdminLoginResponse, InstructorLoginResponse, LoginRequest
from app.auth.services import login_admin, login_instructor
from app.core.exceptions import ServiceError
from app.db.session import get_db

router = APIRouter(tags=["auth"])


@router.post(
    "/api/v1/admin/auth/login",
    response_model=AdminLoginResponse,
    status_code=http_status.HTTP_200_OK,
)
async def admin_login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AdminLoginResponse:
    try:
        return await login_admin(db, payload)
    except ServiceError as e:
        raise e.to_http()


@router.post(
    "/api/v1/instructor/auth/login",
    response_model=InstructorLoginResponse,
    status_code=http_status.HTTP_200_OK,
)
async def instructor_login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> InstructorLoginResponse:
    try:
        return await login_instructor(db, payload)
    except ServiceError as e:
        raise e.to_http()
