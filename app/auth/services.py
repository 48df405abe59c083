"""Login flows for the three token audiences."""

import logging

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser
from app.auth.portal_codes import PortalCodeCheck, verify_portal_code
from app.auth.schemas import (
    AdminLoginResponse,
    InstructorLoginResponse,
    LoginRequest,
    PortalLoginRequest,
    PortalLoginResponse,
)
from app.auth.security import create_access_token, verify_password
from app.core.enums import InstructorStatus, TokenAudience
from app.core.exceptions import ErrorCode, ServiceError
from app.core.models import Instructor

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_PORTAL_LOGIN = "Invalid phone or code"


async def login_admin(db: AsyncSession, payload: LoginRequest) -> AdminLoginResponse:
    admin = (await db.execute(
        select(AdminUser).where(
            AdminUser.email == str(payload.email).strip(),
            AdminUser.is_active.is_(True),
        )
    )).scalar_one_or_none()
    if not admin or not verify_password(payload.password, admin.password_hash):
        raise ServiceError(INVALID_CREDENTIALS, status.HTTP_401_UNAUTHORIZED)
    token = create_access_token(
        subject={"id": admin.id, "role": admin.role, "email": admin.email},
        audience=TokenAudience.ADMIN,
    )
    return AdminLoginResponse(token=token, role=admin.role)


async def login_instructor(db: AsyncSession, payload: LoginRequest) -> InstructorLoginResponse:
    instructor = (await db.execute(
        select(Instructor).where(
            Instructor.email == str(payload.email).strip(),
            Instructor.status == InstructorStatus.ACTIVE.value,
        )
    )).scalar_one_or_none()
    if not instructor or not verify_password(payload.password, instructor.password_hash):
        raise ServiceError(INVALID_CREDENTIALS, status.HTTP_401_UNAUTHORIZED)
    token = create_access_token(
        subject={"id": instructor.id, "email": instructor.email, "name": instructor.name},
        audience=TokenAudience.INSTRUCTOR,
    )
    return InstructorLoginResponse(token=token)


async def login_portal(db: AsyncSession, payload: PortalLoginRequest) -> PortalLoginResponse:
    """Exchange phone + passcode for a PORTAL token. NO_CODE and INVALID_CODE look the same to the caller."""
    check = await verify_portal_code(db, payload.phone, payload.code)
    if check is not PortalCodeCheck.OK:
        logger.info("Portal login rejected: %s", check.value)
        raise ServiceError(INVALID_PORTAL_LOGIN, status.HTTP_401_UNAUTHORIZED, ErrorCode.UNAUTHENTICATED)
    token = create_access_token(subject={"phone": payload.phone}, audience=TokenAudience.PORTAL)
    return PortalLoginResponse(token=token)
