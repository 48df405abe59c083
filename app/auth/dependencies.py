from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser
from app.auth.schemas import CurrentAdmin, CurrentInstructor, PortalUser
from app.auth.security import decode_access_token
from app.core.enums import InstructorStatus, TokenAudience
from app.core.exceptions import ErrorCode, error_detail
from app.core.models import Instructor
from app.db.session import get_db


bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated(message: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error_detail(ErrorCode.UNAUTHENTICATED, message),
        headers={"WWW-Authenticate": "Bearer"},
    )


def _claims_for(credentials: Optional[HTTPAuthorizationCredentials], audience: TokenAudience) -> Dict:
    """Decode the bearer token and require the given audience in its `typ` claim."""
    if credentials is None or not credentials.credentials:
        raise _unauthenticated("Missing token")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise _unauthenticated("Invalid token")
    if payload.get("typ") != audience.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_detail(ErrorCode.FORBIDDEN, "Wrong token type"),
        )
    return payload


def _int_claim(payload: Dict, key: str) -> int:
    try:
        return int(payload.get(key))
    except (TypeError, ValueError):
        raise _unauthenticated()


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentAdmin:
    payload = _claims_for(credentials, TokenAudience.ADMIN)
    admin_id = _int_claim(payload, "id")
    admin = await db.get(AdminUser, admin_id)
    if not admin or not admin.is_active:
        raise _unauthenticated()
    return CurrentAdmin(id=admin.id, role=admin.role, email=admin.email)


async def get_current_instructor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentInstructor:
    payload = _claims_for(credentials, TokenAudience.INSTRUCTOR)
    instructor_id = _int_claim(payload, "id")
    instructor = await db.get(Instructor, instructor_id)
    if not instructor or instructor.status != InstructorStatus.ACTIVE.value:
        raise _unauthenticated()
    return CurrentInstructor(id=instructor.id, email=instructor.email, name=instructor.name)


async def get_current_portal_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> PortalUser:
    payload = _claims_for(credentials, TokenAudience.PORTAL)
    phone = payload.get("phone")
    if not phone:
        raise _unauthenticated()
    return PortalUser(phone=phone)
