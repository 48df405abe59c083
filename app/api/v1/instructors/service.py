"""
Instructor applications and the public instructor directory.
Approving an application creates the Instructor account, or re-activates the one with the same email.
"""

import json
import logging
import secrets
import string
from datetime import datetime
from typing import List, Optional

from fastapi import status
from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import hash_password
from app.core.enums import (
    INSTRUCTOR_DESK_ROLES,
    DeliveryMode,
    InstructorApplicationStatus,
    InstructorStatus,
    NotificationEvent,
)
from app.core.exceptions import ServiceError
from app.core.models import Instructor, InstructorApplication
from app.notifications import outbox

from .schemas import (
    InstructorApplicationCreate,
    InstructorApplicationCreated,
    InstructorApplicationResponse,
    InstructorApplicationReviewResult,
    InstructorPublicResponse,
)

logger = logging.getLogger(__name__)

PUBLIC_LIST_LIMIT = 50
LIKE_ESCAPE = "!"

_PROFILE_FIELDS = (
    "name", "phone", "subjects", "modes", "region", "education",
    "career", "major", "age", "gender", "photo_url",
)


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _json_list_contains(column, value: str):
    """
    "List contains value" on a JSON string-list column, evaluated in SQL.
    Matches the JSON-encoded element inside the stored text, which is written by the same
    json.dumps on every dialect.
    """
    needle = _escape_like(json.dumps(value))
    return cast(column, String).like(f"%{needle}%", escape=LIKE_ESCAPE)


def generate_temp_password(length: int = 10) -> str:
    """Random alphanumeric password with a trailing '!'. Uses secrets."""
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length)) + "!"


async def list_active_instructors(
    db: AsyncSession,
    subject: Optional[str] = None,
    mode: Optional[DeliveryMode] = None,
    region: Optional[str] = None,
) -> List[InstructorPublicResponse]:
    """
    ACTIVE instructors, newest first, at most 50.
    Region matches instructors without a region or whose region contains the query.
    Subject/mode match when the instructor's list contains the value.
    """
    q = select(Instructor).where(Instructor.status == InstructorStatus.ACTIVE.value)
    region = (region or "").strip()
    if region:
        q = q.where(
            or_(
                Instructor.region.is_(None),
                Instructor.region == "",
                Instructor.region.like(f"%{_escape_like(region)}%", escape=LIKE_ESCAPE),
            )
        )
    subject = (subject or "").strip()
    if subject:
        q = q.where(_json_list_contains(Instructor.subjects, subject))
    if mode:
        q = q.where(_json_list_contains(Instructor.modes, mode.value))
    q = q.order_by(Instructor.id.desc()).limit(PUBLIC_LIST_LIMIT)
    result = await db.execute(q)
    return [InstructorPublicResponse.model_validate(i) for i in result.scalars().all()]


async def submit_instructor_application(
    db: AsyncSession,
    payload: InstructorApplicationCreate,
) -> InstructorApplicationCreated:
    application = InstructorApplication(
        name=payload.name.strip(),
        phone=payload.phone,
        email=str(payload.email).strip().lower(),
        subjects=list(payload.subjects),
        modes=[m.value for m in payload.modes],
        region=payload.region,
        education=payload.education,
        career=payload.career,
        major=payload.major,
        age=payload.age,
        gender=payload.gender,
        photo_url=payload.photo_url,
        status=InstructorApplicationStatus.PENDING.value,
    )
    db.add(application)
    await db.flush()
    outbox.enqueue_for_roles(
        db,
        INSTRUCTOR_DESK_ROLES,
        NotificationEvent.INSTRUCTOR_APPLICATION_CREATED,
        {
            "id": application.id,
            "name": application.name,
            "phone": application.phone,
            "email": application.email,
            "subjects": application.subjects,
            "modes": application.modes,
            "region": application.region,
        },
    )
    await db.commit()
    logger.info("Instructor application %s submitted", application.id)
    return InstructorApplicationCreated(id=application.id, status=application.status)


async def list_instructor_applications(
    db: AsyncSession,
    status_filter: Optional[InstructorApplicationStatus] = None,
    limit: int = 200,
) -> List[InstructorApplicationResponse]:
    q = select(InstructorApplication)
    if status_filter:
        q = q.where(InstructorApplication.status == status_filter.value)
    q = q.order_by(InstructorApplication.id.desc()).limit(limit)
    result = await db.execute(q)
    return [InstructorApplicationResponse.model_validate(a) for a in result.scalars().all()]


async def _upsert_instructor(
    db: AsyncSession,
    application: InstructorApplication,
    password_hash: str,
) -> Instructor:
    instructor = (await db.execute(
        select(Instructor).where(Instructor.email == application.email)
    )).scalar_one_or_none()
    if instructor is None:
        instructor = Instructor(email=application.email)
        db.add(instructor)
    for field_name in _PROFILE_FIELDS:
        setattr(instructor, field_name, getattr(application, field_name))
    instructor.password_hash = password_hash
    instructor.status = InstructorStatus.ACTIVE.value
    await db.flush()
    return instructor


async def review_instructor_application(
    db: AsyncSession,
    application_id: int,
    review_status: InstructorApplicationStatus,
    note: Optional[str] = None,
) -> InstructorApplicationReviewResult:
    """APPROVED -> instructor account with a fresh temporary password; REJECTED -> note only."""
    if review_status not in (InstructorApplicationStatus.APPROVED, InstructorApplicationStatus.REJECTED):
        raise ServiceError("status must be APPROVED or REJECTED", status.HTTP_400_BAD_REQUEST)
    application = await db.get(InstructorApplication, application_id)
    if not application:
        raise ServiceError("Instructor application not found", status.HTTP_404_NOT_FOUND)

    note = (note or "").strip() or None
    application.status = review_status.value
    application.review_note = note
    application.reviewed_at = datetime.utcnow()

    temp_password = None
    instructor_id = None
    if review_status is InstructorApplicationStatus.APPROVED:
        temp_password = generate_temp_password()
        instructor = await _upsert_instructor(db, application, hash_password(temp_password))
        instructor_id = instructor.id
        outbox.enqueue_for_phone(
            db,
            application.phone,
            NotificationEvent.INSTRUCTOR_APPLICATION_APPROVED,
            {"email": application.email, "temp_password": temp_password},
        )
    else:
        outbox.enqueue_for_phone(
            db,
            application.phone,
            NotificationEvent.INSTRUCTOR_APPLICATION_REJECTED,
            {"note": note},
        )
    await db.commit()
    logger.info("Instructor application %s reviewed: %s", application_id, review_status.value)
    return InstructorApplicationReviewResult(
        id=application.id,
        status=review_status.value,
        instructor_id=instructor_id,
        temp_password=temp_password,
    )
