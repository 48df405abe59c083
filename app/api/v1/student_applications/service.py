"""Student applications: public intake and the admin listing."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import STUDENT_DESK_ROLES, ApplicationStatus, NotificationEvent
from app.core.models import StudentApplication
from app.notifications import outbox

from .schemas import StudentApplicationCreate, StudentApplicationCreated, StudentApplicationResponse

logger = logging.getLogger(__name__)


async def submit_student_application(
    db: AsyncSession,
    payload: StudentApplicationCreate,
) -> StudentApplicationCreated:
    application = StudentApplication(
        name=payload.name,
        phone=payload.phone,
        subjects=list(payload.subjects),
        target=payload.target,
        mode=payload.mode.value,
        region=payload.region,
        note=payload.note,
        status=ApplicationStatus.SUBMITTED.value,
    )
    db.add(application)
    await db.flush()
    outbox.enqueue_for_roles(
        db,
        STUDENT_DESK_ROLES,
        NotificationEvent.STUDENT_APPLICATION_CREATED,
        {
            "id": application.id,
            "name": application.name,
            "phone": application.phone,
            "subjects": list(payload.subjects),
            "target": application.target,
            "mode": application.mode,
            "region": application.region,
        },
    )
    await db.commit()
    logger.info("Student application %s submitted", application.id)
    return StudentApplicationCreated(id=application.id, status=application.status)


async def list_student_applications(
    db: AsyncSession,
    status_filter: Optional[ApplicationStatus] = None,
    limit: int = 200,
) -> List[StudentApplicationResponse]:
    q = select(StudentApplication)
    if status_filter:
        q = q.where(StudentApplication.status == status_filter.value)
    q = q.order_by(StudentApplication.id.desc()).limit(limit)
    result = await db.execute(q)
    return [StudentApplicationResponse.model_validate(a) for a in result.scalars().all()]
