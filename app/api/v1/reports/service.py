"""
Report review gate: instructors write, admins approve or reject, the portal reads approved ones only.
Review is re-entrant: reviewing again overwrites status and note.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import REPORT_DESK_ROLES, NotificationEvent, ReportStatus
from app.core.exceptions import ServiceError
from app.core.models import Enrollment, Report, StudentApplication
from app.notifications import outbox

from .schemas import PortalReportResponse, ReportCreate, ReportCreated, ReportResponse

logger = logging.getLogger(__name__)


async def submit_report(
    db: AsyncSession,
    instructor_id: int,
    payload: ReportCreate,
) -> ReportCreated:
    """Create a PENDING report on an enrollment the instructor owns."""
    enrollment = (await db.execute(
        select(Enrollment).where(
            Enrollment.id == payload.enrollment_id,
            Enrollment.instructor_id == instructor_id,
        )
    )).scalar_one_or_none()
    if not enrollment:
        raise ServiceError("Not your enrollment", status.HTTP_403_FORBIDDEN)

    score = payload.score
    if score is not None and not math.isfinite(score):
        score = None

    report = Report(
        enrollment_id=enrollment.id,
        instructor_id=instructor_id,
        type=payload.type.value,
        title=payload.title.strip(),
        summary=payload.summary,
        feedback=payload.feedback,
        score=score,
        raw_data=payload.raw_data,
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    await db.flush()
    outbox.enqueue_for_roles(
        db,
        REPORT_DESK_ROLES,
        NotificationEvent.REPORT_SUBMITTED,
        {"report_id": report.id, "enrollment_id": enrollment.id},
    )
    await db.commit()
    logger.info("Report %s submitted for enrollment %s", report.id, enrollment.id)
    return ReportCreated(report_id=report.id, status=report.status)


async def review_report(
    db: AsyncSession,
    report_id: int,
    review_status: ReportStatus,
    note: Optional[str] = None,
) -> ReportResponse:
    if review_status not in (ReportStatus.APPROVED, ReportStatus.REJECTED):
        raise ServiceError("status must be APPROVED or REJECTED", status.HTTP_400_BAD_REQUEST)
    report = await db.get(Report, report_id)
    if not report:
        raise ServiceError("Report not found", status.HTTP_404_NOT_FOUND)
    report.status = review_status.value
    report.review_note = (note or "").strip() or None
    report.reviewed_at = datetime.utcnow()
    await db.commit()
    await db.refresh(report)
    logger.info("Report %s reviewed: %s", report_id, review_status.value)
    return ReportResponse.model_validate(report)


async def list_reports(
    db: AsyncSession,
    status_filter: Optional[ReportStatus] = None,
    limit: int = 200,
) -> List[ReportResponse]:
    q = select(Report)
    if status_filter:
        q = q.where(Report.status == status_filter.value)
    q = q.order_by(Report.id.desc()).limit(limit)
    result = await db.execute(q)
    return [ReportResponse.model_validate(r) for r in result.scalars().all()]


async def list_portal_reports(
    db: AsyncSession,
    phone: str,
    enrollment_id: int,
) -> List[PortalReportResponse]:
    """APPROVED reports of an enrollment whose student phone is `phone`. Anything else stays hidden."""
    owned = (await db.execute(
        select(Enrollment.id)
        .join(StudentApplication, StudentApplication.id == Enrollment.student_application_id)
        .where(Enrollment.id == enrollment_id, StudentApplication.phone == phone)
    )).scalar_one_or_none()
    if not owned:
        raise ServiceError("Not your enrollment", status.HTTP_403_FORBIDDEN)

    result = await db.execute(
        select(Report)
        .where(
            Report.enrollment_id == enrollment_id,
            Report.status == ReportStatus.APPROVED.value,
        )
        .order_by(Report.id.desc())
    )
    return [PortalReportResponse.model_validate(r) for r in result.scalars().all()]
