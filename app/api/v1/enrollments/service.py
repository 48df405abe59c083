"""
Enrollment lifecycle.

Student application axis: SUBMITTED -> INSTRUCTOR_SELECTED -> ENROLLED.
Enrollment axis: BEFORE_PAYMENT -> CONSULT_DONE -> PAYMENT_REQUESTED -> PAID, never backward.
Every transition is one transaction: guard, conditional UPDATE on the prior status, outbox
rows for the notifications, commit. Outbox rows become ledger entries after the commit.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.portal_codes import issue_portal_code
from app.core.config import settings
from app.core.enums import (
    STUDENT_DESK_ROLES,
    ApplicationStatus,
    EnrollmentStatus,
    InstructorStatus,
    NotificationEvent,
    PaymentStatus,
)
from app.core.exceptions import ErrorCode, ServiceError
from app.core.models import Enrollment, Instructor, Payment, StudentApplication
from app.integrations.commerce import CommerceClient, CommerceProduct
from app.notifications import outbox

from .schemas import (
    AdminEnrollmentItem,
    EnrollmentResponse,
    EnrollmentStudentInfo,
    InstructorEnrollmentItem,
    MarkPaidResponse,
    PaymentRequestResponse,
    PaymentResponse,
    PortalEnrollmentItem,
    SelectInstructorResponse,
)

logger = logging.getLogger(__name__)


def _enrollment_to_response(e: Enrollment) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=e.id,
        student_application_id=e.student_application_id,
        instructor_id=e.instructor_id,
        status=e.status,
        start_date=e.start_date,
        end_date=e.end_date,
        consulted_at=e.consulted_at,
        created_at=e.created_at,
        updated_at=e.updated_at,
    )


async def _storage_failure(db: AsyncSession, action: str) -> ServiceError:
    await db.rollback()
    logger.exception("Storage failure during %s", action)
    return ServiceError(f"Failed to {action}", status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL)


# ----- Lookups / guards -----

async def get_enrollment(db: AsyncSession, enrollment_id: int) -> Enrollment:
    enrollment = await db.get(Enrollment, enrollment_id)
    if not enrollment:
        raise ServiceError("Enrollment not found", status.HTTP_404_NOT_FOUND)
    return enrollment


async def get_owned_enrollment(db: AsyncSession, enrollment_id: int, instructor_id: int) -> Enrollment:
    """Missing -> NOT_FOUND; owned by another instructor -> FORBIDDEN."""
    enrollment = await get_enrollment(db, enrollment_id)
    if enrollment.instructor_id != instructor_id:
        raise ServiceError("Enrollment does not belong to this instructor", status.HTTP_403_FORBIDDEN)
    return enrollment


def _ensure_forward(enrollment: Enrollment, target: EnrollmentStatus) -> None:
    current = EnrollmentStatus(enrollment.status)
    if not current.can_advance_to(target):
        raise ServiceError(
            f"Invalid status transition: {current.value} -> {target.value}",
            status.HTTP_409_CONFLICT,
        )


async def _advance(db: AsyncSession, enrollment: Enrollment, target: EnrollmentStatus, **values) -> None:
    """Conditional UPDATE: only applies while the stored status is not past `target`."""
    _ensure_forward(enrollment, target)
    result = await db.execute(
        update(Enrollment)
        .where(
            Enrollment.id == enrollment.id,
            Enrollment.status.in_([s.value for s in EnrollmentStatus.not_after(target)]),
        )
        .values(status=target.value, updated_at=datetime.utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ServiceError(
            "Enrollment status changed concurrently; reload and retry",
            status.HTTP_409_CONFLICT,
        )


def _parse_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise ServiceError("amount must be a positive number", status.HTTP_400_BAD_REQUEST)
    if not value.is_finite() or value <= 0:
        raise ServiceError("amount must be a positive number", status.HTTP_400_BAD_REQUEST)
    return value


# ----- Transitions -----

async def select_instructor(
    db: AsyncSession,
    student_application_id: int,
    instructor_id: int,
) -> SelectInstructorResponse:
    """
    Student picks an instructor: application SUBMITTED -> INSTRUCTOR_SELECTED, enrollment
    created in BEFORE_PAYMENT, application -> ENROLLED. All or nothing.
    """
    application = await db.get(StudentApplication, student_application_id)
    if not application:
        raise ServiceError("Student application not found", status.HTTP_404_NOT_FOUND)
    instructor = (await db.execute(
        select(Instructor).where(
            Instructor.id == instructor_id,
            Instructor.status == InstructorStatus.ACTIVE.value,
        )
    )).scalar_one_or_none()
    if not instructor:
        raise ServiceError("Instructor not found", status.HTTP_404_NOT_FOUND)
    if application.status != ApplicationStatus.SUBMITTED.value:
        raise ServiceError(
            f"Student application already has an instructor (current: {application.status})",
            status.HTTP_409_CONFLICT,
        )

    try:
        claimed = await db.execute(
            update(StudentApplication)
            .where(
                StudentApplication.id == application.id,
                StudentApplication.status == ApplicationStatus.SUBMITTED.value,
            )
            .values(
                status=ApplicationStatus.INSTRUCTOR_SELECTED.value,
                selected_instructor_id=instructor.id,
            )
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            raise ServiceError(
                "Student application was changed concurrently",
                status.HTTP_409_CONFLICT,
            )

        enrollment = Enrollment(
            student_application_id=application.id,
            instructor_id=instructor.id,
            status=EnrollmentStatus.BEFORE_PAYMENT.value,
        )
        db.add(enrollment)
        await db.flush()

        await db.execute(
            update(StudentApplication)
            .where(
                StudentApplication.id == application.id,
                StudentApplication.status == ApplicationStatus.INSTRUCTOR_SELECTED.value,
            )
            .values(status=ApplicationStatus.ENROLLED.value)
            .execution_options(synchronize_session=False)
        )

        outbox.enqueue_for_roles(
            db,
            STUDENT_DESK_ROLES,
            NotificationEvent.STUDENT_SELECTED_INSTRUCTOR,
            {
                "student_application_id": application.id,
                "enrollment_id": enrollment.id,
                "student_name": application.name,
                "student_phone": application.phone,
                "instructor_id": instructor.id,
                "instructor_name": instructor.name,
            },
        )
        outbox.enqueue_for_phone(
            db,
            instructor.phone,
            NotificationEvent.STUDENT_SELECTED_INSTRUCTOR_TO_INSTRUCTOR,
            {
                "enrollment_id": enrollment.id,
                "student_name": application.name,
                "student_phone": application.phone,
                "mode": application.mode,
                "region": application.region,
                "subjects": list(application.subjects or []),
            },
        )
        await db.commit()
    except SQLAlchemyError:
        raise await _storage_failure(db, "select instructor")
    await db.refresh(application)

    logger.info(
        "Application %s enrolled with instructor %s as enrollment %s",
        student_application_id, instructor_id, enrollment.id,
    )
    return SelectInstructorResponse(
        enrollment_id=enrollment.id,
        student_application_id=student_application_id,
        instructor_id=instructor_id,
        status=EnrollmentStatus.BEFORE_PAYMENT.value,
    )


async def mark_consult_done(
    db: AsyncSession,
    enrollment_id: int,
    instructor_id: int,
) -> EnrollmentResponse:
    """Instructor records the first consultation. Stamps consulted_at."""
    enrollment = await get_owned_enrollment(db, enrollment_id, instructor_id)
    try:
        await _advance(db, enrollment, EnrollmentStatus.CONSULT_DONE, consulted_at=datetime.utcnow())
        await db.commit()
    except SQLAlchemyError:
        raise await _storage_failure(db, "mark consultation done")
    await db.refresh(enrollment)
    logger.info("Enrollment %s consult done by instructor %s", enrollment_id, instructor_id)
    return _enrollment_to_response(enrollment)


async def request_payment(
    db: AsyncSession,
    enrollment_id: int,
    instructor_id: int,
    amount,
    title: Optional[str],
    commerce: CommerceClient,
) -> PaymentRequestResponse:
    """
    Instructor asks the student to pay. A payment row is always written; it is
    PRODUCT_CREATED only when the store returned a link. Store failures degrade to "no link".
    """
    value = _parse_amount(amount)
    title = (title or "").strip() or settings.default_payment_title
    enrollment = await get_owned_enrollment(db, enrollment_id, instructor_id)
    _ensure_forward(enrollment, EnrollmentStatus.PAYMENT_REQUESTED)
    application = await db.get(StudentApplication, enrollment.student_application_id)

    try:
        product = await commerce.create_product(title, value, enrollment.id)
    except Exception as exc:
        logger.warning(
            "%s: commerce product creation failed for enrollment %s: %s",
            ErrorCode.UPSTREAM_UNAVAILABLE.value, enrollment.id, exc,
        )
        product = CommerceProduct(raw={"reason": ErrorCode.UPSTREAM_UNAVAILABLE.value, "error": str(exc)})

    payment_status = PaymentStatus.PRODUCT_CREATED if product.has_link else PaymentStatus.REQUESTED
    try:
        payment = Payment(
            enrollment_id=enrollment.id,
            amount=value,
            title=title,
            status=payment_status.value,
            product_id=product.product_id,
            product_url=product.product_url,
            meta=product.raw or {},
        )
        db.add(payment)
        await db.flush()

        await _advance(db, enrollment, EnrollmentStatus.PAYMENT_REQUESTED)

        outbox.enqueue_for_phone(
            db,
            application.phone if application else None,
            NotificationEvent.PAYMENT_LINK_CREATED,
            {
                "enrollment_id": enrollment.id,
                "amount": float(value),
                "title": title,
                "payment_url": product.product_url or None,
            },
        )
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError:
        raise await _storage_failure(db, "request payment")
    await db.refresh(enrollment)

    logger.info("Payment %s requested for enrollment %s (%s)", payment.id, enrollment_id, payment_status.value)
    return PaymentRequestResponse(
        payment_id=payment.id,
        enrollment_id=enrollment_id,
        status=payment_status.value,
        payment_url=product.product_url or None,
    )


async def mark_paid(db: AsyncSession, enrollment_id: int) -> MarkPaidResponse:
    """Admin confirms payment: status -> PAID and a fresh portal code for the student's phone."""
    enrollment = await get_enrollment(db, enrollment_id)
    _ensure_forward(enrollment, EnrollmentStatus.PAID)
    application = await db.get(StudentApplication, enrollment.student_application_id)
    if not application:
        raise ServiceError("Student application not found", status.HTTP_404_NOT_FOUND)

    try:
        await _advance(db, enrollment, EnrollmentStatus.PAID)
        issued = await issue_portal_code(db, enrollment.id, application.phone)
        outbox.enqueue_for_phone(
            db,
            application.phone,
            NotificationEvent.PORTAL_CODE_ISSUED,
            {"enrollment_id": enrollment.id, "portal_code": issued.plain_code},
        )
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError:
        raise await _storage_failure(db, "mark enrollment paid")
    await db.refresh(enrollment)

    logger.info("Enrollment %s marked paid; portal code %s issued", enrollment_id, issued.record.id)
    return MarkPaidResponse(
        enrollment_id=enrollment_id,
        status=EnrollmentStatus.PAID.value,
        portal_code=issued.plain_code,
        portal_code_expires_at=issued.record.expires_at,
    )


async def set_period(
    db: AsyncSession,
    enrollment_id: int,
    start_date: date,
    end_date: date,
) -> EnrollmentResponse:
    """Admin sets the tutoring period. Status is untouched; no notification."""
    if end_date < start_date:
        raise ServiceError("end_date must be on or after start_date", status.HTTP_400_BAD_REQUEST)
    enrollment = await get_enrollment(db, enrollment_id)
    try:
        enrollment.start_date = start_date
        enrollment.end_date = end_date
        await db.commit()
    except SQLAlchemyError:
        raise await _storage_failure(db, "set enrollment period")
    await db.refresh(enrollment)
    return _enrollment_to_response(enrollment)


# ----- Listings -----

async def list_enrollments_for_admin(db: AsyncSession, limit: int = 200) -> List[AdminEnrollmentItem]:
    result = await db.execute(
        select(Enrollment, StudentApplication, Instructor)
        .join(StudentApplication, StudentApplication.id == Enrollment.student_application_id)
        .join(Instructor, Instructor.id == Enrollment.instructor_id)
        .order_by(Enrollment.id.desc())
        .limit(limit)
    )
    return [
        AdminEnrollmentItem(
            id=e.id,
            status=e.status,
            start_date=e.start_date,
            end_date=e.end_date,
            consulted_at=e.consulted_at,
            student_name=sa.name,
            student_phone=sa.phone,
            instructor_name=i.name,
            instructor_email=i.email,
        )
        for e, sa, i in result.all()
    ]


async def list_enrollments_for_instructor(
    db: AsyncSession,
    instructor_id: int,
    limit: int = 200,
) -> List[InstructorEnrollmentItem]:
    """Own enrollments, newest first, each with its payments oldest first."""
    result = await db.execute(
        select(Enrollment, StudentApplication)
        .join(StudentApplication, StudentApplication.id == Enrollment.student_application_id)
        .where(Enrollment.instructor_id == instructor_id)
        .order_by(Enrollment.id.desc())
        .limit(limit)
    )
    rows = result.all()
    payments_by = {}
    ids = [e.id for e, _ in rows]
    if ids:
        pays = await db.execute(
            select(Payment).where(Payment.enrollment_id.in_(ids)).order_by(Payment.id.asc())
        )
        for p in pays.scalars().all():
            payments_by.setdefault(p.enrollment_id, []).append(PaymentResponse.model_validate(p))

    return [
        InstructorEnrollmentItem(
            id=e.id,
            status=e.status,
            start_date=e.start_date,
            end_date=e.end_date,
            consulted_at=e.consulted_at,
            student_application=EnrollmentStudentInfo(
                id=sa.id,
                name=sa.name,
                phone=sa.phone,
                subjects=list(sa.subjects or []),
                mode=sa.mode,
                region=sa.region,
            ),
            payments=payments_by.get(e.id, []),
        )
        for e, sa in rows
    ]


async def list_enrollments_for_phone(
    db: AsyncSession,
    phone: str,
    limit: int = 100,
) -> List[PortalEnrollmentItem]:
    result = await db.execute(
        select(Enrollment, StudentApplication, Instructor)
        .join(StudentApplication, StudentApplication.id == Enrollment.student_application_id)
        .join(Instructor, Instructor.id == Enrollment.instructor_id)
        .where(StudentApplication.phone == phone)
        .order_by(Enrollment.id.desc())
        .limit(limit)
    )
    return [
        PortalEnrollmentItem(
            id=e.id,
            status=e.status,
            start_date=e.start_date,
            end_date=e.end_date,
            mode=sa.mode,
            instructor_name=i.name,
            instructor_region=i.region,
        )
        for e, sa, i in result.all()
    ]
