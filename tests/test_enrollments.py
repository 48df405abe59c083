from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.enrollments import service
from app.auth.portal_codes import PortalCodeCheck, verify_portal_code
from app.core.enums import (
    ApplicationStatus,
    EnrollmentStatus,
    InstructorStatus,
    NotificationEvent,
    OutboxStatus,
    PaymentStatus,
)
from app.core.exceptions import ErrorCode, ServiceError
from app.core.models import Enrollment, NotificationOutbox, Payment, PortalAccessCode, StudentApplication
from app.integrations.commerce import StubCommerceClient


async def _count(db: AsyncSession, column) -> int:
    return (await db.execute(select(func.count(column)))).scalar_one()


async def _status(db: AsyncSession, enrollment_id: int) -> str:
    return (await db.execute(
        select(Enrollment.status).where(Enrollment.id == enrollment_id)
    )).scalar_one()


# ----- select-instructor -----

async def test_select_instructor_creates_enrollment(
    db_session: AsyncSession, make_application, make_instructor
) -> None:
    application = await make_application()
    instructor = await make_instructor()

    result = await service.select_instructor(db_session, application.id, instructor.id)

    assert result.status == EnrollmentStatus.BEFORE_PAYMENT.value
    enrollment = await db_session.get(Enrollment, result.enrollment_id)
    assert enrollment.student_application_id == application.id
    assert enrollment.instructor_id == instructor.id
    assert enrollment.status == EnrollmentStatus.BEFORE_PAYMENT.value
    assert await _count(db_session, Enrollment.id) == 1

    await db_session.refresh(application)
    assert application.status == ApplicationStatus.ENROLLED.value
    assert application.selected_instructor_id == instructor.id

    events = (await db_session.execute(select(NotificationOutbox.event_type))).scalars().all()
    assert sorted(events) == sorted([
        NotificationEvent.STUDENT_SELECTED_INSTRUCTOR.value,
        NotificationEvent.STUDENT_SELECTED_INSTRUCTOR_TO_INSTRUCTOR.value,
    ])


async def test_select_unknown_instructor_writes_nothing(db_session: AsyncSession, make_application) -> None:
    application = await make_application()

    with pytest.raises(ServiceError) as exc:
        await service.select_instructor(db_session, application.id, 9999)

    assert exc.value.code is ErrorCode.NOT_FOUND
    assert await _count(db_session, Enrollment.id) == 0
    assert await _count(db_session, NotificationOutbox.id) == 0
    await db_session.refresh(application)
    assert application.status == ApplicationStatus.SUBMITTED.value


async def test_select_inactive_instructor_is_not_found(
    db_session: AsyncSession, make_application, make_instructor
) -> None:
    application = await make_application()
    instructor = await make_instructor(status=InstructorStatus.INACTIVE)

    with pytest.raises(ServiceError) as exc:
        await service.select_instructor(db_session, application.id, instructor.id)

    assert exc.value.status_code == 404
    assert await _count(db_session, Enrollment.id) == 0


async def test_select_unknown_application_is_not_found(db_session: AsyncSession, make_instructor) -> None:
    instructor = await make_instructor()

    with pytest.raises(ServiceError) as exc:
        await service.select_instructor(db_session, 4242, instructor.id)

    assert exc.value.code is ErrorCode.NOT_FOUND


async def test_select_twice_is_conflict(db_session: AsyncSession, make_application, make_instructor) -> None:
    application = await make_application()
    instructor = await make_instructor()
    await service.select_instructor(db_session, application.id, instructor.id)

    with pytest.raises(ServiceError) as exc:
        await service.select_instructor(db_session, application.id, instructor.id)

    assert exc.value.code is ErrorCode.CONFLICT
    assert await _count(db_session, Enrollment.id) == 1


# ----- consult-done -----

async def test_consult_done_by_owner(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment()

    result = await service.mark_consult_done(db_session, enrollment.id, enrollment.instructor_id)

    assert result.status == EnrollmentStatus.CONSULT_DONE.value
    assert result.consulted_at is not None
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.CONSULT_DONE.value


async def test_consult_done_by_other_instructor_is_forbidden(
    db_session: AsyncSession, make_enrollment, make_instructor
) -> None:
    enrollment = await make_enrollment()
    other = await make_instructor(email="other@example.com", name="Park Other")

    with pytest.raises(ServiceError) as exc:
        await service.mark_consult_done(db_session, enrollment.id, other.id)

    assert exc.value.code is ErrorCode.FORBIDDEN
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.BEFORE_PAYMENT.value


async def test_consult_done_missing_enrollment(db_session: AsyncSession, make_instructor) -> None:
    instructor = await make_instructor()

    with pytest.raises(ServiceError) as exc:
        await service.mark_consult_done(db_session, 777, instructor.id)

    assert exc.value.code is ErrorCode.NOT_FOUND


# ----- forward-only ordering -----

_GRID = [(current, target) for current in EnrollmentStatus for target in EnrollmentStatus]


@pytest.mark.parametrize("current,target", _GRID, ids=[f"{c.value}->{t.value}" for c, t in _GRID])
def test_can_advance_only_forward(current: EnrollmentStatus, target: EnrollmentStatus) -> None:
    assert current.can_advance_to(target) is (target.rank >= current.rank)
    assert (current in EnrollmentStatus.not_after(target)) is current.can_advance_to(target)


@pytest.mark.parametrize("current", list(EnrollmentStatus))
async def test_consult_done_never_moves_backward(
    db_session: AsyncSession, make_enrollment, current: EnrollmentStatus
) -> None:
    enrollment = await make_enrollment(status=current)

    if current.can_advance_to(EnrollmentStatus.CONSULT_DONE):
        await service.mark_consult_done(db_session, enrollment.id, enrollment.instructor_id)
        assert await _status(db_session, enrollment.id) == EnrollmentStatus.CONSULT_DONE.value
    else:
        with pytest.raises(ServiceError) as exc:
            await service.mark_consult_done(db_session, enrollment.id, enrollment.instructor_id)
        assert exc.value.code is ErrorCode.CONFLICT
        assert await _status(db_session, enrollment.id) == current.value


@pytest.mark.parametrize("current", list(EnrollmentStatus))
async def test_request_payment_never_moves_backward(
    db_session: AsyncSession, make_enrollment, current: EnrollmentStatus
) -> None:
    enrollment = await make_enrollment(status=current)

    if current.can_advance_to(EnrollmentStatus.PAYMENT_REQUESTED):
        await service.request_payment(
            db_session, enrollment.id, enrollment.instructor_id, 100, None, StubCommerceClient()
        )
        assert await _status(db_session, enrollment.id) == EnrollmentStatus.PAYMENT_REQUESTED.value
    else:
        with pytest.raises(ServiceError) as exc:
            await service.request_payment(
                db_session, enrollment.id, enrollment.instructor_id, 100, None, StubCommerceClient()
            )
        assert exc.value.code is ErrorCode.CONFLICT
        assert await _status(db_session, enrollment.id) == current.value
        assert await _count(db_session, Payment.id) == 0


async def test_lifecycle_sequence_is_non_decreasing(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment()
    seen = [EnrollmentStatus(await _status(db_session, enrollment.id))]

    await service.mark_consult_done(db_session, enrollment.id, enrollment.instructor_id)
    seen.append(EnrollmentStatus(await _status(db_session, enrollment.id)))
    await service.request_payment(db_session, enrollment.id, enrollment.instructor_id, 50000, None, StubCommerceClient())
    seen.append(EnrollmentStatus(await _status(db_session, enrollment.id)))
    with pytest.raises(ServiceError):
        await service.mark_consult_done(db_session, enrollment.id, enrollment.instructor_id)
    seen.append(EnrollmentStatus(await _status(db_session, enrollment.id)))
    await service.mark_paid(db_session, enrollment.id)
    seen.append(EnrollmentStatus(await _status(db_session, enrollment.id)))

    ranks = [s.rank for s in seen]
    assert ranks == sorted(ranks)
    assert seen[-1] is EnrollmentStatus.PAID


# ----- request-payment -----

@pytest.mark.parametrize("amount", [-5, 0, "abc", "NaN", "Infinity"])
async def test_request_payment_rejects_bad_amount(db_session: AsyncSession, make_enrollment, amount) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)

    with pytest.raises(ServiceError) as exc:
        await service.request_payment(
            db_session, enrollment.id, enrollment.instructor_id, amount, None, StubCommerceClient()
        )

    assert exc.value.code is ErrorCode.VALIDATION
    assert await _count(db_session, Payment.id) == 0
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.CONSULT_DONE.value


async def test_request_payment_with_store_link(db_session: AsyncSession, make_enrollment, commerce) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)

    result = await service.request_payment(
        db_session, enrollment.id, enrollment.instructor_id, "120000", "March tuition", commerce
    )

    assert result.status == PaymentStatus.PRODUCT_CREATED.value
    assert result.payment_url == f"https://store.example.com/p/{enrollment.id}"
    payment = await db_session.get(Payment, result.payment_id)
    assert payment.amount == Decimal("120000")
    assert payment.title == "March tuition"
    assert payment.product_id == f"prod-{enrollment.id}"
    assert commerce.calls == [("March tuition", Decimal("120000"), enrollment.id)]


async def test_request_payment_stub_store_has_no_link(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)

    result = await service.request_payment(
        db_session, enrollment.id, enrollment.instructor_id, 30000, "  ", StubCommerceClient()
    )

    assert result.status == PaymentStatus.REQUESTED.value
    assert result.payment_url is None
    payment = await db_session.get(Payment, result.payment_id)
    assert payment.title == "Tutoring tuition"
    assert payment.meta == {"reason": "NOT_IMPLEMENTED"}


async def test_request_payment_store_failure_degrades(db_session: AsyncSession, make_enrollment, commerce) -> None:
    commerce.fail = True
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)

    result = await service.request_payment(
        db_session, enrollment.id, enrollment.instructor_id, 30000, None, commerce
    )

    assert result.status == PaymentStatus.REQUESTED.value
    assert result.payment_url is None
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.PAYMENT_REQUESTED.value
    payment = await db_session.get(Payment, result.payment_id)
    assert payment.meta["reason"] == ErrorCode.UPSTREAM_UNAVAILABLE.value

    row = (await db_session.execute(
        select(NotificationOutbox).where(
            NotificationOutbox.event_type == NotificationEvent.PAYMENT_LINK_CREATED.value
        )
    )).scalar_one()
    assert row.target_phone == "01012345678"
    assert row.payload["payment_url"] is None


async def test_request_payment_again_adds_payment(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)
    stub = StubCommerceClient()

    await service.request_payment(db_session, enrollment.id, enrollment.instructor_id, 100, None, stub)
    await service.request_payment(db_session, enrollment.id, enrollment.instructor_id, 200, None, stub)

    assert await _count(db_session, Payment.id) == 2
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.PAYMENT_REQUESTED.value


async def test_request_payment_other_instructor_is_forbidden(
    db_session: AsyncSession, make_enrollment, make_instructor
) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)
    other = await make_instructor(email="other@example.com")

    with pytest.raises(ServiceError) as exc:
        await service.request_payment(db_session, enrollment.id, other.id, 100, None, StubCommerceClient())

    assert exc.value.code is ErrorCode.FORBIDDEN
    assert await _count(db_session, Payment.id) == 0


# ----- mark-paid -----

async def test_mark_paid_issues_portal_code(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.PAYMENT_REQUESTED)

    result = await service.mark_paid(db_session, enrollment.id)

    assert result.status == EnrollmentStatus.PAID.value
    assert len(result.portal_code) == 6 and result.portal_code.isdigit()
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.PAID.value

    row = (await db_session.execute(select(PortalAccessCode))).scalar_one()
    assert row.enrollment_id == enrollment.id
    assert row.phone == "01012345678"
    assert row.expires_at == result.portal_code_expires_at

    outbox_row = (await db_session.execute(
        select(NotificationOutbox).where(NotificationOutbox.event_type == NotificationEvent.PORTAL_CODE_ISSUED.value)
    )).scalar_one()
    assert outbox_row.payload["portal_code"] == result.portal_code
    assert outbox_row.status == OutboxStatus.PENDING.value

    assert await verify_portal_code(db_session, "01012345678", result.portal_code) is PortalCodeCheck.OK


async def test_mark_paid_again_issues_another_code(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.PAID)

    await service.mark_paid(db_session, enrollment.id)
    await service.mark_paid(db_session, enrollment.id)

    assert await _count(db_session, PortalAccessCode.id) == 2
    assert await _status(db_session, enrollment.id) == EnrollmentStatus.PAID.value


async def test_mark_paid_missing_enrollment(db_session: AsyncSession) -> None:
    with pytest.raises(ServiceError) as exc:
        await service.mark_paid(db_session, 31337)

    assert exc.value.code is ErrorCode.NOT_FOUND
    assert await _count(db_session, PortalAccessCode.id) == 0


# ----- set-period -----

async def test_set_period(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)

    result = await service.set_period(db_session, enrollment.id, date(2026, 3, 1), date(2026, 5, 31))

    assert result.start_date == date(2026, 3, 1)
    assert result.end_date == date(2026, 5, 31)
    assert result.status == EnrollmentStatus.CONSULT_DONE.value
    assert await _count(db_session, NotificationOutbox.id) == 0


async def test_set_period_rejects_inverted_range(db_session: AsyncSession, make_enrollment) -> None:
    enrollment = await make_enrollment()

    with pytest.raises(ServiceError) as exc:
        await service.set_period(db_session, enrollment.id, date(2026, 5, 1), date(2026, 3, 1))

    assert exc.value.code is ErrorCode.VALIDATION


# ----- listings -----

async def test_instructor_listing_shows_own_enrollments_with_payments(
    db_session: AsyncSession, make_enrollment, make_instructor, make_application
) -> None:
    mine = await make_enrollment(status=EnrollmentStatus.CONSULT_DONE)
    other = await make_instructor(email="other@example.com")
    await make_enrollment(
        instructor=other,
        application=await make_application(name="Choi", phone="01055556666", status=ApplicationStatus.ENROLLED),
    )
    await service.request_payment(db_session, mine.id, mine.instructor_id, 100, None, StubCommerceClient())

    items = await service.list_enrollments_for_instructor(db_session, mine.instructor_id)

    assert [i.id for i in items] == [mine.id]
    assert items[0].student_application.phone == "01012345678"
    assert len(items[0].payments) == 1


async def test_portal_listing_filters_by_phone(
    db_session: AsyncSession, make_enrollment, make_application, make_instructor
) -> None:
    mine = await make_enrollment()
    await make_enrollment(
        instructor=await make_instructor(email="other@example.com", name="Park Other"),
        application=await make_application(name="Choi", phone="01055556666", status=ApplicationStatus.ENROLLED),
    )

    items = await service.list_enrollments_for_phone(db_session, "01012345678")

    assert [i.id for i in items] == [mine.id]
    assert items[0].instructor_name == "Kim Tutor"
