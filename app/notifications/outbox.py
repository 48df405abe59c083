"""
Outbox between state transitions and the notification ledger.

Transitions call enqueue_* inside their own transaction, so the intent to notify commits
or rolls back together with the transition. dispatch_pending() later turns each pending
row into ledger entries in a separate transaction per row; a failing row is retried on the
next run and never touches the transition that produced it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import OutboxStatus
from app.core.models import NotificationOutbox

from . import ledger

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
    dispatched: int = 0
    failed: int = 0
    entries_written: int = 0


def enqueue_for_roles(
    db: AsyncSession,
    roles: Iterable,
    event_type: str,
    payload: Any = None,
) -> Optional[NotificationOutbox]:
    wanted = ledger.role_values(roles)
    if not wanted:
        return None
    return _enqueue(db, event_type, payload, target_roles=wanted)


def enqueue_for_phone(
    db: AsyncSession,
    phone: Optional[str],
    event_type: str,
    payload: Any = None,
) -> Optional[NotificationOutbox]:
    if not phone:
        return None
    return _enqueue(db, event_type, payload, target_phone=phone)


def _enqueue(db: AsyncSession, event_type, payload, *, target_roles=None, target_phone=None) -> NotificationOutbox:
    row = NotificationOutbox(
        event_type=getattr(event_type, "value", event_type),
        target_roles=target_roles,
        target_phone=target_phone,
        payload=payload,
        status=OutboxStatus.PENDING.value,
        attempts=0,
    )
    db.add(row)
    return row


async def _dispatch_one(db: AsyncSession, row: NotificationOutbox) -> int:
    if row.target_roles:
        written = len(await ledger.record_for_roles(db, row.target_roles, row.event_type, row.payload))
    else:
        entry = await ledger.record_for_phone(db, row.target_phone, row.event_type, row.payload)
        written = 1 if entry is not None else 0
    row.status = OutboxStatus.DISPATCHED.value
    row.attempts = (row.attempts or 0) + 1
    row.dispatched_at = datetime.utcnow()
    row.last_error = None
    return written


async def dispatch_pending(db: AsyncSession, limit: Optional[int] = None) -> DispatchSummary:
    """Move pending outbox rows into the ledger, oldest first. Commits per row."""
    summary = DispatchSummary()
    result = await db.execute(
        select(NotificationOutbox.id)
        .where(NotificationOutbox.status == OutboxStatus.PENDING.value)
        .order_by(NotificationOutbox.id)
        .limit(limit or settings.outbox_batch_size)
    )
    ids = list(result.scalars().all())
    for outbox_id in ids:
        row = await db.get(NotificationOutbox, outbox_id, with_for_update=True)
        if row is None or row.status != OutboxStatus.PENDING.value:
            continue
        try:
            summary.entries_written += await _dispatch_one(db, row)
            await db.commit()
            summary.dispatched += 1
        except SQLAlchemyError as exc:
            await db.rollback()
            summary.failed += 1
            logger.warning("Outbox row %s failed to dispatch: %s", outbox_id, exc)
            await _mark_failed_attempt(db, outbox_id, str(exc))
    if ids:
        logger.info(
            "Outbox dispatch: %s dispatched, %s failed, %s ledger entries",
            summary.dispatched, summary.failed, summary.entries_written,
        )
    return summary


async def _mark_failed_attempt(db: AsyncSession, outbox_id: int, error: str) -> None:
    row = await db.get(NotificationOutbox, outbox_id)
    if row is None:
        return
    row.attempts = (row.attempts or 0) + 1
    row.last_error = error[:2000]
    if row.attempts >= settings.outbox_max_attempts:
        row.status = OutboxStatus.FAILED.value
    await db.commit()


async def dispatch_after_transition(db: AsyncSession) -> None:
    """Best-effort dispatch right after a committed transition. Failures stay in the outbox."""
    try:
        await dispatch_pending(db)
    except SQLAlchemyError:
        logger.exception("Outbox dispatch after transition failed; rows remain pending")
        await db.rollback()
