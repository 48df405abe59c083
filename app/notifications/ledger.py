"""
Notification ledger: append-only record of who should be told about what.

Nothing here delivers anything. Entries start QUEUED and are left for a delivery
worker. Callers commit.
"""

import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser
from app.core.enums import NotificationChannel, NotificationStatus
from app.core.models import NotificationLog

logger = logging.getLogger(__name__)


def role_values(roles: Iterable) -> List[str]:
    return sorted({getattr(r, "value", r) for r in roles or ()})


async def record_for_roles(
    db: AsyncSession,
    roles: Iterable,
    event_type: str,
    payload: Any = None,
) -> List[NotificationLog]:
    """One entry per active admin with a phone whose role is in `roles`. No-op when nothing matches."""
    wanted = role_values(roles)
    if not wanted:
        return []
    result = await db.execute(
        select(AdminUser.role, AdminUser.phone)
        .where(
            AdminUser.is_active.is_(True),
            AdminUser.role.in_(wanted),
            AdminUser.phone.is_not(None),
        )
        .order_by(AdminUser.id)
    )
    entries = []
    for role, phone in result.all():
        entries.append(_append(db, event_type, payload, to_role=role, to_phone=phone))
    if entries:
        await db.flush()
    logger.debug("Recorded %s %s entries for roles %s", len(entries), event_type, wanted)
    return entries


async def record_for_phone(
    db: AsyncSession,
    phone: Optional[str],
    event_type: str,
    payload: Any = None,
) -> Optional[NotificationLog]:
    """Exactly one entry targeting `phone`; no-op when the phone is empty."""
    if not phone:
        return None
    entry = _append(db, event_type, payload, to_phone=phone)
    await db.flush()
    return entry


def _append(
    db: AsyncSession,
    event_type: str,
    payload: Any,
    *,
    to_role: Optional[str] = None,
    to_phone: Optional[str] = None,
) -> NotificationLog:
    entry = NotificationLog(
        channel=NotificationChannel.INTERNAL.value,
        event_type=getattr(event_type, "value", event_type),
        to_role=to_role,
        to_phone=to_phone,
        payload=payload,
        status=NotificationStatus.QUEUED.value,
    )
    db.add(entry)
    return entry


async def list_notifications(
    db: AsyncSession,
    event_type: Optional[str] = None,
    phone: Optional[str] = None,
    limit: int = 200,
) -> List[NotificationLog]:
    q = select(NotificationLog)
    if event_type:
        q = q.where(NotificationLog.event_type == event_type)
    if phone:
        q = q.where(NotificationLog.to_phone == phone)
    q = q.order_by(NotificationLog.id.desc()).limit(limit)
    result = await db.execute(q)
    return list(result.scalars().all())
