"""
Portal passcodes.

A code is 6 random digits, stored only as a bcrypt hash and bound to a phone and an
enrollment. Issuing again (e.g. re-marking an enrollment paid) adds a new row and leaves
older rows valid until their own expiry; login always checks the newest non-expired row.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import hash_password, verify_password
from app.core.config import settings
from app.core.models import PortalAccessCode
from app.core.validators import normalize_phone

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


class PortalCodeCheck(str, Enum):
    OK = "OK"
    NO_CODE = "NO_CODE"
    INVALID_CODE = "INVALID_CODE"


@dataclass
class IssuedPortalCode:
    plain_code: str
    record: PortalAccessCode


def generate_portal_code() -> str:
    """Uniform over [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


async def issue_portal_code(
    db: AsyncSession,
    enrollment_id: int,
    phone: str,
    now: Optional[datetime] = None,
) -> IssuedPortalCode:
    """Add a new code row to the session. Caller commits; the plain code is not retrievable afterwards."""
    issued_at = now or datetime.utcnow()
    plain_code = generate_portal_code()
    record = PortalAccessCode(
        enrollment_id=enrollment_id,
        phone=normalize_phone(phone),
        code_hash=hash_password(plain_code, rounds=settings.portal_code_bcrypt_rounds),
        expires_at=issued_at + timedelta(days=settings.portal_code_ttl_days),
        created_at=issued_at,
    )
    db.add(record)
    await db.flush()
    logger.info("Issued portal code id=%s for enrollment %s", record.id, enrollment_id)
    return IssuedPortalCode(plain_code=plain_code, record=record)


async def verify_portal_code(
    db: AsyncSession,
    phone: str,
    code: str,
    now: Optional[datetime] = None,
) -> PortalCodeCheck:
    """
    Check `code` against the newest non-expired row for the phone.

    On success last_used_at is stamped and committed together with the row lock, so a
    concurrent issuance cannot interleave between lookup and stamp. A code stays usable
    until it expires or is superseded; each success moves last_used_at.
    """
    checked_at = now or datetime.utcnow()
    row = (await db.execute(
        select(PortalAccessCode)
        .where(
            PortalAccessCode.phone == normalize_phone(phone),
            PortalAccessCode.expires_at > checked_at,
        )
        .order_by(PortalAccessCode.id.desc())
        .limit(1)
        .with_for_update()
    )).scalar_one_or_none()
    if not row:
        await db.commit()
        return PortalCodeCheck.NO_CODE

    if not verify_password(str(code or "").strip(), row.code_hash):
        await db.commit()
        return PortalCodeCheck.INVALID_CODE

    row.last_used_at = checked_at
    await db.commit()
    return PortalCodeCheck.OK
