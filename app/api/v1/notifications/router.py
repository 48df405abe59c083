from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin
from app.db.session import get_db
from app.notifications import ledger, outbox

from .schemas import DispatchResponse, NotificationLogResponse

router = APIRouter(
    prefix="/api/v1/admin/notifications",
    tags=["admin-notifications"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("", response_model=List[NotificationLogResponse])
async def list_notifications(
    event_type: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> List[NotificationLogResponse]:
    """Ledger entries, newest first. Read by delivery workers and for auditing."""
    entries = await ledger.list_notifications(db, event_type=event_type, phone=phone, limit=limit)
    return [NotificationLogResponse.model_validate(e) for e in entries]


@router.post("/dispatch", response_model=DispatchResponse)
async def dispatch_outbox(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> DispatchResponse:
    """Move pending outbox rows into the ledger (retries earlier failures)."""
    summary = await outbox.dispatch_pending(db, limit=limit)
    return DispatchResponse(
        dispatched=summary.dispatched,
        failed=summary.failed,
        entries_written=summary.entries_written,
    )
