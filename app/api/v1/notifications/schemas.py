from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class NotificationLogResponse(BaseModel):
    id: int
    channel: str
    event_type: str
    to_role: Optional[str] = None
    to_phone: Optional[str] = None
    payload: Optional[Any] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class DispatchResponse(BaseModel):
    dispatched: int
    failed: int
    entries_written: int
