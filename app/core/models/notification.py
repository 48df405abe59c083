"""
Notification ledger (append-only) and the outbox that feeds it.

Transitions enqueue NotificationOutbox rows inside their own transaction; a dispatcher
turns each pending row into NotificationLog entries independently of the transition.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from app.core.enums import NotificationChannel, NotificationStatus, OutboxStatus
from app.db.session import Base


class NotificationLog(Base):
    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel = Column(String(30), nullable=False, default=NotificationChannel.INTERNAL.value)
    event_type = Column(String(100), nullable=False, index=True)
    to_role = Column(String(50), nullable=True)
    to_phone = Column(String(20), nullable=True, index=True)
    payload = Column(JSON, nullable=True)
    # Delivery status is owned by a future delivery worker
    status = Column(String(20), nullable=False, default=NotificationStatus.QUEUED.value)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(100), nullable=False)
    # Exactly one of target_roles / target_phone is set
    target_roles = Column(JSON, nullable=True)
    target_phone = Column(String(20), nullable=True)
    payload = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default=OutboxStatus.PENDING.value, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    dispatched_at = Column(DateTime, nullable=True)
