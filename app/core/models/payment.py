"""Payment request raised by an instructor against an enrollment."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String

from app.core.enums import PaymentStatus
from app.db.session import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    title = Column(String(255), nullable=False)
    # PRODUCT_CREATED when the commerce collaborator returned a link, REQUESTED otherwise
    status = Column(String(30), nullable=False, default=PaymentStatus.REQUESTED.value)
    product_id = Column(String(100), nullable=True)
    product_url = Column(String(500), nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
