"""
Portal access code: bcrypt hash of a 6-digit passcode bound to a phone and an enrollment.
Rows are never deleted; only last_used_at changes after insert.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from app.db.session import Base


class PortalAccessCode(Base):
    __tablename__ = "portal_access_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="RESTRICT"), nullable=False, index=True)
    phone = Column(String(20), nullable=False, index=True)
    code_hash = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    last_used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
