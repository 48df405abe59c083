"""Progress report written by the owning instructor; visible in the portal only once APPROVED."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.enums import ReportStatus
from app.db.session import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="RESTRICT"), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("instructors.id", ondelete="RESTRICT"), nullable=False)
    type = Column(String(20), nullable=False)  # PROJECT, ALGORITHM
    title = Column(String(255), nullable=False)
    summary = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)
    score = Column(Float, nullable=True)
    raw_data = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default=ReportStatus.PENDING.value, index=True)
    review_note = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    enrollment = relationship("Enrollment", backref="reports", foreign_keys=[enrollment_id])
