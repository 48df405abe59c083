"""
Student application: submitted from the public form.
Status moves SUBMITTED -> INSTRUCTOR_SELECTED -> ENROLLED and is only changed by the enrollment state machine.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.enums import ApplicationStatus
from app.db.session import Base


class StudentApplication(Base):
    __tablename__ = "student_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)  # digits only
    subjects = Column(JSON, nullable=False, default=list)  # ordered, at most 5
    target = Column(String(100), nullable=True)
    mode = Column(String(30), nullable=False)
    region = Column(String(100), nullable=True)
    note = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default=ApplicationStatus.SUBMITTED.value)
    selected_instructor_id = Column(Integer, ForeignKey("instructors.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    selected_instructor = relationship("Instructor", foreign_keys=[selected_instructor_id])
