"""
Enrollment: one student application paired with one instructor.
Status only moves forward: BEFORE_PAYMENT < CONSULT_DONE < PAYMENT_REQUESTED < PAID.
"""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.core.enums import EnrollmentStatus
from app.db.session import Base


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_application_id = Column(
        Integer,
        ForeignKey("student_applications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    instructor_id = Column(Integer, ForeignKey("instructors.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(30), nullable=False, default=EnrollmentStatus.BEFORE_PAYMENT.value)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    consulted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student_application = relationship("StudentApplication", foreign_keys=[student_application_id])
    instructor = relationship("Instructor", foreign_keys=[instructor_id])
