"""Instructor accounts and the applications they are created from."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from app.core.enums import InstructorApplicationStatus, InstructorStatus
from app.db.session import Base


class InstructorApplication(Base):
    __tablename__ = "instructor_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    subjects = Column(JSON, nullable=False, default=list)
    modes = Column(JSON, nullable=False, default=list)
    region = Column(String(100), nullable=True)
    education = Column(String(255), nullable=True)
    career = Column(Text, nullable=True)
    major = Column(String(100), nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(10), nullable=True)
    photo_url = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=InstructorApplicationStatus.PENDING.value)
    review_note = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Instructor(Base):
    """Active service provider. Created (or re-activated) by approving an InstructorApplication."""

    __tablename__ = "instructors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    subjects = Column(JSON, nullable=False, default=list)
    modes = Column(JSON, nullable=False, default=list)
    region = Column(String(100), nullable=True)
    education = Column(String(255), nullable=True)
    career = Column(Text, nullable=True)
    major = Column(String(100), nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(10), nullable=True)
    photo_url = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=InstructorStatus.ACTIVE.value)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
