from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.db.session import Base


class AdminUser(Base):
    """Back-office account. Role decides which notification groups the admin belongs to."""

    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    # SUPER_ADMIN, SUB_ADMIN, INSTRUCTOR_ADMIN, STUDENT_ADMIN
    role = Column(String(50), nullable=False)
    # Admins without a phone are never notification targets
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
