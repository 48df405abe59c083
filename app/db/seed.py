"""
Seed admin accounts and a demo instructor.

Run once after create_tables:
  SEED_ADMIN_PASSWORD=... SEED_INSTRUCTOR_PASSWORD=... python -m app.db.seed

Existing rows (matched by email) are left untouched.
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser
from app.auth.security import hash_password
from app.core.config import settings
from app.core.enums import AdminRole, DeliveryMode, InstructorStatus
from app.core.logging import configure_logging
from app.core.models import Instructor
from app.db.session import AsyncSessionLocal, engine

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "admin1234!"
DEFAULT_INSTRUCTOR_PASSWORD = "tutor1234!"

SEED_ADMINS = (
    ("superadmin@example.com", AdminRole.SUPER_ADMIN),
    ("subadmin@example.com", AdminRole.SUB_ADMIN),
    ("instadmin@example.com", AdminRole.INSTRUCTOR_ADMIN),
    ("stuadmin@example.com", AdminRole.STUDENT_ADMIN),
)

DEMO_INSTRUCTOR_EMAIL = "demo-instructor@example.com"


async def seed(db: AsyncSession) -> None:
    admin_password = settings.seed_admin_password or DEFAULT_ADMIN_PASSWORD
    instructor_password = settings.seed_instructor_password or DEFAULT_INSTRUCTOR_PASSWORD

    for email, role in SEED_ADMINS:
        existing = (await db.execute(select(AdminUser.id).where(AdminUser.email == email))).scalar_one_or_none()
        if existing:
            continue
        db.add(AdminUser(
            email=email,
            password_hash=hash_password(admin_password),
            role=role.value,
            phone=None,
            is_active=True,
        ))
        logger.info("Created admin %s (%s)", email, role.value)

    existing = (await db.execute(
        select(Instructor.id).where(Instructor.email == DEMO_INSTRUCTOR_EMAIL)
    )).scalar_one_or_none()
    if not existing:
        db.add(Instructor(
            name="Demo Instructor",
            phone="01000000000",
            email=DEMO_INSTRUCTOR_EMAIL,
            password_hash=hash_password(instructor_password),
            subjects=["Python", "Web development", "Algorithms"],
            modes=[DeliveryMode.REMOTE.value, DeliveryMode.IN_PERSON_1_1.value],
            region="Suji",
            education="B.Sc. Computer Science",
            career="5 years of tutoring",
            major="Computer Science",
            age=30,
            gender="M",
            status=InstructorStatus.ACTIVE.value,
        ))
        logger.info("Created demo instructor %s", DEMO_INSTRUCTOR_EMAIL)

    await db.commit()


async def main() -> None:
    configure_logging()
    try:
        async with AsyncSessionLocal() as db:
            await seed(db)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
