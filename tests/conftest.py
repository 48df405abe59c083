import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("PORTAL_CODE_BCRYPT_ROUNDS", "4")

from typing import AsyncGenerator, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.models import AdminUser
from app.auth.security import create_access_token, hash_password
from app.core.enums import (
    AdminRole,
    ApplicationStatus,
    DeliveryMode,
    EnrollmentStatus,
    InstructorStatus,
    TokenAudience,
)
from app.core.models import Enrollment, Instructor, StudentApplication
from app.db.session import Base, get_db
from app.integrations.commerce import CommerceClient, CommerceProduct, get_commerce_client
from app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"
INSTRUCTOR_PASSWORD = "Teach1234!"
ADMIN_PASSWORD = "Admin1234!"


class FakeCommerceClient(CommerceClient):
    """Store double: returns a link, or raises when `fail` is set."""

    def __init__(self) -> None:
        self.fail = False
        self.calls = []

    async def create_product(self, title, amount, enrollment_id) -> CommerceProduct:
        self.calls.append((title, amount, enrollment_id))
        if self.fail:
            raise ConnectionError("store unreachable")
        return CommerceProduct(
            product_id=f"prod-{enrollment_id}",
            product_url=f"https://store.example.com/p/{enrollment_id}",
            raw={"ok": True},
        )


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; FastAPI's get_db is overridden to use it."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
def commerce() -> FakeCommerceClient:
    client = FakeCommerceClient()
    app.dependency_overrides[get_commerce_client] = lambda: client
    yield client
    app.dependency_overrides.pop(get_commerce_client, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ----- Factories -----

@pytest.fixture()
def make_admin(db_session: AsyncSession):
    async def _make(
        email: str = "admin@example.com",
        role: AdminRole = AdminRole.SUPER_ADMIN,
        phone: Optional[str] = None,
        is_active: bool = True,
    ) -> AdminUser:
        admin = AdminUser(
            email=email,
            password_hash=hash_password(ADMIN_PASSWORD, rounds=4),
            role=role.value,
            phone=phone,
            is_active=is_active,
        )
        db_session.add(admin)
        await db_session.commit()
        return admin

    return _make


@pytest.fixture()
def make_instructor(db_session: AsyncSession):
    async def _make(
        email: str = "tutor@example.com",
        name: str = "Kim Tutor",
        phone: Optional[str] = "01099990000",
        subjects: Optional[List[str]] = None,
        modes: Optional[List[str]] = None,
        region: Optional[str] = None,
        status: InstructorStatus = InstructorStatus.ACTIVE,
    ) -> Instructor:
        instructor = Instructor(
            name=name,
            phone=phone,
            email=email,
            password_hash=hash_password(INSTRUCTOR_PASSWORD, rounds=4),
            subjects=subjects if subjects is not None else ["Python"],
            modes=modes if modes is not None else [DeliveryMode.REMOTE.value],
            region=region,
            status=status.value,
        )
        db_session.add(instructor)
        await db_session.commit()
        return instructor

    return _make


@pytest.fixture()
def make_application(db_session: AsyncSession):
    async def _make(
        name: str = "Lee Student",
        phone: str = "01012345678",
        subjects: Optional[List[str]] = None,
        mode: DeliveryMode = DeliveryMode.REMOTE,
        status: ApplicationStatus = ApplicationStatus.SUBMITTED,
    ) -> StudentApplication:
        application = StudentApplication(
            name=name,
            phone=phone,
            subjects=subjects if subjects is not None else ["Python"],
            mode=mode.value,
            status=status.value,
        )
        db_session.add(application)
        await db_session.commit()
        return application

    return _make


@pytest.fixture()
def make_enrollment(db_session: AsyncSession, make_application, make_instructor):
    """Enrollment in the given status; creates its application and instructor unless passed in."""

    async def _make(
        status: EnrollmentStatus = EnrollmentStatus.BEFORE_PAYMENT,
        application: Optional[StudentApplication] = None,
        instructor: Optional[Instructor] = None,
    ) -> Enrollment:
        application = application or await make_application(status=ApplicationStatus.ENROLLED)
        instructor = instructor or await make_instructor()
        enrollment = Enrollment(
            student_application_id=application.id,
            instructor_id=instructor.id,
            status=status.value,
        )
        db_session.add(enrollment)
        await db_session.commit()
        return enrollment

    return _make


# ----- Tokens -----

@pytest.fixture()
def admin_headers():
    def _headers(admin: AdminUser) -> dict:
        token = create_access_token(
            subject={"id": admin.id, "role": admin.role, "email": admin.email},
            audience=TokenAudience.ADMIN,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def instructor_headers():
    def _headers(instructor: Instructor) -> dict:
        token = create_access_token(
            subject={"id": instructor.id, "email": instructor.email, "name": instructor.name},
            audience=TokenAudience.INSTRUCTOR,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def portal_headers():
    def _headers(phone: str) -> dict:
        token = create_access_token(subject={"phone": phone}, audience=TokenAudience.PORTAL)
        return {"Authorization": f"Bearer {token}"}

    return _headers
