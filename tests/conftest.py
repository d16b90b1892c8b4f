import os
from datetime import date, datetime, time
from typing import AsyncGenerator, Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("BOOTSTRAP_ON_STARTUP", "false")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timekeeper.auth.models import User
from timekeeper.auth.security import create_access_token, hash_password
from timekeeper.core.models import Attendance, Task
from timekeeper.core.time_rules import today
from timekeeper.db.session import Base, get_db
from timekeeper.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "password123"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory DB per test; the app's get_db yields this same session."""
    # StaticPool: every connection shares the one in-memory database
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
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

    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def user_factory(db_session: AsyncSession):
    async def _make(
        name: str,
        *,
        role: str = "employee",
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        is_active: bool = True,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            name=name,
            user_id=user_id,
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
async def admin_user(user_factory) -> User:
    return await user_factory("Admin", role="admin", email="admin@test.com")


@pytest.fixture()
async def employees(user_factory) -> List[User]:
    return [
        await user_factory("Employee One", user_id="EMP001", email="emp1@test.com", phone="555-0001"),
        await user_factory("Employee Two", user_id="EMP002", email="emp2@test.com", phone="555-0002"),
        await user_factory("Employee Three", user_id="EMP003", email="emp3@test.com", phone="555-0003"),
    ]


@pytest.fixture()
def task_factory(db_session: AsyncSession, admin_user: User):
    async def _make(
        employees: List[User],
        *,
        title: str = "Task",
        day: Optional[date] = None,
        start: time = time(9, 0),
        end: time = time(17, 0),
        status: str = "pending",
    ) -> Task:
        task = Task(
            title=title,
            date=day or today(),
            start_time=start,
            end_time=end,
            status=status,
            created_by=admin_user.id,
        )
        task.employees = list(employees)
        db_session.add(task)
        await db_session.commit()
        return task

    return _make


@pytest.fixture()
def attendance_factory(db_session: AsyncSession):
    async def _make(
        task: Task,
        employee: User,
        clock_in: datetime,
        clock_out: Optional[datetime] = None,
    ) -> Attendance:
        record = Attendance(
            task_id=task.id,
            employee_id=employee.id,
            clock_in_time=clock_in,
            clock_out_time=clock_out,
        )
        db_session.add(record)
        await db_session.commit()
        return record

    return _make


def _headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(subject={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers():
    """Bearer headers for any user: auth_headers(user)."""
    return _headers_for


@pytest.fixture()
def admin_headers(admin_user: User) -> Dict[str, str]:
    return _headers_for(admin_user)
