"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, core_hr, leave, notifications, etc.).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.

The app's sessions and the ``db`` fixture share one connection (StaticPool),
so factories commit what they insert: a rollback in the app session would
otherwise discard uncommitted seed rows.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hrportal.common.constants import UserRole
from hrportal.config import settings
from hrportal.database import Base, get_db
from hrportal.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
# (e.g. Employee → LeaveBalance, Notification → User, etc.)
import hrportal.appointments.models  # noqa: F401
import hrportal.auth.models  # noqa: F401
import hrportal.common.audit  # noqa: F401
import hrportal.core_hr.models  # noqa: F401
import hrportal.leave.models  # noqa: F401
import hrportal.notifications.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and gen_random_uuid() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "gen_random_uuid", 0, lambda: str(uuid.uuid4()),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from hrportal.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

@pytest.fixture
def make_department(db):
    """Insert a department (committed) and return the ORM object."""
    from hrportal.core_hr.models import Department

    async def _make(name: str = "Engineering", **extra) -> Department:
        department = Department(name=name, **extra)
        db.add(department)
        await db.commit()
        return department

    return _make


@pytest.fixture
def make_employee(db):
    """Insert an employee (committed) and return the ORM object."""
    from hrportal.core_hr.models import Employee

    async def _make(
        *,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        email: Optional[str] = None,
        position: str = "Software Engineer",
        department_id: Optional[uuid.UUID] = None,
        **extra,
    ) -> Employee:
        employee = Employee(
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name}.{last_name}.{uuid.uuid4().hex[:6]}@example.com".lower(),
            position=position,
            department_id=department_id,
            start_date=extra.pop("start_date", date(2022, 1, 10)),
            **extra,
        )
        db.add(employee)
        await db.commit()
        return employee

    return _make


@pytest.fixture
def make_leave_type(db):
    from hrportal.leave.models import LeaveType

    async def _make(name: str = "Annual Leave", default_days: int = 20, **extra) -> LeaveType:
        leave_type = LeaveType(name=name, default_days=default_days, **extra)
        db.add(leave_type)
        await db.commit()
        return leave_type

    return _make


@pytest.fixture
def make_balance(db):
    from hrportal.leave.models import LeaveBalance

    async def _make(
        employee_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        *,
        year: int = 2024,
        total_entitlement: int = 20,
        days_used: int = 0,
    ) -> LeaveBalance:
        balance = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            total_entitlement=total_entitlement,
            days_used=days_used,
        )
        db.add(balance)
        await db.commit()
        return balance

    return _make


@pytest.fixture
async def department(make_department):
    return await make_department()


@pytest.fixture
async def employee(make_employee, department):
    """Active employee in the Engineering department."""
    return await make_employee(department_id=department.id)


@pytest.fixture
async def annual_leave(make_leave_type):
    return await make_leave_type("Annual Leave", 20)


@pytest.fixture
async def annual_balance(make_balance, employee, annual_leave):
    """2024 Annual Leave balance: 20 days, none used."""
    return await make_balance(employee.id, annual_leave.id)


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT for testing without persisting a session."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def make_user(db):
    """Create a user with a live session; returns ``(user, headers)``."""
    from hrportal.auth.models import User
    from hrportal.auth.service import create_session, hash_password

    async def _make(
        role: UserRole = UserRole.employee,
        *,
        employee_id: Optional[uuid.UUID] = None,
        username: Optional[str] = None,
        password: str = "correct-horse-battery",
    ):
        user = User(
            username=username or f"{role.value}-{uuid.uuid4().hex[:8]}",
            password_hash=hash_password(password),
            role=role,
            employee_id=employee_id,
        )
        db.add(user)
        await db.flush()
        token, _ = await create_session(db, user, "127.0.0.1", "pytest")
        await db.commit()
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
async def hr_admin(make_user):
    return await make_user(UserRole.hr_admin)


@pytest.fixture
async def hr_headers(hr_admin) -> dict[str, str]:
    return hr_admin[1]


@pytest.fixture
async def manager_headers(make_user) -> dict[str, str]:
    _, headers = await make_user(UserRole.manager)
    return headers


@pytest.fixture
async def employee_user(make_user, employee):
    """Employee-role account linked to the ``employee`` record."""
    return await make_user(UserRole.employee, employee_id=employee.id)


@pytest.fixture
async def employee_headers(employee_user) -> dict[str, str]:
    return employee_user[1]
