"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leavetracker.auth.service import create_access_token
from leavetracker.core_hr.schemas import EmployeeCreate
from leavetracker.core_hr.service import EmployeeService
from leavetracker.database import Base, get_db, get_session_factory
from leavetracker.leave.policy import LeavePolicy
from leavetracker.leave.store import SqlLedgerStore
from leavetracker.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
# (Employee → LeaveLedgerRecord → LeaveLogEntryRecord, AuditTrail)
import leavetracker.common.audit  # noqa: F401
import leavetracker.core_hr.models  # noqa: F401
import leavetracker.leave.models  # noqa: F401


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
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
    from leavetracker.common.rate_limit import limiter

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


def _override_get_session_factory() -> async_sessionmaker[AsyncSession]:
    return TestSessionFactory


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependencies overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_session_factory] = _override_get_session_factory
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


@pytest.fixture
def store() -> SqlLedgerStore:
    return SqlLedgerStore(TestSessionFactory, max_attempts=3, backoff_seconds=0)


# ── Model factories ─────────────────────────────────────────────────

def _make_employee_create(
    *,
    employee_code: Optional[str] = None,
    name: str = "Test Employee",
    nationality: Optional[str] = "Indian",
    designation: Optional[str] = "Engineer",
) -> EmployeeCreate:
    return EmployeeCreate(
        employee_code=employee_code or f"EMP-{uuid.uuid4().hex[:6].upper()}",
        name=name,
        nationality=nationality,
        designation=designation,
    )


async def seed_employee(
    *,
    admin_id: uuid.UUID,
    policy: Optional[LeavePolicy] = None,
    now: Optional[datetime] = None,
    **kwargs,
):
    """Create an employee + fresh ledger in its own committed transaction."""
    async with TestSessionFactory() as session:
        out = await EmployeeService.create_employee(
            session,
            _make_employee_create(**kwargs),
            admin_id=admin_id,
            policy=policy or LeavePolicy(),
            now=now,
        )
        await session.commit()
    return out


@pytest.fixture
def admin_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def test_employee(admin_id):
    """An employee owned by ``admin_id`` with a ledger starting now."""
    return await seed_employee(admin_id=admin_id)


# ── Auth helpers ────────────────────────────────────────────────────

def make_token(admin_id: uuid.UUID, expired: bool = False) -> str:
    """Generate a JWT access token for testing."""
    expires_in = timedelta(hours=-1) if expired else None
    return create_access_token(admin_id, expires_in=expires_in)


@pytest.fixture
def auth_headers(admin_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(admin_id)}"}


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
