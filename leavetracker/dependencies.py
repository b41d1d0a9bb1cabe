"""Shared FastAPI dependencies: leave policy, ledger store, allocation engine."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from leavetracker.config import settings
from leavetracker.database import get_session_factory
from leavetracker.leave.engine import AllocationEngine
from leavetracker.leave.policy import LeavePolicy
from leavetracker.leave.store import LedgerStore, SqlLedgerStore


def get_leave_policy() -> LeavePolicy:
    """Quotas and cycle length configured for this deployment."""
    return LeavePolicy.from_settings(settings)


def get_ledger_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> LedgerStore:
    return SqlLedgerStore(
        session_factory,
        max_attempts=settings.LEDGER_MAX_RETRIES,
        backoff_seconds=settings.LEDGER_RETRY_BACKOFF_MS / 1000,
    )


def get_allocation_engine(
    store: LedgerStore = Depends(get_ledger_store),
    policy: LeavePolicy = Depends(get_leave_policy),
) -> AllocationEngine:
    return AllocationEngine(store, policy)
