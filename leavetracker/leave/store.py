"""Ledger store — atomic read-modify-write of one employee's ledger.

``LedgerStore.run_atomic(employee_id, mutator)`` loads the current
snapshot, calls ``mutator(snapshot)`` and persists the ledger it returns,
all inside one transaction. The SQL implementation is optimistic: the
ledger row carries a version counter, a concurrent commit turns our
UPDATE into a ``StaleDataError`` and the whole read-modify-write is
replayed against a fresh snapshot. Exceptions raised by the mutator are
never retried.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import uuid
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

import leavetracker.core_hr.models  # noqa: F401  (registers Employee for the ledger relationship)
from leavetracker.common.audit import create_audit_entry, utcnow
from leavetracker.common.constants import AuditAction
from leavetracker.common.exceptions import NotFoundException, TransientStoreException
from leavetracker.leave.ledger import LeaveLedger
from leavetracker.leave.models import LeaveLedgerRecord, LeaveLogEntryRecord

logger = logging.getLogger(__name__)

LedgerMutator = Callable[[LeaveLedger], LeaveLedger]

LEDGER_ENTITY = "leave_ledger"


class LedgerStore(abc.ABC):
    """Transactional key → ledger store."""

    @abc.abstractmethod
    async def get(self, employee_id: uuid.UUID) -> Optional[LeaveLedger]:
        """Return the current snapshot, or None if the employee has no ledger."""

    @abc.abstractmethod
    async def run_atomic(
        self,
        employee_id: uuid.UUID,
        mutator: LedgerMutator,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveLedger:
        """Apply ``mutator`` to the ledger with serializable, all-or-nothing semantics.

        Raises ``NotFoundException`` if the employee has no ledger,
        ``TransientStoreException`` if the transaction cannot be committed,
        and propagates whatever ``mutator`` raises.
        """


class SqlLedgerStore(LedgerStore):
    """SQLAlchemy-backed ledger store with optimistic retry."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_attempts: int = 5,
        backoff_seconds: float = 0.02,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    async def _load(
        session: AsyncSession,
        employee_id: uuid.UUID,
    ) -> Optional[LeaveLedgerRecord]:
        result = await session.execute(
            select(LeaveLedgerRecord)
            .where(LeaveLedgerRecord.employee_id == employee_id)
            .options(
                selectinload(LeaveLedgerRecord.entries),
                selectinload(LeaveLedgerRecord.employee),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get(self, employee_id: uuid.UUID) -> Optional[LeaveLedger]:
        async with self._session_factory() as session:
            record = await self._load(session, employee_id)
            return record.to_domain() if record is not None else None

    # ── Atomic read-modify-write ────────────────────────────────────

    async def run_atomic(
        self,
        employee_id: uuid.UUID,
        mutator: LedgerMutator,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveLedger:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._attempt(employee_id, mutator, actor_id)
            except (StaleDataError, OperationalError) as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "Ledger %s: giving up after %d attempts (%s)",
                        employee_id, attempt, type(exc).__name__,
                    )
                    raise TransientStoreException() from exc
                logger.warning(
                    "Ledger %s: attempt %d failed (%s), retrying",
                    employee_id, attempt, type(exc).__name__,
                )
                await asyncio.sleep(self._backoff_seconds * attempt)

    async def _attempt(
        self,
        employee_id: uuid.UUID,
        mutator: LedgerMutator,
        actor_id: Optional[uuid.UUID],
    ) -> LeaveLedger:
        async with self._session_factory() as session:
            async with session.begin():
                record = await self._load(session, employee_id)
                if record is None:
                    raise NotFoundException("Employee", str(employee_id))

                current = record.to_domain()
                updated = mutator(current)
                if updated == current:
                    return current

                await self._write(session, record, current, updated, actor_id)
                await session.flush()
                version = record.version
        return updated.model_copy(update={"version": version})

    async def _write(
        self,
        session: AsyncSession,
        record: LeaveLedgerRecord,
        current: LeaveLedger,
        updated: LeaveLedger,
        actor_id: Optional[uuid.UUID],
    ) -> None:
        if updated.employee_id != current.employee_id:
            raise ValueError("mutator must not change the ledger's employee")
        if updated.log[: len(current.log)] != current.log:
            raise ValueError("leave log is append-only")

        record.balances = LeaveLedgerRecord.serialize_balances(updated)
        record.cycle_start_date = updated.cycle_start_date
        record.updated_at = utcnow()

        if updated.cycle_start_date != current.cycle_start_date:
            await create_audit_entry(
                session,
                action=AuditAction.cycle_reset,
                entity_type=LEDGER_ENTITY,
                entity_id=current.employee_id,
                actor_id=actor_id,
                old_values={
                    "cycle_start_date": _isoformat(current.cycle_start_date),
                    "balances": LeaveLedgerRecord.serialize_balances(current),
                },
                new_values={"cycle_start_date": _isoformat(updated.cycle_start_date)},
            )

        for position in range(len(current.log), len(updated.log)):
            entry = updated.log[position]
            record.entries.append(
                LeaveLogEntryRecord.from_domain(
                    entry, employee_id=current.employee_id, position=position,
                )
            )
            await create_audit_entry(
                session,
                action=AuditAction.allocate,
                entity_type=LEDGER_ENTITY,
                entity_id=current.employee_id,
                actor_id=actor_id,
                new_values=entry.model_dump(mode="json"),
            )


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
