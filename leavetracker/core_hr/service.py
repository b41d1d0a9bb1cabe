"""Core HR service layer — employee directory with ledger provisioning.

Every employee is created together with a fresh leave ledger in the same
transaction, and deleted together with it.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from leavetracker.common.audit import create_audit_entry
from leavetracker.common.constants import AuditAction
from leavetracker.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    TransientStoreException,
)
from leavetracker.core_hr.models import Employee
from leavetracker.core_hr.schemas import EmployeeCreate, EmployeeOut
from leavetracker.leave.ledger import LeaveLedger
from leavetracker.leave.models import LeaveLedgerRecord
from leavetracker.leave.policy import LeavePolicy
from leavetracker.leave.summary import build_leave_summary

logger = logging.getLogger(__name__)


class EmployeeService:
    """Async employee operations scoped to the owning admin."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def build_response(employee: Employee) -> EmployeeOut:
        out = EmployeeOut.model_validate(employee)
        ledger = employee.ledger.to_domain() if employee.ledger is not None else None
        out.leave_summary = build_leave_summary(ledger)
        return out

    @staticmethod
    async def _load_owned(
        db: AsyncSession,
        employee_id: uuid.UUID,
        admin_id: uuid.UUID,
    ) -> Employee:
        result = await db.execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .options(
                selectinload(Employee.ledger).selectinload(LeaveLedgerRecord.entries),
            )
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        if employee.admin_id != admin_id:
            raise ForbiddenException("You don't have permission to access this employee.")
        return employee

    # ── List / Get ──────────────────────────────────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        admin_id: uuid.UUID,
    ) -> list[EmployeeOut]:
        """All employees owned by ``admin_id``, ordered by name."""
        result = await db.execute(
            select(Employee)
            .where(Employee.admin_id == admin_id)
            .options(
                selectinload(Employee.ledger).selectinload(LeaveLedgerRecord.entries),
            )
            .order_by(Employee.name.asc())
        )
        return [EmployeeService.build_response(e) for e in result.scalars().all()]

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        admin_id: uuid.UUID,
    ) -> EmployeeOut:
        employee = await EmployeeService._load_owned(db, employee_id, admin_id)
        return EmployeeService.build_response(employee)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        admin_id: uuid.UUID,
        policy: LeavePolicy,
        now: Optional[datetime] = None,
    ) -> EmployeeOut:
        """Create an employee and their ledger (zero taken, cycle starting now)."""
        now = now or datetime.now(timezone.utc)

        employee_id = uuid.uuid4()
        fresh = LeaveLedger.fresh(employee_id, policy.quotas, now, admin_id=admin_id)
        employee = Employee(
            id=employee_id,
            **data.model_dump(),
            admin_id=admin_id,
            ledger=LeaveLedgerRecord(
                employee_id=employee_id,
                balances=LeaveLedgerRecord.serialize_balances(fresh),
                cycle_start_date=fresh.cycle_start_date,
                entries=[],
            ),
        )

        db.add(employee)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "employee_code" in err or "uq_employee_admin_code" in err:
                raise ConflictError("employee_code", data.employee_code)
            raise

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type="employee",
            entity_id=employee.id,
            actor_id=admin_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Employee %s (%s) created by admin %s", employee.id, employee.employee_code, admin_id)

        return EmployeeService.build_response(employee)

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        admin_id: uuid.UUID,
    ) -> None:
        """Delete the employee together with their ledger and log."""
        employee = await EmployeeService._load_owned(db, employee_id, admin_id)
        snapshot = {
            "employee_code": employee.employee_code,
            "name": employee.name,
        }
        await db.delete(employee)
        try:
            await db.flush()
        except StaleDataError as exc:
            # The ledger row changed under us (a concurrent allocation)
            await db.rollback()
            logger.warning("Employee %s: ledger changed during delete", employee_id)
            raise TransientStoreException() from exc

        await create_audit_entry(
            db,
            action=AuditAction.delete,
            entity_type="employee",
            entity_id=employee_id,
            actor_id=admin_id,
            old_values=snapshot,
        )
        logger.info("Employee %s deleted by admin %s", employee_id, admin_id)
