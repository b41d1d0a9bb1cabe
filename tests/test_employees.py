"""Employee module test suite — create, list, get, delete, ownership,
duplicate codes and validation errors.

Tests exercise the service layer and the HTTP API (via router).
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavetracker.common.audit import AuditTrail
from leavetracker.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from leavetracker.core_hr.service import EmployeeService
from leavetracker.leave.models import LeaveLedgerRecord, LeaveLogEntryRecord
from leavetracker.leave.policy import LeavePolicy
from tests.conftest import _make_employee_create, make_token, seed_employee, utc


# ═════════════════════════════════════════════════════════════════════
# Service layer
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeService:

    async def test_create_provisions_fresh_ledger(self, db: AsyncSession, admin_id):
        now = utc(2024, 6, 1)
        out = await EmployeeService.create_employee(
            db, _make_employee_create(name="Asha Rao"),
            admin_id=admin_id, policy=LeavePolicy(), now=now,
        )

        assert out.name == "Asha Rao"
        assert out.admin_id == admin_id
        assert out.leave_summary.total_leaves == 35
        assert out.leave_summary.leaves_used == 0

        record = await db.get(LeaveLedgerRecord, out.id)
        assert record is not None
        assert record.balances["public"] == {"quota": 11, "taken": 0}
        assert record.version == 1

    async def test_create_uses_policy_quotas(self, db: AsyncSession, admin_id):
        from types import MappingProxyType

        from leavetracker.common.constants import LeaveType

        policy = LeavePolicy(
            quotas=MappingProxyType({LeaveType.sick: 5, LeaveType.casual: 7, LeaveType.public: 0}),
        )
        out = await EmployeeService.create_employee(
            db, _make_employee_create(), admin_id=admin_id, policy=policy,
        )
        assert out.leave_summary.total_leaves == 12
        assert out.leave_summary.breakdown[LeaveType.casual].total == 7

    async def test_duplicate_code_for_same_admin(self, admin_id):
        await seed_employee(admin_id=admin_id, employee_code="EMP-001")
        with pytest.raises(ConflictError):
            await seed_employee(admin_id=admin_id, employee_code="EMP-001")

    async def test_same_code_for_different_admins(self, admin_id):
        await seed_employee(admin_id=admin_id, employee_code="EMP-001")
        other = await seed_employee(admin_id=uuid.uuid4(), employee_code="EMP-001")
        assert other.employee_code == "EMP-001"

    async def test_list_is_scoped_and_ordered(self, db: AsyncSession, admin_id):
        await seed_employee(admin_id=admin_id, name="Zoya")
        await seed_employee(admin_id=admin_id, name="Arjun")
        await seed_employee(admin_id=uuid.uuid4(), name="Someone Else")

        employees = await EmployeeService.list_employees(db, admin_id)
        assert [e.name for e in employees] == ["Arjun", "Zoya"]

    async def test_get_unknown_and_foreign(self, db: AsyncSession, admin_id):
        emp = await seed_employee(admin_id=admin_id)
        with pytest.raises(NotFoundException):
            await EmployeeService.get_employee(db, uuid.uuid4(), admin_id)
        with pytest.raises(ForbiddenException):
            await EmployeeService.get_employee(db, emp.id, uuid.uuid4())

    async def test_delete_racing_allocation_is_transient(self, db: AsyncSession, admin_id, store):
        from leavetracker.common.exceptions import TransientStoreException
        from leavetracker.leave.engine import AllocationEngine

        emp = await seed_employee(admin_id=admin_id)
        # Ledger (version 1) now sits in this session's identity map
        await EmployeeService.get_employee(db, emp.id, admin_id)
        await AllocationEngine(store).allocate(emp.id, "sick", "2024-06-10")

        with pytest.raises(TransientStoreException):
            await EmployeeService.delete_employee(db, emp.id, admin_id)

        stored = await store.get(emp.id)
        assert stored is not None
        assert len(stored.log) == 1

    async def test_delete_removes_ledger_and_log(self, db: AsyncSession, admin_id, store):
        from leavetracker.leave.engine import AllocationEngine

        emp = await seed_employee(admin_id=admin_id)
        await AllocationEngine(store).allocate(emp.id, "sick", "2024-06-10", 2)

        await EmployeeService.delete_employee(db, emp.id, admin_id)
        await db.commit()

        assert await db.get(LeaveLedgerRecord, emp.id) is None
        remaining = await db.scalar(
            select(func.count()).select_from(LeaveLogEntryRecord)
            .where(LeaveLogEntryRecord.employee_id == emp.id)
        )
        assert remaining == 0
        actions = (
            await db.execute(
                select(AuditTrail.action).where(AuditTrail.entity_id == emp.id)
            )
        ).scalars().all()
        assert "create" in actions
        assert "delete" in actions


# ═════════════════════════════════════════════════════════════════════
# HTTP API
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeAPI:

    async def test_create_employee_endpoint(self, client, auth_headers, admin_id):
        resp = await client.post(
            "/api/v1/employees",
            json={"employee_code": "EMP-100", "name": "  Meera  ", "designation": "Designer"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Meera"
        assert data["admin_id"] == str(admin_id)
        assert data["leave_summary"]["total_leaves"] == 35
        assert data["leave_summary"]["remaining"]["casual"] == 12

    async def test_create_blank_name_rejected(self, client, auth_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"employee_code": "EMP-101", "name": "   "},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert "name" in resp.json()["errors"]

    async def test_duplicate_code_is_409(self, client, auth_headers):
        body = {"employee_code": "EMP-102", "name": "First"}
        assert (await client.post("/api/v1/employees", json=body, headers=auth_headers)).status_code == 201
        resp = await client.post("/api/v1/employees", json=body, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("/conflict")

    async def test_list_employees_endpoint(self, client, auth_headers, test_employee):
        resp = await client.get("/api/v1/employees", headers=auth_headers)
        assert resp.status_code == 200
        assert [e["id"] for e in resp.json()] == [str(test_employee.id)]

    async def test_get_employee_endpoint(self, client, auth_headers, test_employee):
        resp = await client.get(f"/api/v1/employees/{test_employee.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["employee_code"] == test_employee.employee_code

    async def test_get_foreign_employee_forbidden(self, client, test_employee):
        headers = {"Authorization": f"Bearer {make_token(uuid.uuid4())}"}
        resp = await client.get(f"/api/v1/employees/{test_employee.id}", headers=headers)
        assert resp.status_code == 403

    async def test_get_unknown_employee_404(self, client, auth_headers):
        resp = await client.get(f"/api/v1/employees/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["status"] == 404

    async def test_delete_employee_endpoint(self, client, auth_headers, test_employee):
        resp = await client.delete(f"/api/v1/employees/{test_employee.id}", headers=auth_headers)
        assert resp.status_code == 204
        resp = await client.get(f"/api/v1/employees/{test_employee.id}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_missing_token_401(self, client):
        resp = await client.get("/api/v1/employees")
        assert resp.status_code == 401

    async def test_expired_token_401(self, client, admin_id):
        headers = {"Authorization": f"Bearer {make_token(admin_id, expired=True)}"}
        resp = await client.get("/api/v1/employees", headers=headers)
        assert resp.status_code == 401
