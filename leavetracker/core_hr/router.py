"""Core HR router — employee directory endpoints.

Routes:
    /employees        — List (own, by name), create
    /employees/{id}   — Get, delete

All endpoints require an admin bearer token; admins only see their own
employees.
"""


import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from leavetracker.auth.dependencies import get_current_admin
from leavetracker.core_hr.schemas import EmployeeCreate, EmployeeOut
from leavetracker.core_hr.service import EmployeeService
from leavetracker.database import get_db
from leavetracker.dependencies import get_leave_policy
from leavetracker.leave.policy import LeavePolicy

employees_router = APIRouter(prefix="", tags=["employees"])


# ── GET / ───────────────────────────────────────────────────────────

@employees_router.get("", response_model=list[EmployeeOut])
async def list_employees(
    admin_id: uuid.UUID = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's employees ordered by name."""
    return await EmployeeService.list_employees(db, admin_id)


# ── POST / ──────────────────────────────────────────────────────────

@employees_router.post("", response_model=EmployeeOut, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    admin_id: uuid.UUID = Depends(get_current_admin),
    policy: LeavePolicy = Depends(get_leave_policy),
    db: AsyncSession = Depends(get_db),
):
    """Add an employee with a fresh leave ledger."""
    return await EmployeeService.create_employee(
        db, body, admin_id=admin_id, policy=policy,
    )


# ── GET /{id} ───────────────────────────────────────────────────────

@employees_router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: uuid.UUID,
    admin_id: uuid.UUID = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_employee(db, employee_id, admin_id)


# ── DELETE /{id} ────────────────────────────────────────────────────

@employees_router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    admin_id: uuid.UUID = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Remove an employee together with their ledger."""
    await EmployeeService.delete_employee(db, employee_id, admin_id)
    return Response(status_code=204)
