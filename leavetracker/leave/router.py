"""Leave router — allocation, ledger snapshot, summary, heatmap, policy.

All endpoints require an admin bearer token. Ledger endpoints check that
the caller owns the employee.
"""


import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from leavetracker.auth.dependencies import get_current_admin
from leavetracker.common.rate_limit import ALLOCATE_RATE_LIMIT, limiter
from leavetracker.dependencies import get_allocation_engine, get_leave_policy
from leavetracker.leave.engine import AllocationEngine
from leavetracker.leave.policy import LeavePolicy
from leavetracker.leave.schemas import (
    AllocationRequest,
    LeaveHeatmapOut,
    LeaveLedgerOut,
    LeavePolicyOut,
)
from leavetracker.leave.summary import LeaveSummary, build_heatmap_year, build_leave_summary

router = APIRouter(prefix="", tags=["leave"])


def _ledger_out(ledger, engine: AllocationEngine) -> LeaveLedgerOut:
    return LeaveLedgerOut.from_ledger(
        ledger,
        now=datetime.now(timezone.utc),
        cycle_days=engine.policy.cycle_days,
    )


# ── GET /leave/policy ───────────────────────────────────────────────

@router.get("/leave/policy", response_model=LeavePolicyOut)
async def get_policy(
    admin_id: uuid.UUID = Depends(get_current_admin),
    policy: LeavePolicy = Depends(get_leave_policy),
):
    """Configured quotas per leave type and cycle length."""
    return LeavePolicyOut.from_policy(policy)


# ── GET /employees/{id}/leave ───────────────────────────────────────

@router.get("/employees/{employee_id}/leave", response_model=LeaveLedgerOut)
async def get_ledger(
    employee_id: uuid.UUID,
    admin_id: uuid.UUID = Depends(get_current_admin),
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Current ledger: balances, log, heatmap and cycle status."""
    ledger = await engine.get_ledger(employee_id, actor_id=admin_id)
    return _ledger_out(ledger, engine)


# ── POST /employees/{id}/leave/allocate ─────────────────────────────

@router.post("/employees/{employee_id}/leave/allocate", response_model=LeaveLedgerOut)
@limiter.limit(ALLOCATE_RATE_LIMIT)
async def allocate_leave(
    request: Request,
    employee_id: uuid.UUID,
    body: AllocationRequest,
    admin_id: uuid.UUID = Depends(get_current_admin),
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Allocate consecutive working days. Checks weekend start, overlap and quota."""
    ledger = await engine.allocate(
        employee_id,
        body.leave_type,
        body.start_date,
        body.duration_days,
        body.holiday_description,
        actor_id=admin_id,
    )
    return _ledger_out(ledger, engine)


# ── POST /employees/{id}/leave/refresh-cycle ────────────────────────

@router.post("/employees/{employee_id}/leave/refresh-cycle", response_model=LeaveLedgerOut)
async def refresh_cycle(
    employee_id: uuid.UUID,
    admin_id: uuid.UUID = Depends(get_current_admin),
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Roll the ledger into a new cycle if the current one has expired."""
    ledger = await engine.refresh_cycle(employee_id, actor_id=admin_id)
    return _ledger_out(ledger, engine)


# ── GET /employees/{id}/leave/summary ───────────────────────────────

@router.get("/employees/{employee_id}/leave/summary", response_model=LeaveSummary)
async def get_summary(
    employee_id: uuid.UUID,
    admin_id: uuid.UUID = Depends(get_current_admin),
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    ledger = await engine.get_ledger(employee_id, actor_id=admin_id)
    return build_leave_summary(ledger)


# ── GET /employees/{id}/leave/heatmap ───────────────────────────────

@router.get("/employees/{employee_id}/leave/heatmap", response_model=LeaveHeatmapOut)
async def get_heatmap(
    employee_id: uuid.UUID,
    year: Optional[int] = Query(None, ge=1970, le=9999),
    admin_id: uuid.UUID = Depends(get_current_admin),
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Per-day occupancy for one year (defaults to the current year)."""
    year = year or datetime.now(timezone.utc).year
    ledger = await engine.get_ledger(employee_id, actor_id=admin_id)
    return LeaveHeatmapOut(
        employee_id=employee_id,
        year=year,
        days=build_heatmap_year(ledger, year),
    )
