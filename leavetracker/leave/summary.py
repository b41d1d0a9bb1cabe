"""Read-only projections of a ledger for dashboards and charts."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from leavetracker.common.constants import LeaveType
from leavetracker.leave.ledger import HeatmapDay, LeaveLedger


class LeaveTypeBreakdown(BaseModel):
    used: int = 0
    remaining: int = 0
    total: int = 0


class LeaveSummary(BaseModel):
    """Used/remaining per type plus overall totals."""

    taken: dict[LeaveType, int] = Field(default_factory=dict)
    remaining: dict[LeaveType, int] = Field(default_factory=dict)
    breakdown: dict[LeaveType, LeaveTypeBreakdown] = Field(default_factory=dict)
    total_leaves: int = 0
    leaves_used: int = 0
    leaves_remaining: int = 0


def build_leave_summary(ledger: Optional[LeaveLedger]) -> LeaveSummary:
    """Project ``ledger`` into per-type usage; a missing ledger yields zeros."""
    if ledger is None:
        zeros = {leave_type: 0 for leave_type in LeaveType}
        return LeaveSummary(
            taken=dict(zeros),
            remaining=dict(zeros),
            breakdown={leave_type: LeaveTypeBreakdown() for leave_type in LeaveType},
        )

    breakdown: dict[LeaveType, LeaveTypeBreakdown] = {}
    for leave_type in LeaveType:
        balance = ledger.balance(leave_type)
        breakdown[leave_type] = LeaveTypeBreakdown(
            used=balance.taken,
            remaining=balance.remaining,
            total=balance.quota,
        )

    return LeaveSummary(
        taken={t: b.used for t, b in breakdown.items()},
        remaining={t: b.remaining for t, b in breakdown.items()},
        breakdown=breakdown,
        total_leaves=ledger.total_leaves,
        leaves_used=ledger.leaves_used,
        leaves_remaining=ledger.leaves_remaining,
    )


def build_heatmap_year(ledger: LeaveLedger, year: int) -> dict[date, HeatmapDay]:
    """Heatmap cells for one calendar year, in date order."""
    return {day: cell for day, cell in ledger.heatmap.items() if day.year == year}
