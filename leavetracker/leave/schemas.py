"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Request  → request bodies (write)
  - *Out      → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from leavetracker.common.constants import LEAVE_TYPE_LABELS, LeaveType
from leavetracker.leave.cycle import days_remaining_in_cycle
from leavetracker.leave.ledger import HeatmapDay, LeaveBalance, LeaveLedger, LeaveLogEntry
from leavetracker.leave.policy import LeavePolicy


# ═════════════════════════════════════════════════════════════════════
# Allocation: request
# ═════════════════════════════════════════════════════════════════════


class AllocationRequest(BaseModel):
    """Payload for allocating consecutive working days of leave."""

    leave_type: LeaveType
    start_date: date = Field(..., description="First leave day; must be a weekday")
    duration_days: int = Field(1, ge=1, le=366, description="Consecutive working days")
    holiday_description: Optional[str] = Field(None, max_length=200)

    @field_validator("leave_type", mode="before")
    @classmethod
    def _resolve_alias(cls, v: Any) -> LeaveType:
        return LeaveType.parse(v)

    @model_validator(mode="after")
    def _public_needs_description(self) -> "AllocationRequest":
        if self.leave_type == LeaveType.public and not (self.holiday_description or "").strip():
            raise ValueError("A holiday description is required for public holidays.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Ledger: responses
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    quota: int
    taken: int
    remaining: int

    @classmethod
    def from_balance(cls, balance: LeaveBalance) -> "LeaveBalanceOut":
        return cls(quota=balance.quota, taken=balance.taken, remaining=balance.remaining)


class LeaveLogEntryOut(BaseModel):
    id: str
    type: LeaveType
    start_date: date
    duration: int
    timestamp: datetime
    holiday_description: Optional[str] = None
    dates: list[date] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: LeaveLogEntry) -> "LeaveLogEntryOut":
        return cls(**entry.model_dump(), dates=entry.span())


class LeaveLedgerOut(BaseModel):
    """Ledger snapshot with derived totals and heatmap."""

    employee_id: uuid.UUID
    balances: dict[LeaveType, LeaveBalanceOut]
    leave_log: list[LeaveLogEntryOut]
    heatmap: dict[date, HeatmapDay]
    cycle_start_date: Optional[datetime] = None
    days_remaining_in_cycle: int
    total_leaves: int
    leaves_used: int
    leaves_remaining: int

    @classmethod
    def from_ledger(
        cls,
        ledger: LeaveLedger,
        *,
        now: datetime,
        cycle_days: int,
    ) -> "LeaveLedgerOut":
        return cls(
            employee_id=ledger.employee_id,
            balances={
                t: LeaveBalanceOut.from_balance(b) for t, b in ledger.balances.items()
            },
            leave_log=[LeaveLogEntryOut.from_entry(e) for e in ledger.log],
            heatmap=ledger.heatmap,
            cycle_start_date=ledger.cycle_start_date,
            days_remaining_in_cycle=days_remaining_in_cycle(
                ledger.cycle_start_date, now, cycle_days,
            ),
            total_leaves=ledger.total_leaves,
            leaves_used=ledger.leaves_used,
            leaves_remaining=ledger.leaves_remaining,
        )


class LeaveHeatmapOut(BaseModel):
    employee_id: uuid.UUID
    year: int
    days: dict[date, HeatmapDay]


class LeavePolicyOut(BaseModel):
    quotas: dict[LeaveType, int]
    labels: dict[LeaveType, str]
    total_quota: int
    cycle_days: int

    @classmethod
    def from_policy(cls, policy: LeavePolicy) -> "LeavePolicyOut":
        return cls(
            quotas=dict(policy.quotas),
            labels=dict(LEAVE_TYPE_LABELS),
            total_quota=policy.total_quota,
            cycle_days=policy.cycle_days,
        )
