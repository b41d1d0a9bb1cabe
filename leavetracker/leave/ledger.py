"""Leave ledger domain model.

One ``LeaveLedger`` per employee holds the per-type quota counters, the
append-only allocation log and the cycle start. Snapshots are immutable:
the engine derives a new ledger for every change and hands it back to the
store, so a rejected request never touches the snapshot it was given.

Invariants kept by the allocation engine:
  - ``balances[t].taken <= balances[t].quota`` for every type.
  - ``balances[t].taken`` equals the summed duration of type-``t`` entries
    logged since the cycle started.
  - No two log entries cover the same working day.
  - ``heatmap`` is derived from ``log`` on read and never stored.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from leavetracker.common.constants import NON_OCCUPANCY_LEAVE_TYPES, LeaveType
from leavetracker.leave.cycle import parse_cycle_start
from leavetracker.leave.workdays import parse_calendar_date, working_day_span


# ═════════════════════════════════════════════════════════════════════
# Building blocks
# ═════════════════════════════════════════════════════════════════════


class LeaveBalance(BaseModel):
    """Quota and consumption for one leave type in the current cycle."""

    model_config = ConfigDict(frozen=True)

    quota: int = Field(..., ge=0)
    taken: int = Field(0, ge=0)

    @property
    def available(self) -> int:
        """Days that may still be allocated; negative only for corrupt data."""
        return self.quota - self.taken

    @property
    def remaining(self) -> int:
        return max(0, self.quota - self.taken)


class LeaveLogEntry(BaseModel):
    """One allocation event, occupying ``duration`` working days."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: LeaveType
    start_date: date
    duration: int = Field(..., ge=1)
    timestamp: datetime
    holiday_description: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _resolve_alias(cls, v: Any) -> LeaveType:
        return LeaveType.parse(v)

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start(cls, v: Any) -> date:
        return parse_calendar_date(v)

    @field_validator("timestamp", mode="after")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return parse_cycle_start(v)

    def span(self) -> list[date]:
        """Working days covered by this entry, in order."""
        return working_day_span(self.start_date, self.duration)


class HeatmapDay(BaseModel):
    """Aggregated leave occupancy for one calendar day."""

    total: int = 0
    per_type: dict[LeaveType, int] = Field(default_factory=dict)


# ═════════════════════════════════════════════════════════════════════
# Ledger
# ═════════════════════════════════════════════════════════════════════


class LeaveLedger(BaseModel):
    """Snapshot of an employee's leave ledger."""

    model_config = ConfigDict(frozen=True)

    employee_id: uuid.UUID
    admin_id: Optional[uuid.UUID] = None
    balances: dict[LeaveType, LeaveBalance] = Field(default_factory=dict)
    log: list[LeaveLogEntry] = Field(default_factory=list)
    cycle_start_date: Optional[datetime] = None
    version: int = 0

    @model_validator(mode="before")
    @classmethod
    def _normalize_balance_keys(cls, data: Any) -> Any:
        """Fold legacy balance keys (e.g. ``annual``) into canonical types."""
        if not isinstance(data, dict) or not isinstance(data.get("balances"), Mapping):
            return data
        canonical: dict[LeaveType, Any] = {}
        aliased: dict[LeaveType, list[Any]] = defaultdict(list)
        for key, value in data["balances"].items():
            leave_type = LeaveType.parse(key)
            if key == leave_type.value:
                canonical[leave_type] = value
            else:
                aliased[leave_type].append(value)
        if not aliased:
            return data

        merged: dict[LeaveType, Any] = {}
        for leave_type in [*canonical, *(t for t in aliased if t not in canonical)]:
            values = [canonical[leave_type]] if leave_type in canonical else []
            values += aliased.get(leave_type, [])
            if len(values) == 1:
                merged[leave_type] = values[0]
                continue
            # Canonical quota wins (first alias otherwise); taken adds up.
            merged[leave_type] = {
                "quota": _balance_field(values[0], "quota"),
                "taken": sum(_balance_field(v, "taken", 0) for v in values),
            }
        return {**data, "balances": merged}

    @field_validator("cycle_start_date", mode="before")
    @classmethod
    def _parse_cycle_start(cls, v: Any) -> Optional[datetime]:
        # Unreadable starts are kept as None; the cycle policy treats that
        # as an expired cycle.
        return parse_cycle_start(v)

    # ── Construction ─────────────────────────────────────────────────

    @classmethod
    def fresh(
        cls,
        employee_id: uuid.UUID,
        quotas: Mapping[LeaveType, int],
        now: datetime,
        *,
        admin_id: Optional[uuid.UUID] = None,
    ) -> "LeaveLedger":
        """A brand-new ledger: zero taken, configured quotas, cycle starting now."""
        return cls(
            employee_id=employee_id,
            admin_id=admin_id,
            balances=fresh_balances(quotas),
            cycle_start_date=now,
        )

    # ── Derived totals ───────────────────────────────────────────────

    @property
    def total_leaves(self) -> int:
        return sum(b.quota for b in self.balances.values())

    @property
    def leaves_used(self) -> int:
        return sum(b.taken for b in self.balances.values())

    @property
    def leaves_remaining(self) -> int:
        return max(self.total_leaves - self.leaves_used, 0)

    def balance(self, leave_type: LeaveType) -> LeaveBalance:
        return self.balances.get(leave_type, LeaveBalance(quota=0))

    # ── Occupancy ────────────────────────────────────────────────────

    def occupied_dates(self) -> dict[date, LeaveLogEntry]:
        """Map every working day covered by the log to the entry covering it."""
        occupied: dict[date, LeaveLogEntry] = {}
        for entry in self.log:
            for day in entry.span():
                occupied.setdefault(day, entry)
        return occupied

    def conflicting_dates(self, span: Iterable[date]) -> list[date]:
        """Days of ``span`` that an existing entry already covers, sorted."""
        occupied = self.occupied_dates()
        return sorted({day for day in span if day in occupied})

    @property
    def heatmap(self) -> dict[date, HeatmapDay]:
        """Per-day occupancy recomputed from the log.

        Every covered day counts toward its type; public holidays are left
        out of the ``total``.
        """
        totals: dict[date, int] = defaultdict(int)
        per_type: dict[date, dict[LeaveType, int]] = defaultdict(dict)
        for entry in self.log:
            for day in entry.span():
                per_type[day][entry.type] = per_type[day].get(entry.type, 0) + 1
                if entry.type not in NON_OCCUPANCY_LEAVE_TYPES:
                    totals[day] += 1
        return {
            day: HeatmapDay(total=totals.get(day, 0), per_type=per_type[day])
            for day in sorted(per_type)
        }

    def entries_in_cycle(self) -> list[LeaveLogEntry]:
        """Log entries written since the current cycle started."""
        if self.cycle_start_date is None:
            return list(self.log)
        return [e for e in self.log if e.timestamp >= self.cycle_start_date]

    # ── Transitions ──────────────────────────────────────────────────

    def with_cycle_reset(
        self,
        quotas: Mapping[LeaveType, int],
        now: datetime,
    ) -> "LeaveLedger":
        """New cycle: counters back to zero, history kept."""
        return self.model_copy(
            update={"balances": fresh_balances(quotas), "cycle_start_date": now},
        )

    def with_allocation(self, entry: LeaveLogEntry) -> "LeaveLedger":
        """Record ``entry`` and charge its duration to its type.

        Raises ``ValueError`` if the result would break the quota invariant;
        callers are expected to have checked availability first.
        """
        current = self.balance(entry.type)
        updated = LeaveBalance(quota=current.quota, taken=current.taken + entry.duration)
        if updated.taken > updated.quota:
            raise ValueError(
                f"{entry.type.value} taken ({updated.taken}) would exceed quota ({updated.quota})"
            )
        return self.model_copy(
            update={
                "balances": {**self.balances, entry.type: updated},
                "log": [*self.log, entry],
            },
        )


def fresh_balances(quotas: Mapping[LeaveType, int]) -> dict[LeaveType, LeaveBalance]:
    return {leave_type: LeaveBalance(quota=quotas.get(leave_type, 0)) for leave_type in LeaveType}


def _balance_field(value: Any, name: str, default: Any = None) -> Any:
    if isinstance(value, Mapping):
        return value.get(name, default)
    return getattr(value, name, default)
