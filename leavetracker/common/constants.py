"""Enums and constants for Leave Tracker."""

from __future__ import annotations

import enum
from typing import Any


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    sick = "sick"
    casual = "casual"
    public = "public"

    @classmethod
    def parse(cls, value: Any) -> "LeaveType":
        """Resolve a leave type from its value or a legacy alias.

        Raises ``ValueError`` for anything that is not a known type.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown leave type: {value!r}")
        key = value.strip().lower()
        key = LEAVE_TYPE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown leave type: {value!r}") from None


# Older records and clients used "annual" for what is now "casual".
LEAVE_TYPE_ALIASES: dict[str, str] = {
    "annual": "casual",
    "annual leave": "casual",
    "casual leave": "casual",
    "sick leave": "sick",
    "public holiday": "public",
    "holiday": "public",
}

LEAVE_TYPE_LABELS: dict[LeaveType, str] = {
    LeaveType.sick: "Sick Leave",
    LeaveType.casual: "Casual Leave",
    LeaveType.public: "Public Holiday",
}

# Types that do not count toward a day's occupancy total in the heatmap
NON_OCCUPANCY_LEAVE_TYPES: frozenset[LeaveType] = frozenset({LeaveType.public})


# ── Audit ───────────────────────────────────────────────────────────

class AuditAction(str, enum.Enum):
    create = "create"
    delete = "delete"
    allocate = "allocate"
    cycle_reset = "cycle_reset"


# ── Misc constants ──────────────────────────────────────────────────

WEEKEND_DAYS = frozenset({5, 6})  # Saturday, Sunday (date.weekday())
DEFAULT_CYCLE_DAYS = 365
