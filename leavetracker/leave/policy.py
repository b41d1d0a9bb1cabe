"""Leave policy: per-type quotas and cycle length for one deployment."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from leavetracker.common.constants import DEFAULT_CYCLE_DAYS, LeaveType
from leavetracker.config import Settings


@dataclass(frozen=True)
class LeavePolicy:
    quotas: Mapping[LeaveType, int] = field(
        default_factory=lambda: MappingProxyType(
            {LeaveType.sick: 12, LeaveType.casual: 12, LeaveType.public: 11}
        )
    )
    cycle_days: int = DEFAULT_CYCLE_DAYS

    def __post_init__(self) -> None:
        if self.cycle_days < 1:
            raise ValueError("cycle_days must be >= 1")
        for leave_type in LeaveType:
            if self.quotas.get(leave_type, 0) < 0:
                raise ValueError(f"quota for {leave_type.value} must be >= 0")

    @property
    def total_quota(self) -> int:
        return sum(self.quotas.get(t, 0) for t in LeaveType)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LeavePolicy":
        return cls(
            quotas=MappingProxyType(
                {
                    LeaveType.sick: settings.LEAVE_QUOTA_SICK,
                    LeaveType.casual: settings.LEAVE_QUOTA_CASUAL,
                    LeaveType.public: settings.LEAVE_QUOTA_PUBLIC,
                }
            ),
            cycle_days=settings.LEAVE_CYCLE_DAYS,
        )
