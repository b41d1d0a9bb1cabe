"""Summary projections — per-type breakdown and yearly heatmap."""

from __future__ import annotations

import uuid
from datetime import date

from leavetracker.common.constants import LeaveType
from leavetracker.leave.ledger import LeaveLedger, LeaveLogEntry
from leavetracker.leave.policy import LeavePolicy
from leavetracker.leave.summary import build_heatmap_year, build_leave_summary
from tests.conftest import utc

NOW = utc(2024, 6, 1)


def _ledger_with(*entries) -> LeaveLedger:
    ledger = LeaveLedger.fresh(uuid.uuid4(), LeavePolicy().quotas, NOW)
    for leave_type, start, duration in entries:
        ledger = ledger.with_allocation(
            LeaveLogEntry(type=leave_type, start_date=start, duration=duration, timestamp=NOW),
        )
    return ledger


def test_missing_ledger_yields_zeros():
    summary = build_leave_summary(None)
    assert summary.total_leaves == 0
    assert summary.leaves_used == 0
    assert summary.leaves_remaining == 0
    assert summary.taken == {t: 0 for t in LeaveType}
    assert summary.breakdown[LeaveType.sick].total == 0


def test_breakdown_per_type():
    ledger = _ledger_with(
        (LeaveType.sick, date(2024, 6, 10), 2),
        (LeaveType.casual, date(2024, 6, 12), 1),
    )
    summary = build_leave_summary(ledger)

    assert summary.taken[LeaveType.sick] == 2
    assert summary.remaining[LeaveType.sick] == 10
    assert summary.breakdown[LeaveType.casual].used == 1
    assert summary.breakdown[LeaveType.casual].remaining == 11
    assert summary.breakdown[LeaveType.public].total == 11
    assert summary.total_leaves == 35
    assert summary.leaves_used == 3
    assert summary.leaves_remaining == 32


def test_heatmap_year_filters_other_years():
    ledger = _ledger_with(
        (LeaveType.sick, date(2024, 12, 31), 2),  # Tue 31 Dec + Wed 1 Jan
    )
    assert list(build_heatmap_year(ledger, 2024)) == [date(2024, 12, 31)]
    assert list(build_heatmap_year(ledger, 2025)) == [date(2025, 1, 1)]
    assert build_heatmap_year(ledger, 2023) == {}
