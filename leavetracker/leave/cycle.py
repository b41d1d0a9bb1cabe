"""Leave-cycle policy: when quota counters roll over.

A cycle lasts ``cycle_days`` (365 by default) from its start instant.
A missing or unreadable start counts as expired, so the ledger is given a
fresh cycle rather than being stuck on stale counters.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from leavetracker.common.constants import DEFAULT_CYCLE_DAYS

CycleStart = Union[datetime, str, None]


def parse_cycle_start(value: CycleStart) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime, or None if absent/invalid."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _days_since(start: datetime, now: datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    # timedelta.days floors, matching whole elapsed days
    return (now - start).days


def cycle_expired(
    cycle_start: CycleStart,
    now: datetime,
    cycle_days: int = DEFAULT_CYCLE_DAYS,
) -> bool:
    start = parse_cycle_start(cycle_start)
    if start is None:
        return True
    return _days_since(start, now) >= cycle_days


def days_remaining_in_cycle(
    cycle_start: CycleStart,
    now: datetime,
    cycle_days: int = DEFAULT_CYCLE_DAYS,
) -> int:
    start = parse_cycle_start(cycle_start)
    if start is None:
        return cycle_days
    return max(0, cycle_days - _days_since(start, now))
