"""Allocation engine — grants consecutive working days of leave.

Business logic:
  - Request validation (type, duration, start date) before any I/O
  - Cycle rollover: counters reset once the 365-day cycle has elapsed
  - Conflict detection: no working day may be covered by two allocations,
    whatever their types (public holidays included)
  - Quota enforcement per leave type
  - Append-only allocation log; heatmap derived from it on read

Every decision is taken inside ``LedgerStore.run_atomic`` against the
snapshot it hands over, so racing requests for one employee serialize.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from leavetracker.common.constants import LeaveType
from leavetracker.common.exceptions import (
    ForbiddenException,
    LeaveConflictException,
    NotFoundException,
    QuotaExceededException,
    ValidationException,
    WeekendStartException,
)
from leavetracker.leave.cycle import cycle_expired
from leavetracker.leave.ledger import LeaveBalance, LeaveLedger, LeaveLogEntry
from leavetracker.leave.policy import LeavePolicy
from leavetracker.leave.store import LedgerStore
from leavetracker.leave.workdays import is_weekend, parse_calendar_date, working_day_span

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AllocationEngine:
    """Validates and applies leave allocations against per-employee ledgers."""

    def __init__(
        self,
        store: LedgerStore,
        policy: Optional[LeavePolicy] = None,
        *,
        clock: Clock = _utcnow,
    ) -> None:
        self.store = store
        self.policy = policy or LeavePolicy()
        self._clock = clock

    # ─────────────────────────────────────────────────────────────────
    # Validation (no I/O)
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_request(
        leave_type: Any,
        start_date: Any,
        duration_days: Any,
    ) -> tuple[LeaveType, date, int]:
        errors: dict[str, list[str]] = {}

        try:
            parsed_type = LeaveType.parse(leave_type)
        except ValueError:
            parsed_type = None
            allowed = ", ".join(t.value for t in LeaveType)
            errors["leave_type"] = [f"Unknown leave type {leave_type!r}. Expected one of: {allowed}."]

        try:
            parsed_start = parse_calendar_date(start_date)
        except (TypeError, ValueError, OverflowError):
            parsed_start = None
            errors["start_date"] = [f"{start_date!r} is not a valid calendar date."]

        if isinstance(duration_days, bool) or not isinstance(duration_days, int):
            errors["duration_days"] = ["Duration must be a whole number of days."]
        elif duration_days < 1:
            errors["duration_days"] = ["Consecutive days must be at least 1."]

        if errors:
            raise ValidationException(errors)

        if is_weekend(parsed_start):
            raise WeekendStartException(parsed_start)

        return parsed_type, parsed_start, duration_days

    @staticmethod
    def _check_owner(ledger: LeaveLedger, actor_id: Optional[uuid.UUID]) -> None:
        if actor_id is not None and ledger.admin_id != actor_id:
            raise ForbiddenException(
                "You don't have permission to manage leave for this employee."
            )

    # ─────────────────────────────────────────────────────────────────
    # Ledger transitions (pure; run inside the store transaction)
    # ─────────────────────────────────────────────────────────────────

    def _with_default_balances(self, ledger: LeaveLedger) -> LeaveLedger:
        missing = {
            leave_type: LeaveBalance(quota=self.policy.quotas.get(leave_type, 0))
            for leave_type in LeaveType
            if leave_type not in ledger.balances
        }
        if not missing:
            return ledger
        return ledger.model_copy(update={"balances": {**missing, **ledger.balances}})

    def _roll_cycle(self, ledger: LeaveLedger, now: datetime) -> LeaveLedger:
        if not cycle_expired(ledger.cycle_start_date, now, self.policy.cycle_days):
            return ledger
        logger.info(
            "Ledger %s: cycle started %s expired, resetting counters",
            ledger.employee_id,
            ledger.cycle_start_date.isoformat() if ledger.cycle_start_date else "never",
        )
        return ledger.with_cycle_reset(self.policy.quotas, now)

    # ─────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────

    async def allocate(
        self,
        employee_id: uuid.UUID,
        leave_type: Any,
        start_date: Any,
        duration_days: Any = 1,
        holiday_description: Optional[str] = None,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveLedger:
        """Grant ``duration_days`` consecutive working days starting on ``start_date``.

        Returns the committed ledger. Raises ``ValidationException``,
        ``WeekendStartException``, ``NotFoundException``,
        ``ForbiddenException``, ``LeaveConflictException``,
        ``QuotaExceededException`` or ``TransientStoreException``; on any
        of them the stored ledger is unchanged.
        """
        leave_type, start, duration = self._validate_request(
            leave_type, start_date, duration_days,
        )
        longest = max(self.policy.quotas.values(), default=0)
        if duration > longest:
            raise ValidationException(
                {"duration_days": [f"Cannot allocate more than {longest} consecutive days."]}
            )
        try:
            span = working_day_span(start, duration)
        except OverflowError:
            raise ValidationException(
                {"start_date": [f"{start.isoformat()} leaves no room for {duration} working day(s)."]}
            ) from None
        description = (holiday_description or "").strip() or None

        def _apply(current: LeaveLedger) -> LeaveLedger:
            self._check_owner(current, actor_id)
            now = self._clock()

            ledger = self._roll_cycle(self._with_default_balances(current), now)

            conflicts = ledger.conflicting_dates(span)
            if conflicts:
                raise LeaveConflictException(conflicts)

            available = ledger.balance(leave_type).available
            if duration > available:
                raise QuotaExceededException(leave_type.value, duration, max(available, 0))

            entry = LeaveLogEntry(
                type=leave_type,
                start_date=start,
                duration=duration,
                timestamp=now,
                holiday_description=description if leave_type == LeaveType.public else None,
            )
            return ledger.with_allocation(entry)

        try:
            ledger = await self.store.run_atomic(employee_id, _apply, actor_id=actor_id)
        except (LeaveConflictException, QuotaExceededException) as exc:
            logger.info(
                "Ledger %s: %s allocation of %d day(s) from %s rejected: %s",
                employee_id, leave_type.value, duration, start.isoformat(), exc.detail,
            )
            raise

        logger.info(
            "Ledger %s: allocated %d %s day(s) %s..%s",
            employee_id, duration, leave_type.value,
            span[0].isoformat(), span[-1].isoformat(),
        )
        return ledger

    async def refresh_cycle(
        self,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveLedger:
        """Start a new cycle if the current one has expired; otherwise a no-op."""

        def _apply(current: LeaveLedger) -> LeaveLedger:
            self._check_owner(current, actor_id)
            return self._roll_cycle(current, self._clock())

        return await self.store.run_atomic(employee_id, _apply, actor_id=actor_id)

    async def get_ledger(
        self,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveLedger:
        """Read the committed ledger without changing it."""
        ledger = await self.store.get(employee_id)
        if ledger is None:
            raise NotFoundException("Employee", str(employee_id))
        self._check_owner(ledger, actor_id)
        return self._with_default_balances(ledger)
