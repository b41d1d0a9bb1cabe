"""Common module — shared utilities for Leave Tracker."""

from leavetracker.common.audit import AuditTrail, create_audit_entry
from leavetracker.common.constants import (
    DEFAULT_CYCLE_DAYS,
    LEAVE_TYPE_ALIASES,
    LEAVE_TYPE_LABELS,
    NON_OCCUPANCY_LEAVE_TYPES,
    WEEKEND_DAYS,
    AuditAction,
    LeaveType,
)
from leavetracker.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    LeaveConflictException,
    NotFoundException,
    QuotaExceededException,
    TransientStoreException,
    ValidationException,
    WeekendStartException,
    register_exception_handlers,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AuditAction",
    "LeaveType",
    "LEAVE_TYPE_ALIASES",
    "LEAVE_TYPE_LABELS",
    "NON_OCCUPANCY_LEAVE_TYPES",
    "WEEKEND_DAYS",
    "DEFAULT_CYCLE_DAYS",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "LeaveConflictException",
    "NotFoundException",
    "QuotaExceededException",
    "TransientStoreException",
    "ValidationException",
    "WeekendStartException",
    "register_exception_handlers",
]
