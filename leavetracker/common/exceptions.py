"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://leave-tracker.dev/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class ForbiddenException(AppException):
    """403 — caller does not own the resource."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        messages = [msg for field_errors in errors.values() for msg in field_errors]
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail=" ".join(messages) or "One or more fields failed validation.",
            errors=errors,
        )


class WeekendStartException(AppException):
    """422 — an allocation may not start on a Saturday or Sunday."""

    def __init__(self, start_date: date) -> None:
        self.start_date = start_date
        super().__init__(
            status_code=422,
            error_type="weekend-start",
            title="Weekend Start Date",
            detail=(
                f"Leave cannot start on a weekend ({start_date.isoformat()}). "
                "Please select a weekday."
            ),
            errors={"start_date": [start_date.isoformat()]},
        )


class LeaveConflictException(AppException):
    """409 — the requested span overlaps days already allocated."""

    def __init__(self, dates: Iterable[date]) -> None:
        self.dates = sorted(dates)
        listed = ", ".join(d.isoformat() for d in self.dates)
        super().__init__(
            status_code=409,
            error_type="leave-conflict",
            title="Leave Conflict",
            detail=f"Leave already allocated for {listed}. Only one leave is allowed per day.",
            errors={"dates": [d.isoformat() for d in self.dates]},
        )


class QuotaExceededException(AppException):
    """409 — requested duration exceeds the remaining balance."""

    def __init__(self, leave_type: str, requested: int, available: int) -> None:
        self.leave_type = leave_type
        self.requested = requested
        self.available = available
        super().__init__(
            status_code=409,
            error_type="quota-exceeded",
            title="Quota Exceeded",
            detail=(
                f"Cannot allocate {requested} consecutive {leave_type} leaves. "
                f"Only {available} remaining."
            ),
            errors={"duration_days": [f"{available} remaining"]},
        )


class TransientStoreException(AppException):
    """503 — the ledger transaction could not be committed; safe to retry."""

    def __init__(
        self,
        detail: str = "The leave ledger is busy. Please retry the request.",
    ) -> None:
        super().__init__(
            status_code=503,
            error_type="transient-store-error",
            title="Service Unavailable",
            detail=detail,
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
