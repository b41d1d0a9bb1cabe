"""Core HR Pydantic v2 schemas — employee create / read."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leavetracker.leave.summary import LeaveSummary


class EmployeeCreate(BaseModel):
    """Payload for adding an employee."""

    employee_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    nationality: Optional[str] = Field(None, max_length=100)
    designation: Optional[str] = Field(None, max_length=100)

    @field_validator("employee_code", "name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class EmployeeOut(BaseModel):
    """Employee with a compact view of their current leave balance."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    name: str
    nationality: Optional[str] = None
    designation: Optional[str] = None
    admin_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    # Filled by service, not from ORM
    leave_summary: Optional[LeaveSummary] = None
