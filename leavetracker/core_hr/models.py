"""Core HR ORM models: Employee.

An employee row owns exactly one leave ledger; deleting the employee
deletes the ledger and its log.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavetracker.common.audit import utcnow
from leavetracker.database import Base

if TYPE_CHECKING:
    from leavetracker.leave.models import LeaveLedgerRecord


class Employee(Base):
    """An employee managed by a single admin."""

    __tablename__ = "employees"
    __table_args__ = (
        sa.UniqueConstraint("admin_id", "employee_code", name="uq_employee_admin_code"),
        sa.Index("ix_employees_admin_name", "admin_id", "name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_code: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    nationality: Mapped[Optional[str]] = mapped_column(sa.String(100))
    designation: Mapped[Optional[str]] = mapped_column(sa.String(100))
    admin_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=sa.func.now(),
    )

    # Relationships
    ledger: Mapped[Optional["LeaveLedgerRecord"]] = relationship(
        back_populates="employee",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )
