"""Leave ORM models: LeaveLedgerRecord, LeaveLogEntryRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavetracker.common.audit import JSONType, utcnow
from leavetracker.database import Base
from leavetracker.leave.ledger import LeaveLedger, LeaveLogEntry

if TYPE_CHECKING:
    from leavetracker.core_hr.models import Employee


class LeaveLedgerRecord(Base):
    """Persisted ledger row. ``version`` guards concurrent writers."""

    __tablename__ = "leave_ledgers"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # {"sick": {"quota": 12, "taken": 0}, ...}
    balances: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    cycle_start_date: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utcnow,
        server_default=sa.func.now(),
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="ledger")
    entries: Mapped[list[LeaveLogEntryRecord]] = relationship(
        back_populates="ledger",
        order_by="LeaveLogEntryRecord.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_domain(self) -> LeaveLedger:
        return LeaveLedger(
            employee_id=self.employee_id,
            admin_id=self.employee.admin_id if self.employee else None,
            balances=self.balances or {},
            log=[entry.to_domain() for entry in self.entries],
            cycle_start_date=self.cycle_start_date,
            version=self.version,
        )

    @staticmethod
    def serialize_balances(ledger: LeaveLedger) -> dict:
        return {
            leave_type.value: balance.model_dump()
            for leave_type, balance in ledger.balances.items()
        }


class LeaveLogEntryRecord(Base):
    """One allocation event. Rows are only ever appended."""

    __tablename__ = "leave_log_entries"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "position", name="uq_leave_log_position"),
    )

    id: Mapped[str] = mapped_column(sa.String(64), primary_key=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        sa.ForeignKey("leave_ledgers.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    # Plain string so legacy spellings ("annual") survive until migrated
    leave_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    duration: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    holiday_description: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    ledger: Mapped[LeaveLedgerRecord] = relationship(back_populates="entries")

    def to_domain(self) -> LeaveLogEntry:
        return LeaveLogEntry(
            id=self.id,
            type=self.leave_type,
            start_date=self.start_date,
            duration=self.duration,
            timestamp=self.timestamp,
            holiday_description=self.holiday_description,
        )

    @classmethod
    def from_domain(
        cls,
        entry: LeaveLogEntry,
        *,
        employee_id: uuid.UUID,
        position: int,
    ) -> "LeaveLogEntryRecord":
        return cls(
            id=entry.id,
            employee_id=employee_id,
            position=position,
            leave_type=entry.type.value,
            start_date=entry.start_date,
            duration=entry.duration,
            timestamp=entry.timestamp,
            holiday_description=entry.holiday_description,
        )
