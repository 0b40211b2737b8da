"""Employee and contract models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_ledger.models.base import MONEY, Base, TimestampMixin, new_id

if TYPE_CHECKING:
    from payroll_ledger.models.payroll import PayrollRecord, RewardEntry


class Employee(Base, TimestampMixin):
    """Employee record (owned by the HR employee module)."""

    __tablename__ = "employee"

    employee_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employee_code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, unique=True)
    base_salary: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'ON_LEAVE', 'TERMINATED')",
            name="employee_status_check",
        ),
    )

    # Relationships
    contracts: Mapped[list[Contract]] = relationship(back_populates="employee")
    rewards: Mapped[list[RewardEntry]] = relationship(back_populates="employee")
    payroll_records: Mapped[list[PayrollRecord]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"


class Contract(Base, TimestampMixin):
    """Employment contract; only the latest ACTIVE one is current."""

    __tablename__ = "contract"

    contract_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    contract_number: Mapped[str | None] = mapped_column(String, nullable=True)
    base_salary: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_indefinite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'EXPIRED', 'TERMINATED')",
            name="contract_status_check",
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="contract_dates_check",
        ),
        Index("contract_employee_status_idx", "employee_id", "status", "start_date"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="contracts")
