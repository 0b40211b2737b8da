"""Reward and payroll record models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_ledger.models.base import MONEY, Base, TimestampMixin, new_id

if TYPE_CHECKING:
    from payroll_ledger.models.employee import Employee


class RewardEntry(Base, TimestampMixin):
    """Reward granted to an employee. BONUS rewards feed payroll."""

    __tablename__ = "reward_entry"

    reward_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String, nullable=False, default="BONUS")
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    # Explicit YYYY-MM tag; when absent the period comes from awarded_on
    pay_period: Mapped[str | None] = mapped_column(String(7), nullable=True)
    awarded_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    awarded_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "category IN ('BONUS', 'RECOGNITION', 'OTHER')",
            name="reward_category_check",
        ),
        Index("reward_employee_category_idx", "employee_id", "category"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="rewards")


class PayrollRecord(Base, TimestampMixin):
    """Durable payroll entry; at most one per (employee, pay period)."""

    __tablename__ = "payroll_record"

    payroll_record_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_id
    )
    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    allowances: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    deductions: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    overtime: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    bonuses: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    gross_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
    payment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "pay_period", name="payroll_record_employee_period_unique"
        ),
        CheckConstraint(
            "status IN ('PENDING', 'PROCESSED', 'PAID', 'CANCELLED')",
            name="payroll_record_status_check",
        ),
        CheckConstraint("length(pay_period) = 7", name="payroll_record_period_check"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="payroll_records")

    def recompute_totals(self) -> None:
        """Derive gross and net pay from the stored components."""
        self.gross_pay = self.base_salary + self.allowances + self.overtime + self.bonuses
        self.net_pay = self.gross_pay - self.deductions - self.tax
