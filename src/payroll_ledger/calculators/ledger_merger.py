"""Ledger merging: durable records first, estimates for the gaps."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from payroll_ledger.calculators.types import (
    ZERO,
    ContractTerms,
    DurableEntry,
    EstimatedEntry,
    LedgerEntry,
    PaymentStatus,
    PayPeriod,
    PeriodWindow,
)

NO_CONTRACT_MESSAGE = "Employee has no active contract"
NOT_STARTED_MESSAGE = "Contract has not started yet"
NO_SALARY_MESSAGE = "No base salary on contract or employee record"


@dataclass
class EmployeeLedger:
    """Ordered per-period entries for one employee."""

    employee_id: str
    contract: ContractTerms | None
    window: PeriodWindow | None
    base_salary: Decimal = ZERO
    entries: list[LedgerEntry] = field(default_factory=list)
    message: str | None = None
    employee: Any = None

    @property
    def total_paid(self) -> Decimal:
        return sum(
            (e.net_pay for e in self.entries if e.status == PaymentStatus.PAID),
            ZERO,
        )

    @property
    def total_pending(self) -> Decimal:
        return sum(
            (e.net_pay for e in self.entries if e.status == PaymentStatus.PENDING),
            ZERO,
        )

    @property
    def has_contract(self) -> bool:
        return self.contract is not None


def estimate_entry(
    employee_id: str,
    period: PayPeriod,
    base_salary: Decimal,
    bonus: Decimal,
    current: PayPeriod,
) -> EstimatedEntry:
    """Estimate one period from contract base and bonuses.

    Every period before the current one is assumed settled.
    """
    if period == current:
        status = PaymentStatus.PENDING
        payment_date: date | None = None
    else:
        status = PaymentStatus.PAID
        payment_date = period.last_day()

    return EstimatedEntry(
        employee_id=employee_id,
        pay_period=period,
        base_salary=base_salary,
        bonuses=bonus,
        status=status,
        payment_date=payment_date,
    )


def merge_ledger(
    employee_id: str,
    window: PeriodWindow,
    base_salary: Decimal,
    bonuses: Mapping[PayPeriod, Decimal],
    durable: Mapping[PayPeriod, DurableEntry],
    descending: bool = True,
) -> list[LedgerEntry]:
    """Yield exactly one entry per period in the window.

    A durable record for the period is emitted verbatim; otherwise an
    estimate is computed.
    """
    entries: list[LedgerEntry] = []

    for period in window:
        record = durable.get(period)
        if record is not None:
            entries.append(record)
            continue
        entries.append(
            estimate_entry(
                employee_id,
                period,
                base_salary,
                bonuses.get(period, ZERO),
                window.current,
            )
        )

    if descending:
        entries.reverse()
    return entries


def build_ledger(
    employee_id: str,
    contract: ContractTerms | None,
    window: PeriodWindow | None,
    base_salary: Decimal,
    bonuses: Mapping[PayPeriod, Decimal],
    durable: Mapping[PayPeriod, DurableEntry],
    descending: bool = True,
) -> EmployeeLedger:
    """Assemble a ledger, or an empty one with an explanatory message."""
    if contract is None or window is None:
        return EmployeeLedger(employee_id, None, None, message=NO_CONTRACT_MESSAGE)

    ledger = EmployeeLedger(employee_id, contract, window, base_salary=base_salary)
    if base_salary <= ZERO:
        ledger.message = NO_SALARY_MESSAGE
        return ledger
    if window.is_empty:
        ledger.message = NOT_STARTED_MESSAGE
        return ledger

    ledger.entries = merge_ledger(
        employee_id, window, base_salary, bonuses, durable, descending=descending
    )
    return ledger
