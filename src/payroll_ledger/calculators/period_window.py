"""Pay period window calculation."""

from __future__ import annotations

from datetime import date, datetime

from payroll_ledger.calculators.types import (
    ContractTerms,
    EmployeeStatus,
    PayPeriod,
    PeriodWindow,
)


def current_period(now: datetime | date) -> PayPeriod:
    """The calendar month containing ``now``; never counted as completed."""
    return PayPeriod.from_date(now)


def compute_window(
    contract: ContractTerms,
    employee_status: str,
    now: datetime | date,
    through_completed_only: bool = True,
) -> PeriodWindow:
    """Compute the inclusive range of periods to report for a contract.

    Cutoff precedence:
    1. Completed-only windows end at the month before ``now``; other windows
       end at the current month.
    2. Employees that are not ACTIVE are capped at the month before ``now``
       in both modes.
    3. A finite (not indefinite) contract end date caps the window at the
       end date's month when that is earlier.

    A contract that starts after the cutoff yields an empty window.
    """
    current = current_period(now)
    end = current.previous() if through_completed_only else current

    if employee_status != EmployeeStatus.ACTIVE.value:
        end = min(end, current.previous())

    if contract.has_finite_end:
        end = min(end, PayPeriod.from_date(contract.end_date))

    return PeriodWindow(
        start=PayPeriod.from_date(contract.start_date),
        end=end,
        current=current,
        through_completed_only=through_completed_only,
    )
