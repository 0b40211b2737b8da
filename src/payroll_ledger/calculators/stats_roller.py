"""Monthly and yearly payroll statistics folded from ledgers."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from payroll_ledger.calculators.types import (
    ZERO,
    LedgerEntry,
    PaymentStatus,
    PayPeriod,
)


@dataclass
class PeriodTotals:
    """Accumulated net salary, bonuses and entry count."""

    salary: Decimal = ZERO
    bonuses: Decimal = ZERO
    count: int = 0

    def add(self, entry: LedgerEntry) -> None:
        self.salary += entry.net_pay
        self.bonuses += entry.bonuses
        self.count += 1

    def merge(self, other: PeriodTotals) -> None:
        self.salary += other.salary
        self.bonuses += other.bonuses
        self.count += other.count


@dataclass(frozen=True)
class StatsFilter:
    """Optional restriction of completed totals to one period or one year."""

    period: PayPeriod | None = None
    year: int | None = None

    @classmethod
    def build(
        cls,
        period: str | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> StatsFilter:
        """Normalize the period/year/month query combination.

        ``period`` wins over ``year``; ``year`` with ``month`` is one period.
        """
        if period:
            return cls(period=PayPeriod.parse(period))
        if year is not None and month is not None:
            return cls(period=PayPeriod(year, month))
        if month is not None:
            raise ValueError("month filter requires year")
        return cls(year=year)

    def matches(self, period: PayPeriod) -> bool:
        if self.period is not None:
            return period == self.period
        if self.year is not None:
            return period.year == self.year
        return True


@dataclass
class LedgerStatistics:
    """Completed totals plus informational in-flight snapshots."""

    current_period: PayPeriod
    total_paid_salary: Decimal
    total_paid_bonuses: Decimal
    current_month: PeriodTotals
    current_year: PeriodTotals
    monthly: list[tuple[PayPeriod, PeriodTotals]] = field(default_factory=list)
    yearly: list[tuple[int, PeriodTotals]] = field(default_factory=list)


class StatisticsRoller:
    """Folds per-employee ledgers into organization-wide totals.

    Completed totals only ever include periods strictly before the current
    one. The current-month and current-year snapshots include the current
    period and ignore the filter. Cancelled entries count nowhere.
    """

    def __init__(self, current: PayPeriod, stats_filter: StatsFilter | None = None):
        self.current = current
        self.filter = stats_filter or StatsFilter()
        self._monthly: dict[PayPeriod, PeriodTotals] = defaultdict(PeriodTotals)
        self._current_month = PeriodTotals()
        self._current_year = PeriodTotals()

    def add_completed(self, entries: Iterable[LedgerEntry]) -> None:
        """Add entries from a completed-only ledger."""
        for entry in entries:
            if entry.status == PaymentStatus.CANCELLED:
                continue
            if entry.pay_period >= self.current:
                continue
            if not self.filter.matches(entry.pay_period):
                continue
            self._monthly[entry.pay_period].add(entry)

    def add_in_flight(self, entries: Iterable[LedgerEntry]) -> None:
        """Add entries from a ledger that runs through the current period."""
        for entry in entries:
            if entry.status == PaymentStatus.CANCELLED:
                continue
            if entry.pay_period.year != self.current.year:
                continue
            self._current_year.add(entry)
            if entry.pay_period == self.current:
                self._current_month.add(entry)

    def result(self) -> LedgerStatistics:
        yearly: dict[int, PeriodTotals] = defaultdict(PeriodTotals)
        total = PeriodTotals()
        for period, totals in self._monthly.items():
            yearly[period.year].merge(totals)
            total.merge(totals)

        return LedgerStatistics(
            current_period=self.current,
            total_paid_salary=total.salary,
            total_paid_bonuses=total.bonuses,
            current_month=self._current_month,
            current_year=self._current_year,
            monthly=sorted(self._monthly.items(), key=lambda item: item[0], reverse=True),
            yearly=sorted(yearly.items(), key=lambda item: item[0], reverse=True),
        )
