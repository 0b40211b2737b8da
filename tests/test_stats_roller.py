"""Tests for the statistics roller."""

from decimal import Decimal

import pytest

from payroll_ledger.calculators.stats_roller import StatisticsRoller, StatsFilter
from payroll_ledger.calculators.types import (
    EstimatedEntry,
    InvalidPayPeriodError,
    PaymentStatus,
    PayPeriod,
)

CURRENT = PayPeriod(2024, 6)


def entry(
    key: str,
    base: str = "1000",
    bonus: str = "0",
    status: PaymentStatus = PaymentStatus.PAID,
    employee_id: str = "e-1",
) -> EstimatedEntry:
    return EstimatedEntry(
        employee_id=employee_id,
        pay_period=PayPeriod.parse(key),
        base_salary=Decimal(base),
        bonuses=Decimal(bonus),
        status=status,
    )


class TestStatsFilter:
    def test_period_wins_over_year(self):
        stats_filter = StatsFilter.build(period="2024-03", year=2023)
        assert stats_filter.period == PayPeriod(2024, 3)

    def test_year_and_month_make_a_period(self):
        assert StatsFilter.build(year=2024, month=2).period == PayPeriod(2024, 2)

    def test_year_only(self):
        stats_filter = StatsFilter.build(year=2023)

        assert stats_filter.matches(PayPeriod(2023, 7))
        assert not stats_filter.matches(PayPeriod(2024, 1))

    def test_month_requires_year(self):
        with pytest.raises(ValueError):
            StatsFilter.build(month=4)

    def test_malformed_period(self):
        with pytest.raises(InvalidPayPeriodError):
            StatsFilter.build(period="2024-4")


class TestStatisticsRoller:
    """Test completed totals and in-flight snapshots."""

    def test_current_period_excluded_from_completed_totals(self):
        roller = StatisticsRoller(CURRENT)
        roller.add_completed([entry("2024-05", bonus="200"), entry("2024-06")])
        result = roller.result()

        assert result.total_paid_salary == Decimal("1200")
        assert result.total_paid_bonuses == Decimal("200")
        assert [p.key for p, _ in result.monthly] == ["2024-05"]

    def test_cancelled_entries_excluded(self):
        roller = StatisticsRoller(CURRENT)
        roller.add_completed(
            [entry("2024-04", status=PaymentStatus.CANCELLED), entry("2024-05")]
        )
        roller.add_in_flight([entry("2024-06", status=PaymentStatus.CANCELLED)])
        result = roller.result()

        assert result.total_paid_salary == Decimal("1000")
        assert result.current_month.count == 0

    def test_breakdowns_sorted_most_recent_first(self):
        roller = StatisticsRoller(CURRENT)
        roller.add_completed(
            [
                entry("2023-11"),
                entry("2024-02"),
                entry("2023-12", employee_id="e-2"),
                entry("2024-02", employee_id="e-2"),
            ]
        )
        result = roller.result()

        assert [p.key for p, _ in result.monthly] == ["2024-02", "2023-12", "2023-11"]
        assert dict(result.monthly)[PayPeriod(2024, 2)].count == 2
        assert [year for year, _ in result.yearly] == [2024, 2023]
        assert dict(result.yearly)[2023].salary == Decimal("2000")

    def test_filter_applies_to_completed_totals_only(self):
        roller = StatisticsRoller(CURRENT, StatsFilter.build(period="2024-04"))
        roller.add_completed([entry("2024-03"), entry("2024-04", bonus="50")])
        roller.add_in_flight([entry("2024-03"), entry("2024-04"), entry("2024-06")])
        result = roller.result()

        assert result.total_paid_salary == Decimal("1050")
        assert result.current_year.count == 3
        assert result.current_month.count == 1

    def test_in_flight_limited_to_current_year(self):
        roller = StatisticsRoller(CURRENT)
        roller.add_in_flight([entry("2023-12"), entry("2024-01"), entry("2024-06", bonus="5")])
        result = roller.result()

        assert result.current_year.count == 2
        assert result.current_year.salary == Decimal("2005")
        assert result.current_month.salary == Decimal("1005")
        assert result.current_month.bonuses == Decimal("5")
        # In-flight figures never leak into completed totals
        assert result.total_paid_salary == Decimal("0")
