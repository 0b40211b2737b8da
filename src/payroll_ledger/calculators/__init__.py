"""Payroll ledger reconstruction (pure, no I/O)."""

from payroll_ledger.calculators.bonus_aggregator import aggregate_bonuses, period_for_reward
from payroll_ledger.calculators.ledger_merger import EmployeeLedger, build_ledger, merge_ledger
from payroll_ledger.calculators.period_window import compute_window, current_period
from payroll_ledger.calculators.stats_roller import StatisticsRoller, StatsFilter
from payroll_ledger.calculators.types import PayPeriod, PaymentStatus

__all__ = [
    "aggregate_bonuses",
    "period_for_reward",
    "EmployeeLedger",
    "build_ledger",
    "merge_ledger",
    "compute_window",
    "current_period",
    "StatisticsRoller",
    "StatsFilter",
    "PayPeriod",
    "PaymentStatus",
]
