"""Bonus aggregation by employee and pay period."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol

from payroll_ledger.calculators.types import (
    ZERO,
    InvalidPayPeriodError,
    PayPeriod,
    RewardCategory,
)

logger = logging.getLogger(__name__)

BonusTotals = dict[str, dict[PayPeriod, Decimal]]


class RewardLike(Protocol):
    employee_id: str
    category: str
    amount: Decimal | None
    pay_period: str | None
    awarded_on: date | None


def period_for_reward(pay_period: str | None, awarded_on: date | None) -> PayPeriod | None:
    """Resolve the pay period a reward belongs to.

    The explicit tag wins; otherwise the period is the reward's calendar month.
    """
    if pay_period:
        try:
            return PayPeriod.parse(pay_period)
        except InvalidPayPeriodError:
            logger.warning("Malformed reward pay period %r, using award date", pay_period)
    if awarded_on is not None:
        return PayPeriod.from_date(awarded_on)
    return None


def aggregate_bonuses(rewards: Iterable[RewardLike]) -> BonusTotals:
    """Sum BONUS rewards into {employee_id: {period: amount}}."""
    totals: BonusTotals = defaultdict(lambda: defaultdict(lambda: ZERO))

    for reward in rewards:
        if reward.category != RewardCategory.BONUS.value:
            continue

        period = period_for_reward(reward.pay_period, reward.awarded_on)
        if period is None:
            logger.debug("Skipping undated bonus for employee %s", reward.employee_id)
            continue

        totals[reward.employee_id][period] += reward.amount or ZERO

    return {employee_id: dict(periods) for employee_id, periods in totals.items()}
