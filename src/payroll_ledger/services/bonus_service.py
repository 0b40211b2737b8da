"""Bonus totals loaded from reward entries."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.bonus_aggregator import BonusTotals, aggregate_bonuses
from payroll_ledger.calculators.types import ZERO, PayPeriod, RewardCategory
from payroll_ledger.models import RewardEntry


class BonusAggregator:
    """Loads BONUS rewards and folds them per employee and period.

    Every consumer of bonus totals (ledgers, status updates, statistics and
    bonus posting) goes through this class so the figures never drift.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def totals_for(self, employee_ids: Iterable[str]) -> BonusTotals:
        ids = list(employee_ids)
        if not ids:
            return {}

        result = await self.session.execute(
            select(RewardEntry).where(
                RewardEntry.employee_id.in_(ids),
                RewardEntry.category == RewardCategory.BONUS.value,
            )
        )
        return aggregate_bonuses(result.scalars())

    async def totals_for_employee(self, employee_id: str) -> dict[PayPeriod, Decimal]:
        totals = await self.totals_for([employee_id])
        return totals.get(employee_id, {})

    async def bonus_for(self, employee_id: str, period: PayPeriod) -> Decimal:
        totals = await self.totals_for_employee(employee_id)
        return totals.get(period, ZERO)
