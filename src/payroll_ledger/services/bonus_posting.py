"""Bonus posting - record a BONUS reward and sync the period's payroll record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import ZERO, PayPeriod, RewardCategory
from payroll_ledger.models import PayrollRecord, RewardEntry
from payroll_ledger.services.employees import EmployeeDirectory
from payroll_ledger.services.status_materializer import StatusMaterializer

logger = logging.getLogger(__name__)


class InvalidBonusAmountError(ValueError):
    """Raised when a bonus amount is not strictly positive."""

    def __init__(self, amount: Decimal):
        self.amount = amount
        super().__init__(f"Bonus amount must be positive, got {amount}")


@dataclass(frozen=True)
class BonusPosting:
    reward: RewardEntry
    payroll_record: PayrollRecord
    record_created: bool


class BonusPostingService:
    """Posts bonuses for a pay period.

    The reward is the source of truth. The durable record of the period is
    then refreshed through the materializer so its bonus, gross and net
    figures include the new amount.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeDirectory(session)
        self.materializer = StatusMaterializer(session)

    async def post_bonus(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        amount: Decimal,
        now: datetime,
        title: str | None = None,
        description: str | None = None,
        awarded_by: str | None = None,
    ) -> BonusPosting:
        """Record a bonus and sync the payroll record of its period.

        Raises:
            InvalidBonusAmountError: If amount is not positive
            EmployeeNotFoundError: If the employee does not exist
            ContractNotFoundError: If the employee has no active contract
        """
        if amount <= ZERO:
            raise InvalidBonusAmountError(amount)

        await self.employees.require(employee_id)

        reward = RewardEntry(
            employee_id=employee_id,
            title=title or f"Bonus {pay_period}",
            description=description,
            category=RewardCategory.BONUS.value,
            amount=amount,
            pay_period=pay_period.key,
            awarded_on=now.date(),
            awarded_by=awarded_by,
        )
        self.session.add(reward)
        await self.session.flush()
        await self.session.refresh(reward)

        logger.info(
            "Posted bonus of %s for employee %s period %s",
            amount,
            employee_id,
            pay_period,
        )

        result = await self.materializer.sync_bonus(employee_id, pay_period, now)
        return BonusPosting(
            reward=reward,
            payroll_record=result.record,
            record_created=result.created,
        )
