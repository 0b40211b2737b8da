"""Status materialization - turn an estimated entry into a durable record.

Concurrency model:
- (employee_id, pay_period) is unique in payroll_record (storage constraint)
- Creation is an INSERT ... ON CONFLICT DO NOTHING; no application lock
- A conflict means another request created the row first: re-fetch once and
  apply the update path instead (last write wins)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import (
    ZERO,
    DurableKey,
    EntryKey,
    PaymentStatus,
    PayPeriod,
)
from payroll_ledger.database import dialect_insert
from payroll_ledger.models import PayrollRecord
from payroll_ledger.models.base import new_id
from payroll_ledger.services.bonus_service import BonusAggregator
from payroll_ledger.services.contract_resolver import (
    ContractResolver,
    require_base_salary,
)
from payroll_ledger.services.employees import EmployeeDirectory

logger = logging.getLogger(__name__)

class PayrollRecordNotFoundError(Exception):
    """Raised when a durable payroll record does not exist."""

    def __init__(self, payroll_record_id: str):
        self.payroll_record_id = payroll_record_id
        super().__init__(f"Payroll record {payroll_record_id} not found")


@dataclass(frozen=True)
class MaterializeResult:
    """Outcome of a find-or-create.

    ``created`` is False when the record already existed, including when a
    concurrent request won the insert race.
    """

    record: PayrollRecord
    created: bool


class StatusMaterializer:
    """Find-or-create the durable payroll record for one employee period.

    Bonus, gross and net figures are always recomputed from the bonus
    aggregator so a status toggle picks up bonuses posted after the record
    was created.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeDirectory(session)
        self.contracts = ContractResolver(session)
        self.bonuses = BonusAggregator(session)

    async def set_status(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        status: PaymentStatus | str,
        now: datetime,
    ) -> MaterializeResult:
        """Set the payment status of a period, creating the record if needed.

        Raises:
            ValueError: If status is not a PaymentStatus value
            EmployeeNotFoundError: If the employee does not exist
            ContractNotFoundError: If the employee has no active contract
            NoBaseSalaryError: If the employee has no base salary, so no ledger
                entry exists for the period
        """
        status = PaymentStatus(status)
        return await self._find_or_create(
            employee_id,
            pay_period,
            now,
            status=status,
            notes="Created automatically on status update",
        )

    async def set_status_by_key(
        self,
        key: EntryKey,
        status: PaymentStatus | str,
        now: datetime,
    ) -> MaterializeResult:
        """Same as set_status, addressed by either entry key variant."""
        employee_id, pay_period = await self.resolve_key(key)
        return await self.set_status(employee_id, pay_period, status, now)

    async def sync_bonus(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        now: datetime,
    ) -> MaterializeResult:
        """Refresh bonus totals of a period without touching its status.

        A missing record is created as PENDING.
        """
        return await self._find_or_create(
            employee_id,
            pay_period,
            now,
            status=None,
            notes="Created automatically on bonus posting",
        )

    async def resolve_key(self, key: EntryKey) -> tuple[str, PayPeriod]:
        if isinstance(key, DurableKey):
            record = await self.session.get(PayrollRecord, key.payroll_record_id)
            if record is None:
                raise PayrollRecordNotFoundError(key.payroll_record_id)
            return record.employee_id, PayPeriod.parse(record.pay_period)
        return key.employee_id, key.pay_period

    async def _find_or_create(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        now: datetime,
        status: PaymentStatus | None,
        notes: str,
    ) -> MaterializeResult:
        employee = await self.employees.require(employee_id)
        contract = await self.contracts.require(employee_id)
        base_salary = require_base_salary(contract, employee)
        bonus = await self.bonuses.bonus_for(employee_id, pay_period)

        record = await self._fetch(employee_id, pay_period)
        if record is None:
            inserted = await self._insert_if_absent(
                employee_id,
                pay_period,
                base_salary=base_salary,
                bonus=bonus,
                status=status or PaymentStatus.PENDING,
                now=now,
                notes=notes,
            )
            record = await self._fetch(employee_id, pay_period, refresh=True)
            if inserted:
                logger.info(
                    "Created payroll record for employee %s period %s as %s",
                    employee_id,
                    pay_period,
                    record.status,
                )
                return MaterializeResult(record=record, created=True)

            logger.warning(
                "Payroll record for employee %s period %s was created concurrently; "
                "applying update instead",
                employee_id,
                pay_period,
            )
            if record is None:
                raise RuntimeError(
                    f"Insert for employee {employee_id} period {pay_period} conflicted "
                    "but no record was found"
                )

        self._apply_update(record, bonus, status, now)
        await self.session.flush()
        await self.session.refresh(record)
        logger.info(
            "Updated payroll record %s (employee %s period %s) to %s",
            record.payroll_record_id,
            employee_id,
            pay_period,
            record.status,
        )
        return MaterializeResult(record=record, created=False)

    async def _fetch(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        refresh: bool = False,
    ) -> PayrollRecord | None:
        query = select(PayrollRecord).where(
            PayrollRecord.employee_id == employee_id,
            PayrollRecord.pay_period == pay_period.key,
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def _insert_if_absent(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        base_salary: Decimal,
        bonus: Decimal,
        status: PaymentStatus,
        now: datetime,
        notes: str,
    ) -> bool:
        """Insert a record unless one exists. Returns True if inserted."""
        gross_pay = base_salary + bonus
        stmt = (
            dialect_insert(self.session, PayrollRecord.__table__)
            .values(
                payroll_record_id=new_id(),
                employee_id=employee_id,
                pay_period=pay_period.key,
                base_salary=base_salary,
                allowances=ZERO,
                deductions=ZERO,
                overtime=ZERO,
                bonuses=bonus,
                tax=ZERO,
                gross_pay=gross_pay,
                net_pay=gross_pay,
                status=status.value,
                # Stamped for every status; only means "paid on" for PAID
                payment_date=now,
                notes=notes,
            )
            .on_conflict_do_nothing(index_elements=["employee_id", "pay_period"])
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    def _apply_update(
        record: PayrollRecord,
        bonus: Decimal,
        status: PaymentStatus | None,
        now: datetime,
    ) -> None:
        """Apply a status change and refresh bonus-derived totals.

        A move into PAID from another status restamps payment_date, since
        the earlier date recorded a different status. Re-marking a PAID
        record keeps its original payment date.
        """
        if status is not None:
            previous = record.status
            record.status = status.value
            if status == PaymentStatus.PAID and (
                record.payment_date is None or previous != PaymentStatus.PAID.value
            ):
                record.payment_date = now

        record.bonuses = bonus
        record.recompute_totals()
