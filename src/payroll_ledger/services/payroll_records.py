"""Explicit payroll record creation and lookup."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import ZERO, PaymentStatus, PayPeriod
from payroll_ledger.database import dialect_insert
from payroll_ledger.models import PayrollRecord
from payroll_ledger.models.base import new_id
from payroll_ledger.services.bonus_service import BonusAggregator
from payroll_ledger.services.contract_resolver import (
    ContractResolver,
    require_base_salary,
)
from payroll_ledger.services.employees import EmployeeDirectory
from payroll_ledger.services.status_materializer import PayrollRecordNotFoundError

logger = logging.getLogger(__name__)


class DuplicatePayrollRecordError(Exception):
    """Raised when a payroll record already exists for the period."""

    def __init__(self, employee_id: str, pay_period: PayPeriod):
        self.employee_id = employee_id
        self.pay_period = pay_period
        super().__init__(
            f"Payroll record for employee {employee_id} period {pay_period} already exists"
        )


class PayrollRecordService:
    """Creates PENDING payroll records with caller-supplied components."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeDirectory(session)
        self.contracts = ContractResolver(session)
        self.bonuses = BonusAggregator(session)

    async def get_record(self, payroll_record_id: str) -> PayrollRecord:
        record = await self.session.get(PayrollRecord, payroll_record_id)
        if record is None:
            raise PayrollRecordNotFoundError(payroll_record_id)
        return record

    async def create_record(
        self,
        employee_id: str,
        pay_period: PayPeriod,
        base_salary: Decimal | None = None,
        allowances: Decimal = ZERO,
        deductions: Decimal = ZERO,
        overtime: Decimal = ZERO,
        bonuses: Decimal | None = None,
        tax: Decimal = ZERO,
        notes: str | None = None,
    ) -> PayrollRecord:
        """Create a record; gross and net pay are always derived here.

        ``base_salary`` defaults to the contract figure and ``bonuses`` to
        the aggregated bonuses of the period.

        Raises:
            EmployeeNotFoundError: If the employee does not exist
            ContractNotFoundError: If base_salary is omitted and there is no
                active contract
            NoBaseSalaryError: If base_salary is omitted and neither the
                contract nor the employee carries one
            DuplicatePayrollRecordError: If the period already has a record,
                including one inserted by a concurrent request
        """
        employee = await self.employees.require(employee_id)

        if await self._exists(employee_id, pay_period):
            raise DuplicatePayrollRecordError(employee_id, pay_period)

        if base_salary is None:
            contract = await self.contracts.require(employee_id)
            base_salary = require_base_salary(contract, employee)
        if bonuses is None:
            bonuses = await self.bonuses.bonus_for(employee_id, pay_period)

        gross_pay = base_salary + allowances + overtime + bonuses
        stmt = (
            dialect_insert(self.session, PayrollRecord.__table__)
            .values(
                payroll_record_id=new_id(),
                employee_id=employee_id,
                pay_period=pay_period.key,
                base_salary=base_salary,
                allowances=allowances,
                deductions=deductions,
                overtime=overtime,
                bonuses=bonuses,
                tax=tax,
                gross_pay=gross_pay,
                net_pay=gross_pay - deductions - tax,
                status=PaymentStatus.PENDING.value,
                notes=notes,
            )
            .on_conflict_do_nothing(index_elements=["employee_id", "pay_period"])
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            logger.warning(
                "Payroll record for employee %s period %s was created concurrently",
                employee_id,
                pay_period,
            )
            raise DuplicatePayrollRecordError(employee_id, pay_period)

        record = await self._fetch(employee_id, pay_period)
        logger.info(
            "Created payroll record %s for employee %s period %s",
            record.payroll_record_id,
            employee_id,
            pay_period,
        )
        return record

    async def _exists(self, employee_id: str, pay_period: PayPeriod) -> bool:
        result = await self.session.execute(
            select(PayrollRecord.payroll_record_id).where(
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.pay_period == pay_period.key,
            )
        )
        return result.scalar_one_or_none() is not None

    async def _fetch(self, employee_id: str, pay_period: PayPeriod) -> PayrollRecord:
        result = await self.session.execute(
            select(PayrollRecord)
            .where(
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.pay_period == pay_period.key,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
