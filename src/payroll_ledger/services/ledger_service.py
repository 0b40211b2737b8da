"""Ledger reconstruction service - composes resolver, aggregator and merger."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.ledger_merger import EmployeeLedger, build_ledger
from payroll_ledger.calculators.period_window import compute_window
from payroll_ledger.calculators.types import (
    DurableEntry,
    LedgerEntry,
    PaymentStatus,
    PayPeriod,
)
from payroll_ledger.models import Employee, PayrollRecord
from payroll_ledger.services.bonus_service import BonusAggregator
from payroll_ledger.services.contract_resolver import (
    ContractResolver,
    effective_base_salary,
)
from payroll_ledger.services.employees import EmployeeDirectory, VisibilityScope


@dataclass(frozen=True)
class ListedEntry:
    """A ledger entry paired with the employee it belongs to."""

    entry: LedgerEntry
    employee: Employee


def matches_search(employee: Employee, period: PayPeriod, search: str | None) -> bool:
    """Case-insensitive match on names, employee code or period key."""
    if not search:
        return True
    needle = search.lower()
    return any(
        needle in value.lower()
        for value in (employee.first_name, employee.last_name, employee.employee_code, period.key)
    )


class LedgerService:
    """Builds gapless per-employee ledgers.

    Each ledger covers the employee's period window and yields exactly one
    entry per period: the durable record when one exists, otherwise an
    estimate from contract base salary and aggregated bonuses.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeDirectory(session)
        self.contracts = ContractResolver(session)
        self.bonuses = BonusAggregator(session)

    async def durable_entries(
        self, employee_ids: Iterable[str]
    ) -> dict[str, dict[PayPeriod, DurableEntry]]:
        """Load stored payroll records keyed by employee and period."""
        ids = list(employee_ids)
        if not ids:
            return {}

        result = await self.session.execute(
            select(PayrollRecord).where(PayrollRecord.employee_id.in_(ids))
        )
        entries: dict[str, dict[PayPeriod, DurableEntry]] = defaultdict(dict)
        for record in result.scalars():
            entry = DurableEntry.from_record(record)
            entries[entry.employee_id][entry.pay_period] = entry
        return entries

    async def employee_ledger(
        self,
        employee_id: str,
        now: datetime,
        through_completed_only: bool = False,
        descending: bool = True,
    ) -> EmployeeLedger:
        """Ledger for one employee.

        Raises:
            EmployeeNotFoundError: If the employee does not exist
        """
        employee = await self.employees.require(employee_id)
        ledgers = await self.build_ledgers(
            [employee], now, through_completed_only, descending=descending
        )
        return ledgers[0]

    async def build_ledgers(
        self,
        employees: Sequence[Employee],
        now: datetime,
        through_completed_only: bool,
        descending: bool = True,
    ) -> list[EmployeeLedger]:
        """Ledgers for many employees with one query per input kind."""
        ids = [e.employee_id for e in employees]
        contracts = await self.contracts.resolve_many(ids)
        bonuses = await self.bonuses.totals_for(ids)
        durable = await self.durable_entries(ids)

        ledgers: list[EmployeeLedger] = []
        for employee in employees:
            contract = contracts.get(employee.employee_id)
            window = None
            if contract is not None:
                window = compute_window(
                    contract, employee.status, now, through_completed_only
                )

            ledger = build_ledger(
                employee.employee_id,
                contract,
                window,
                effective_base_salary(contract, employee),
                bonuses.get(employee.employee_id, {}),
                durable.get(employee.employee_id, {}),
                descending=descending,
            )
            ledger.employee = employee
            ledgers.append(ledger)
        return ledgers

    async def list_entries(
        self,
        scope: VisibilityScope,
        now: datetime,
        employee_id: str | None = None,
        pay_period: PayPeriod | None = None,
        status: PaymentStatus | None = None,
        search: str | None = None,
    ) -> list[ListedEntry]:
        """Stored records matching the filters, or estimates when none exist."""
        if not scope.linked:
            return []

        listed = await self._list_durable(scope, employee_id, pay_period, status)
        if not listed:
            listed = await self._list_estimated(scope, now, employee_id, pay_period, status)

        return [
            item
            for item in listed
            if matches_search(item.employee, item.entry.pay_period, search)
        ]

    async def _list_durable(
        self,
        scope: VisibilityScope,
        employee_id: str | None,
        pay_period: PayPeriod | None,
        status: PaymentStatus | None,
    ) -> list[ListedEntry]:
        query = select(PayrollRecord, Employee).join(
            Employee, PayrollRecord.employee_id == Employee.employee_id
        )
        if scope.employee_id is not None:
            query = query.where(PayrollRecord.employee_id == scope.employee_id)
        elif employee_id is not None:
            query = query.where(PayrollRecord.employee_id == employee_id)
        if pay_period is not None:
            query = query.where(PayrollRecord.pay_period == pay_period.key)
        if status is not None:
            query = query.where(PayrollRecord.status == status.value)
        query = query.order_by(PayrollRecord.pay_period.desc(), Employee.first_name)

        result = await self.session.execute(query)
        return [
            ListedEntry(DurableEntry.from_record(record), employee)
            for record, employee in result.all()
        ]

    async def _list_estimated(
        self,
        scope: VisibilityScope,
        now: datetime,
        employee_id: str | None,
        pay_period: PayPeriod | None,
        status: PaymentStatus | None,
    ) -> list[ListedEntry]:
        employees = await self.employees.list_in_scope(
            scope, employee_id=employee_id, active_only=True
        )
        ledgers = await self.build_ledgers(employees, now, through_completed_only=False)

        listed = [
            ListedEntry(entry, ledger.employee)
            for ledger in ledgers
            for entry in ledger.entries
            if (pay_period is None or entry.pay_period == pay_period)
            and (status is None or entry.status == status)
        ]
        listed.sort(key=lambda item: item.entry.pay_period, reverse=True)
        return listed
