"""Organization-wide payroll statistics and per-employee summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.ledger_merger import EmployeeLedger
from payroll_ledger.calculators.period_window import current_period
from payroll_ledger.calculators.stats_roller import (
    LedgerStatistics,
    StatisticsRoller,
    StatsFilter,
)
from payroll_ledger.calculators.types import PaymentStatus
from payroll_ledger.models import Employee
from payroll_ledger.services.employees import EmployeeDirectory, VisibilityScope
from payroll_ledger.services.ledger_service import LedgerService


@dataclass(frozen=True)
class EmployeeSummary:
    """Completed-period payroll figures for one employee."""

    employee: Employee
    base_salary: Decimal
    completed_months: int
    total_paid: Decimal
    has_contract: bool
    contract_start_date: date | None

    @classmethod
    def from_ledger(cls, ledger: EmployeeLedger) -> EmployeeSummary:
        counted = [e for e in ledger.entries if e.status != PaymentStatus.CANCELLED]
        return cls(
            employee=ledger.employee,
            base_salary=ledger.base_salary,
            completed_months=len(counted),
            total_paid=ledger.total_paid,
            has_contract=ledger.has_contract,
            contract_start_date=ledger.contract.start_date if ledger.contract else None,
        )


class StatisticsService:
    """Runs the statistics roller over every employee in a caller's scope."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeDirectory(session)
        self.ledgers = LedgerService(session)

    async def compute(
        self,
        scope: VisibilityScope,
        now: datetime,
        stats_filter: StatsFilter | None = None,
    ) -> LedgerStatistics:
        """Completed totals plus current month and year snapshots.

        Completed figures come from completed-only ledgers; the snapshots
        from ledgers that run through the current month.
        """
        roller = StatisticsRoller(current_period(now), stats_filter)

        employees = await self.employees.list_in_scope(scope)
        if not employees:
            return roller.result()

        completed = await self.ledgers.build_ledgers(
            employees, now, through_completed_only=True
        )
        for ledger in completed:
            roller.add_completed(ledger.entries)

        in_flight = await self.ledgers.build_ledgers(
            employees, now, through_completed_only=False
        )
        for ledger in in_flight:
            roller.add_in_flight(ledger.entries)

        return roller.result()

    async def employee_summaries(
        self, scope: VisibilityScope, now: datetime
    ) -> list[EmployeeSummary]:
        employees = await self.employees.list_in_scope(scope)
        ledgers = await self.ledgers.build_ledgers(
            employees, now, through_completed_only=True
        )
        return [EmployeeSummary.from_ledger(ledger) for ledger in ledgers]
