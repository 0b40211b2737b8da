"""Active contract resolution."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import ZERO, ContractStatus, ContractTerms
from payroll_ledger.models import Contract, Employee


class ContractNotFoundError(Exception):
    """Raised when an employee has no active contract."""

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} has no active contract")


class NoBaseSalaryError(Exception):
    """Raised when neither the contract nor the employee carries a base salary."""

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(
            f"Employee {employee_id} has no base salary on contract or employee record"
        )


def to_terms(contract: Contract) -> ContractTerms:
    return ContractTerms(
        contract_id=contract.contract_id,
        employee_id=contract.employee_id,
        contract_number=contract.contract_number,
        base_salary=contract.base_salary,
        start_date=contract.start_date,
        end_date=contract.end_date,
        is_indefinite=contract.is_indefinite,
    )


def effective_base_salary(contract: ContractTerms | None, employee: Employee) -> Decimal:
    """Contract base salary, falling back to the employee's own.

    Zero means the employee has no payroll.
    """
    if contract is not None and contract.base_salary:
        return contract.base_salary
    return employee.base_salary or ZERO


def require_base_salary(contract: ContractTerms | None, employee: Employee) -> Decimal:
    """Effective base salary, or NoBaseSalaryError when the employee has no payroll."""
    base_salary = effective_base_salary(contract, employee)
    if base_salary <= ZERO:
        raise NoBaseSalaryError(employee.employee_id)
    return base_salary


class ContractResolver:
    """Resolves the current contract: the ACTIVE one with the latest start date."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, employee_id: str) -> ContractTerms | None:
        result = await self.session.execute(
            select(Contract)
            .where(
                Contract.employee_id == employee_id,
                Contract.status == ContractStatus.ACTIVE.value,
            )
            .order_by(Contract.start_date.desc())
            .limit(1)
        )
        contract = result.scalar_one_or_none()
        return to_terms(contract) if contract else None

    async def require(self, employee_id: str) -> ContractTerms:
        """Resolve the current contract or raise ContractNotFoundError."""
        terms = await self.resolve(employee_id)
        if terms is None:
            raise ContractNotFoundError(employee_id)
        return terms

    async def resolve_many(self, employee_ids: Iterable[str]) -> dict[str, ContractTerms]:
        """Resolve current contracts for many employees in one query."""
        ids = list(employee_ids)
        if not ids:
            return {}

        result = await self.session.execute(
            select(Contract)
            .where(
                Contract.employee_id.in_(ids),
                Contract.status == ContractStatus.ACTIVE.value,
            )
            .order_by(Contract.employee_id, Contract.start_date.desc())
        )

        resolved: dict[str, ContractTerms] = {}
        for contract in result.scalars():
            # Rows arrive latest-first per employee; keep the first one
            resolved.setdefault(contract.employee_id, to_terms(contract))
        return resolved
