"""Employee lookups and caller visibility scoping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import EmployeeStatus
from payroll_ledger.models import Employee


class Role(str, Enum):
    """Caller roles issued by the authentication layer."""

    BOARD = "BOARD"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"
    GUEST = "GUEST"


class EmployeeNotFoundError(Exception):
    """Raised when an employee does not exist."""

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


@dataclass(frozen=True)
class Caller:
    """Authenticated caller identity."""

    user_id: str
    role: Role
    elevated: bool


@dataclass(frozen=True)
class VisibilityScope:
    """Which employees a caller may see.

    ``employee_id`` is None for callers that see everyone. ``linked`` is
    False for self-scoped callers without an employee record, who see
    nothing.
    """

    employee_id: str | None = None
    linked: bool = True

    @property
    def is_all(self) -> bool:
        return self.employee_id is None and self.linked

    def allows(self, employee_id: str) -> bool:
        return self.is_all or self.employee_id == employee_id


class EmployeeDirectory:
    """Read access to collaborator-owned employee records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, employee_id: str) -> Employee | None:
        return await self.session.get(Employee, employee_id)

    async def require(self, employee_id: str) -> Employee:
        employee = await self.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    async def for_user(self, user_id: str) -> Employee | None:
        result = await self.session.execute(
            select(Employee).where(Employee.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def scope_for(self, caller: Caller) -> VisibilityScope:
        """Elevated callers see all employees; everyone else only themselves."""
        if caller.elevated:
            return VisibilityScope()
        employee = await self.for_user(caller.user_id)
        if employee is None:
            return VisibilityScope(linked=False)
        return VisibilityScope(employee_id=employee.employee_id)

    async def list_in_scope(
        self,
        scope: VisibilityScope,
        employee_id: str | None = None,
        active_only: bool = False,
    ) -> list[Employee]:
        """Employees visible in ``scope``, optionally narrowed to one."""
        if not scope.linked:
            return []

        query = select(Employee).order_by(Employee.first_name, Employee.last_name)
        if scope.employee_id is not None:
            query = query.where(Employee.employee_id == scope.employee_id)
        elif employee_id is not None:
            query = query.where(Employee.employee_id == employee_id)
        elif active_only:
            query = query.where(Employee.status == EmployeeStatus.ACTIVE.value)

        result = await self.session.execute(query)
        return list(result.scalars().all())
