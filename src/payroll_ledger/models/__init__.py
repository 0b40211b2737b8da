"""SQLAlchemy ORM models."""

from payroll_ledger.models.base import Base, TimestampMixin
from payroll_ledger.models.employee import Contract, Employee
from payroll_ledger.models.payroll import PayrollRecord, RewardEntry

__all__ = [
    "Base",
    "TimestampMixin",
    "Contract",
    "Employee",
    "PayrollRecord",
    "RewardEntry",
]
