"""Payroll ledger services."""

from payroll_ledger.services.bonus_posting import (
    BonusPostingService,
    InvalidBonusAmountError,
)
from payroll_ledger.services.bonus_service import BonusAggregator
from payroll_ledger.services.contract_resolver import (
    ContractNotFoundError,
    ContractResolver,
    NoBaseSalaryError,
    effective_base_salary,
    require_base_salary,
)
from payroll_ledger.services.employees import (
    Caller,
    EmployeeDirectory,
    EmployeeNotFoundError,
    Role,
    VisibilityScope,
)
from payroll_ledger.services.ledger_service import LedgerService, ListedEntry
from payroll_ledger.services.payroll_records import (
    DuplicatePayrollRecordError,
    PayrollRecordService,
)
from payroll_ledger.services.statistics_service import EmployeeSummary, StatisticsService
from payroll_ledger.services.status_materializer import (
    MaterializeResult,
    PayrollRecordNotFoundError,
    StatusMaterializer,
)

__all__ = [
    "BonusAggregator",
    "BonusPostingService",
    "Caller",
    "ContractNotFoundError",
    "ContractResolver",
    "DuplicatePayrollRecordError",
    "EmployeeDirectory",
    "EmployeeNotFoundError",
    "EmployeeSummary",
    "InvalidBonusAmountError",
    "LedgerService",
    "ListedEntry",
    "MaterializeResult",
    "NoBaseSalaryError",
    "PayrollRecordNotFoundError",
    "PayrollRecordService",
    "Role",
    "StatisticsService",
    "StatusMaterializer",
    "VisibilityScope",
    "effective_base_salary",
    "require_base_salary",
]
