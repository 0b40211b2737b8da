"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from payroll_ledger.calculators.ledger_merger import EmployeeLedger
from payroll_ledger.calculators.stats_roller import LedgerStatistics, PeriodTotals
from payroll_ledger.calculators.types import (
    LedgerEntry,
    PaymentStatus,
    PayPeriod,
    encode_entry_key,
    key_for,
)
from payroll_ledger.models import Employee, PayrollRecord
from payroll_ledger.services.ledger_service import ListedEntry
from payroll_ledger.services.statistics_service import EmployeeSummary


def _check_pay_period(value: str) -> str:
    return PayPeriod.parse(value).key


PayPeriodKey = Annotated[str, AfterValidator(_check_pay_period)]


# ============================================================================
# Employee and contract schemas
# ============================================================================


class EmployeeResponse(BaseModel):
    """Employee identity shown alongside ledgers."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_code: str
    first_name: str
    last_name: str
    status: str


class ContractResponse(BaseModel):
    """Current contract terms."""

    model_config = ConfigDict(from_attributes=True)

    contract_id: str
    contract_number: str | None = None
    base_salary: Decimal | None = None
    start_date: date
    end_date: date | None = None
    is_indefinite: bool


# ============================================================================
# Ledger schemas
# ============================================================================


class LedgerEntryResponse(BaseModel):
    """One period of a ledger, durable or estimated."""

    id: str
    is_estimated: bool
    has_record: bool
    employee_id: str
    pay_period: str
    base_salary: Decimal
    allowances: Decimal
    deductions: Decimal
    overtime: Decimal
    bonuses: Decimal
    tax: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    status: PaymentStatus
    payment_date: datetime | date | None = None

    @classmethod
    def from_entry(cls, entry: LedgerEntry, **extra: Any) -> "LedgerEntryResponse":
        return cls(
            id=encode_entry_key(key_for(entry)),
            is_estimated=entry.is_estimated,
            has_record=entry.has_record,
            employee_id=entry.employee_id,
            pay_period=entry.pay_period.key,
            base_salary=entry.base_salary,
            allowances=entry.allowances,
            deductions=entry.deductions,
            overtime=entry.overtime,
            bonuses=entry.bonuses,
            tax=entry.tax,
            gross_pay=entry.gross_pay,
            net_pay=entry.net_pay,
            status=entry.status,
            payment_date=entry.payment_date,
            **extra,
        )


class SalaryHistoryResponse(BaseModel):
    """Per-employee ledger."""

    employee: EmployeeResponse
    contract: ContractResponse | None = None
    salary_history: list[LedgerEntryResponse]
    total_paid: Decimal
    total_pending: Decimal
    total_months: int
    message: str | None = None

    @classmethod
    def from_ledger(cls, ledger: EmployeeLedger) -> "SalaryHistoryResponse":
        contract = None
        if ledger.contract is not None:
            contract = ContractResponse.model_validate(ledger.contract)
        return cls(
            employee=EmployeeResponse.model_validate(ledger.employee),
            contract=contract,
            salary_history=[LedgerEntryResponse.from_entry(e) for e in ledger.entries],
            total_paid=ledger.total_paid,
            total_pending=ledger.total_pending,
            total_months=len(ledger.entries),
            message=ledger.message,
        )


class ListedEntryResponse(LedgerEntryResponse):
    """Listing row with the employee's name and code."""

    employee_code: str
    first_name: str
    last_name: str

    @classmethod
    def from_listed(cls, item: ListedEntry) -> "ListedEntryResponse":
        return cls.from_entry(
            item.entry,
            employee_code=item.employee.employee_code,
            first_name=item.employee.first_name,
            last_name=item.employee.last_name,
        )


class LedgerListResponse(BaseModel):
    """Schema for listing ledger entries."""

    items: list[ListedEntryResponse]
    total: int
    is_estimated: bool


# ============================================================================
# Payroll record schemas
# ============================================================================


class PayrollRecordResponse(BaseModel):
    """Schema for a durable payroll record."""

    model_config = ConfigDict(from_attributes=True)

    payroll_record_id: str
    employee_id: str
    pay_period: str
    base_salary: Decimal
    allowances: Decimal
    deductions: Decimal
    overtime: Decimal
    bonuses: Decimal
    tax: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    status: PaymentStatus
    payment_date: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class StatusUpdateRequest(BaseModel):
    """Set the payment status of an employee's pay period."""

    pay_period: PayPeriodKey
    status: PaymentStatus


class EntryStatusRequest(BaseModel):
    """Set the payment status of a listed entry."""

    status: PaymentStatus


class StatusUpdateResponse(BaseModel):
    payroll_record: PayrollRecordResponse
    created: bool
    message: str


class PayrollRecordCreate(BaseModel):
    """Schema for creating a payroll record explicitly.

    Omitted base salary and bonuses are taken from the contract and the
    period's bonus rewards.
    """

    employee_id: str
    pay_period: PayPeriodKey
    base_salary: Decimal | None = Field(default=None, ge=0)
    allowances: Decimal = Field(default=Decimal("0"), ge=0)
    deductions: Decimal = Field(default=Decimal("0"), ge=0)
    overtime: Decimal = Field(default=Decimal("0"), ge=0)
    bonuses: Decimal | None = Field(default=None, ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None


# ============================================================================
# Bonus schemas
# ============================================================================


class BonusCreate(BaseModel):
    """Schema for posting a bonus."""

    employee_id: str
    pay_period: PayPeriodKey
    amount: Decimal
    title: str | None = None
    description: str | None = None


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reward_id: str
    employee_id: str
    title: str
    description: str | None = None
    category: str
    amount: Decimal
    pay_period: str | None = None
    awarded_on: date | None = None
    awarded_by: str | None = None


class BonusResponse(BaseModel):
    """Posted bonus plus the payroll record it was synced into."""

    reward: RewardResponse
    payroll_record: PayrollRecordResponse
    record_created: bool


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipEmployee(BaseModel):
    employee_id: str
    employee_code: str
    name: str


class PayslipEarnings(BaseModel):
    base_salary: Decimal
    overtime: Decimal
    bonuses: Decimal
    allowances: Decimal
    gross_pay: Decimal


class PayslipDeductions(BaseModel):
    tax: Decimal
    other: Decimal
    total: Decimal


class PayslipResponse(BaseModel):
    """Printable breakdown of one durable payroll record."""

    payroll_record_id: str
    employee: PayslipEmployee
    pay_period: str
    payment_date: datetime | None = None
    earnings: PayslipEarnings
    deductions: PayslipDeductions
    net_pay: Decimal
    status: PaymentStatus
    notes: str | None = None

    @classmethod
    def from_record(cls, record: PayrollRecord, employee: Employee) -> "PayslipResponse":
        return cls(
            payroll_record_id=record.payroll_record_id,
            employee=PayslipEmployee(
                employee_id=employee.employee_id,
                employee_code=employee.employee_code,
                name=employee.full_name,
            ),
            pay_period=record.pay_period,
            payment_date=record.payment_date,
            earnings=PayslipEarnings(
                base_salary=record.base_salary,
                overtime=record.overtime,
                bonuses=record.bonuses,
                allowances=record.allowances,
                gross_pay=record.gross_pay,
            ),
            deductions=PayslipDeductions(
                tax=record.tax,
                other=record.deductions,
                total=record.tax + record.deductions,
            ),
            net_pay=record.net_pay,
            status=PaymentStatus(record.status),
            notes=record.notes,
        )


# ============================================================================
# Statistics schemas
# ============================================================================


class PeriodTotalsResponse(BaseModel):
    salary: Decimal
    bonuses: Decimal
    count: int

    @classmethod
    def from_totals(cls, totals: PeriodTotals) -> "PeriodTotalsResponse":
        return cls(salary=totals.salary, bonuses=totals.bonuses, count=totals.count)


class MonthlyBreakdown(PeriodTotalsResponse):
    pay_period: str


class YearlyBreakdown(PeriodTotalsResponse):
    year: int


class StatisticsResponse(BaseModel):
    """Completed-period totals with in-flight snapshots."""

    current_period: str
    total_paid_salary: Decimal
    total_paid_bonuses: Decimal
    current_month: PeriodTotalsResponse
    current_year: PeriodTotalsResponse
    monthly: list[MonthlyBreakdown]
    yearly: list[YearlyBreakdown]

    @classmethod
    def from_statistics(cls, stats: LedgerStatistics) -> "StatisticsResponse":
        return cls(
            current_period=stats.current_period.key,
            total_paid_salary=stats.total_paid_salary,
            total_paid_bonuses=stats.total_paid_bonuses,
            current_month=PeriodTotalsResponse.from_totals(stats.current_month),
            current_year=PeriodTotalsResponse.from_totals(stats.current_year),
            monthly=[
                MonthlyBreakdown(
                    pay_period=period.key,
                    salary=totals.salary,
                    bonuses=totals.bonuses,
                    count=totals.count,
                )
                for period, totals in stats.monthly
            ],
            yearly=[
                YearlyBreakdown(
                    year=year,
                    salary=totals.salary,
                    bonuses=totals.bonuses,
                    count=totals.count,
                )
                for year, totals in stats.yearly
            ],
        )


class EmployeeSummaryResponse(BaseModel):
    """Completed-period payroll summary for one employee."""

    employee_id: str
    employee_code: str
    first_name: str
    last_name: str
    status: str
    base_salary: Decimal
    completed_months: int
    total_paid: Decimal
    has_contract: bool
    contract_start_date: date | None = None

    @classmethod
    def from_summary(cls, summary: EmployeeSummary) -> "EmployeeSummaryResponse":
        employee = summary.employee
        return cls(
            employee_id=employee.employee_id,
            employee_code=employee.employee_code,
            first_name=employee.first_name,
            last_name=employee.last_name,
            status=employee.status,
            base_salary=summary.base_salary,
            completed_months=summary.completed_months,
            total_paid=summary.total_paid,
            has_contract=summary.has_contract,
            contract_start_date=summary.contract_start_date,
        )


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


class ValidationErrorResponse(BaseModel):
    """Schema for validation error response."""

    detail: list[dict[str, Any]]
