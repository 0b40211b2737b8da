"""Type definitions for ledger reconstruction."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Iterator, Union

PAY_PERIOD_PATTERN = re.compile(r"^\d{4}-\d{2}$")

ZERO = Decimal("0")


class InvalidPayPeriodError(ValueError):
    """Raised when a pay period key is not a valid YYYY-MM month."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid pay period {value!r}. Expected format: YYYY-MM"
        )


class PaymentStatus(str, Enum):
    """Payroll entry payment status values."""

    PENDING = "PENDING"
    PROCESSED = "PROCESSED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class EmployeeStatus(str, Enum):
    """Employee lifecycle status values."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVE = "ON_LEAVE"
    TERMINATED = "TERMINATED"


class ContractStatus(str, Enum):
    """Contract lifecycle status values."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class RewardCategory(str, Enum):
    """Reward categories. Only BONUS participates in payroll."""

    BONUS = "BONUS"
    RECOGNITION = "RECOGNITION"
    OTHER = "OTHER"


@dataclass(frozen=True, order=True)
class PayPeriod:
    """A calendar month, keyed YYYY-MM and ordered by (year, month)."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12 or not 1 <= self.year <= 9999:
            raise InvalidPayPeriodError(f"{self.year}-{self.month}")

    @classmethod
    def parse(cls, value: str) -> PayPeriod:
        """Parse a YYYY-MM key, raising InvalidPayPeriodError if malformed."""
        if not isinstance(value, str) or not PAY_PERIOD_PATTERN.match(value):
            raise InvalidPayPeriodError(value)
        year, month = value.split("-")
        try:
            return cls(int(year), int(month))
        except InvalidPayPeriodError:
            raise InvalidPayPeriodError(value) from None

    @classmethod
    def from_date(cls, value: date | datetime) -> PayPeriod:
        return cls(value.year, value.month)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def __str__(self) -> str:
        return self.key

    def next(self) -> PayPeriod:
        if self.month == 12:
            return PayPeriod(self.year + 1, 1)
        return PayPeriod(self.year, self.month + 1)

    def previous(self) -> PayPeriod:
        if self.month == 1:
            return PayPeriod(self.year - 1, 12)
        return PayPeriod(self.year, self.month - 1)

    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @staticmethod
    def iter_range(start: PayPeriod, end: PayPeriod) -> Iterator[PayPeriod]:
        """Yield every period from start to end inclusive, ascending."""
        period = start
        while period <= end:
            yield period
            period = period.next()


@dataclass(frozen=True)
class ContractTerms:
    """Snapshot of an employee's current (latest ACTIVE) contract."""

    contract_id: str
    employee_id: str
    contract_number: str | None
    base_salary: Decimal | None
    start_date: date
    end_date: date | None
    is_indefinite: bool

    @property
    def has_finite_end(self) -> bool:
        return self.end_date is not None and not self.is_indefinite


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive range of pay periods reported for one employee."""

    start: PayPeriod
    end: PayPeriod
    current: PayPeriod
    through_completed_only: bool

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def __iter__(self) -> Iterator[PayPeriod]:
        return PayPeriod.iter_range(self.start, self.end)

    def __len__(self) -> int:
        if self.is_empty:
            return 0
        return (self.end.year - self.start.year) * 12 + self.end.month - self.start.month + 1

    def __contains__(self, period: object) -> bool:
        return isinstance(period, PayPeriod) and self.start <= period <= self.end


# ============================================================================
# Ledger entries
# ============================================================================


@dataclass(frozen=True)
class DurableEntry:
    """A payroll record persisted in storage."""

    payroll_record_id: str
    employee_id: str
    pay_period: PayPeriod
    base_salary: Decimal
    allowances: Decimal
    deductions: Decimal
    overtime: Decimal
    bonuses: Decimal
    tax: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    status: PaymentStatus
    payment_date: datetime | None

    has_record = True
    is_estimated = False

    @classmethod
    def from_record(cls, record) -> DurableEntry:
        """Snapshot an ORM PayrollRecord."""
        return cls(
            payroll_record_id=record.payroll_record_id,
            employee_id=record.employee_id,
            pay_period=PayPeriod.parse(record.pay_period),
            base_salary=record.base_salary,
            allowances=record.allowances,
            deductions=record.deductions,
            overtime=record.overtime,
            bonuses=record.bonuses,
            tax=record.tax,
            gross_pay=record.gross_pay,
            net_pay=record.net_pay,
            status=PaymentStatus(record.status),
            payment_date=record.payment_date,
        )


@dataclass(frozen=True)
class EstimatedEntry:
    """A payroll figure computed from contract and bonus data, never stored."""

    employee_id: str
    pay_period: PayPeriod
    base_salary: Decimal
    bonuses: Decimal
    status: PaymentStatus
    payment_date: date | None = None

    has_record = False
    is_estimated = True
    allowances = ZERO
    deductions = ZERO
    overtime = ZERO
    tax = ZERO

    @property
    def gross_pay(self) -> Decimal:
        return self.base_salary + self.bonuses

    @property
    def net_pay(self) -> Decimal:
        return self.gross_pay


LedgerEntry = Union[DurableEntry, EstimatedEntry]


# ============================================================================
# Entry keys
# ============================================================================


@dataclass(frozen=True)
class DurableKey:
    """Addresses a stored payroll record by its identifier."""

    payroll_record_id: str


@dataclass(frozen=True)
class EstimatedKey:
    """Addresses a (possibly not yet stored) entry by employee and period."""

    employee_id: str
    pay_period: PayPeriod


EntryKey = Union[DurableKey, EstimatedKey]

_ESTIMATED_TOKEN = re.compile(r"^temp-(?P<employee_id>.+)-(?P<period>\d{4}-\d{2})$")


def key_for(entry: LedgerEntry) -> EntryKey:
    if isinstance(entry, DurableEntry):
        return DurableKey(entry.payroll_record_id)
    return EstimatedKey(entry.employee_id, entry.pay_period)


def encode_entry_key(key: EntryKey) -> str:
    """Render an entry key as the public listing identifier."""
    if isinstance(key, EstimatedKey):
        return f"temp-{key.employee_id}-{key.pay_period}"
    return key.payroll_record_id


def decode_entry_key(token: str) -> EntryKey:
    """Inverse of encode_entry_key."""
    match = _ESTIMATED_TOKEN.match(token)
    if match is None:
        return DurableKey(token)
    return EstimatedKey(match.group("employee_id"), PayPeriod.parse(match.group("period")))
