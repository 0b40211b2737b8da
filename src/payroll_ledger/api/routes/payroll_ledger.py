"""Payroll ledger API endpoints."""

from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Path, Query, status

from payroll_ledger.api.dependencies import CurrentCaller, DbSession, ElevatedCaller, Now
from payroll_ledger.api.schemas import (
    BonusCreate,
    BonusResponse,
    EmployeeSummaryResponse,
    EntryStatusRequest,
    ErrorResponse,
    LedgerListResponse,
    ListedEntryResponse,
    PayrollRecordCreate,
    PayrollRecordResponse,
    PayslipResponse,
    RewardResponse,
    SalaryHistoryResponse,
    StatisticsResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from payroll_ledger.calculators.stats_roller import StatsFilter
from payroll_ledger.calculators.types import (
    InvalidPayPeriodError,
    PaymentStatus,
    PayPeriod,
    decode_entry_key,
)
from payroll_ledger.services.bonus_posting import (
    BonusPostingService,
    InvalidBonusAmountError,
)
from payroll_ledger.services.contract_resolver import (
    ContractNotFoundError,
    NoBaseSalaryError,
)
from payroll_ledger.services.employees import EmployeeDirectory, EmployeeNotFoundError
from payroll_ledger.services.ledger_service import LedgerService
from payroll_ledger.services.payroll_records import (
    DuplicatePayrollRecordError,
    PayrollRecordService,
)
from payroll_ledger.services.statistics_service import StatisticsService
from payroll_ledger.services.status_materializer import (
    MaterializeResult,
    PayrollRecordNotFoundError,
    StatusMaterializer,
)

router = APIRouter(prefix="/payroll-ledger", tags=["payroll-ledger"])


def _status_response(result: MaterializeResult) -> StatusUpdateResponse:
    return StatusUpdateResponse(
        payroll_record=PayrollRecordResponse.model_validate(result.record),
        created=result.created,
        message="Payroll record created" if result.created else "Payroll record updated",
    )


# ============================================================================
# Listing and statistics
# ============================================================================


@router.get(
    "",
    response_model=LedgerListResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def list_entries(
    db: DbSession,
    caller: CurrentCaller,
    now: Now,
    employee_id: str | None = None,
    pay_period: str | None = None,
    search: str | None = None,
    status_filter: Annotated[PaymentStatus | None, Query(alias="status")] = None,
) -> LedgerListResponse:
    """List stored payroll records, or estimates when none match yet.

    Estimated rows carry a synthetic id that the entry status endpoint
    accepts.
    """
    try:
        period = PayPeriod.parse(pay_period) if pay_period else None
    except InvalidPayPeriodError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    scope = await EmployeeDirectory(db).scope_for(caller)
    listed = await LedgerService(db).list_entries(
        scope,
        now,
        employee_id=employee_id,
        pay_period=period,
        status=status_filter,
        search=search,
    )

    return LedgerListResponse(
        items=[ListedEntryResponse.from_listed(item) for item in listed],
        total=len(listed),
        is_estimated=bool(listed) and listed[0].entry.is_estimated,
    )


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def get_statistics(
    db: DbSession,
    caller: CurrentCaller,
    now: Now,
    year: Annotated[int | None, Query(ge=1, le=9999)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    period: str | None = None,
) -> StatisticsResponse:
    """Completed payroll totals; non-elevated callers see only themselves."""
    try:
        stats_filter = StatsFilter.build(period=period, year=year, month=month)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    scope = await EmployeeDirectory(db).scope_for(caller)
    stats = await StatisticsService(db).compute(scope, now, stats_filter)
    return StatisticsResponse.from_statistics(stats)


@router.get(
    "/employees",
    response_model=list[EmployeeSummaryResponse],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_employee_summaries(
    db: DbSession,
    caller: ElevatedCaller,
    now: Now,
) -> list[EmployeeSummaryResponse]:
    """Completed-period payroll summary for every employee."""
    scope = await EmployeeDirectory(db).scope_for(caller)
    summaries = await StatisticsService(db).employee_summaries(scope, now)
    return [EmployeeSummaryResponse.from_summary(s) for s in summaries]


# ============================================================================
# Mutations
# ============================================================================


@router.post(
    "/bonuses",
    response_model=BonusResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def post_bonus(
    db: DbSession,
    caller: ElevatedCaller,
    now: Now,
    payload: BonusCreate,
) -> BonusResponse:
    """Record a bonus and sync the period's payroll record."""
    try:
        posting = await BonusPostingService(db).post_bonus(
            employee_id=payload.employee_id,
            pay_period=PayPeriod.parse(payload.pay_period),
            amount=payload.amount,
            now=now,
            title=payload.title,
            description=payload.description,
            awarded_by=caller.user_id,
        )
    except InvalidBonusAmountError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except (EmployeeNotFoundError, ContractNotFoundError, NoBaseSalaryError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    await db.commit()
    return BonusResponse(
        reward=RewardResponse.model_validate(posting.reward),
        payroll_record=PayrollRecordResponse.model_validate(posting.payroll_record),
        record_created=posting.record_created,
    )


@router.post(
    "/records",
    response_model=PayrollRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_payroll_record(
    db: DbSession,
    caller: ElevatedCaller,
    payload: PayrollRecordCreate,
) -> PayrollRecordResponse:
    """Create a PENDING payroll record explicitly."""
    try:
        record = await PayrollRecordService(db).create_record(
            employee_id=payload.employee_id,
            pay_period=PayPeriod.parse(payload.pay_period),
            base_salary=payload.base_salary,
            allowances=payload.allowances,
            deductions=payload.deductions,
            overtime=payload.overtime,
            bonuses=payload.bonuses,
            tax=payload.tax,
            notes=payload.notes,
        )
    except DuplicatePayrollRecordError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except (EmployeeNotFoundError, ContractNotFoundError, NoBaseSalaryError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    await db.commit()
    return PayrollRecordResponse.model_validate(record)


@router.get(
    "/records/{payroll_record_id}/payslip",
    response_model=PayslipResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_payslip(
    db: DbSession,
    caller: CurrentCaller,
    payroll_record_id: Annotated[str, Path()],
) -> PayslipResponse:
    """Earnings and deductions breakdown of a stored payroll record."""
    try:
        record = await PayrollRecordService(db).get_record(payroll_record_id)
    except PayrollRecordNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    directory = EmployeeDirectory(db)
    scope = await directory.scope_for(caller)
    if not scope.allows(record.employee_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )

    employee = await directory.require(record.employee_id)
    return PayslipResponse.from_record(record, employee)


@router.put(
    "/entries/{entry_key}/status",
    response_model=StatusUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_entry_status(
    db: DbSession,
    caller: ElevatedCaller,
    now: Now,
    entry_key: Annotated[str, Path()],
    payload: EntryStatusRequest,
) -> StatusUpdateResponse:
    """Set the status of a listed entry by its listing id."""
    try:
        key = decode_entry_key(entry_key)
    except InvalidPayPeriodError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    try:
        result = await StatusMaterializer(db).set_status_by_key(key, payload.status, now)
    except (
        EmployeeNotFoundError,
        ContractNotFoundError,
        NoBaseSalaryError,
        PayrollRecordNotFoundError,
    ) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    await db.commit()
    return _status_response(result)


# ============================================================================
# Per-employee ledger
# ============================================================================


@router.get(
    "/{employee_id}",
    response_model=SalaryHistoryResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_salary_history(
    db: DbSession,
    caller: CurrentCaller,
    now: Now,
    employee_id: Annotated[str, Path()],
    order: Literal["desc", "asc"] = "desc",
) -> SalaryHistoryResponse:
    """Gapless salary history through the current month."""
    scope = await EmployeeDirectory(db).scope_for(caller)
    if not scope.allows(employee_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )

    try:
        ledger = await LedgerService(db).employee_ledger(
            employee_id,
            now,
            through_completed_only=False,
            descending=order == "desc",
        )
    except EmployeeNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    return SalaryHistoryResponse.from_ledger(ledger)


@router.put(
    "/{employee_id}/status",
    response_model=StatusUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_period_status(
    db: DbSession,
    caller: ElevatedCaller,
    now: Now,
    employee_id: Annotated[str, Path()],
    payload: StatusUpdateRequest,
) -> StatusUpdateResponse:
    """Set the payment status of one pay period, creating its record if needed."""
    try:
        result = await StatusMaterializer(db).set_status(
            employee_id,
            PayPeriod.parse(payload.pay_period),
            payload.status,
            now,
        )
    except (EmployeeNotFoundError, ContractNotFoundError, NoBaseSalaryError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    await db.commit()
    return _status_response(result)
