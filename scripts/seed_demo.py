"""Seed demo employees, contracts and bonuses.

Usage:
    python scripts/seed_demo.py [--database-url URL] [--reset]

Creates the schema if needed and loads a small organization whose payroll
history starts in the previous year, so the ledger, listing and statistics
endpoints have something to show.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from payroll_ledger.config import get_settings
from payroll_ledger.models import Base, Contract, Employee, RewardEntry

DEMO_EMPLOYEES = [
    # code, first, last, user_id, base salary, status, contract start, end
    ("EMP001", "Linh", "Nguyen", "user-hr-001", Decimal("15000000"), "ACTIVE", (1, 3, 1), None),
    ("EMP002", "Minh", "Tran", "user-emp-002", Decimal("12000000"), "ACTIVE", (1, 6, 15), None),
    ("EMP003", "Thu", "Le", "user-emp-003", Decimal("18000000"), "INACTIVE", (1, 1, 1), (0, 2, 28)),
]


def _shifted(today: date, years_back: int, month: int, day: int) -> date:
    return date(today.year - years_back, month, day)


async def seed(database_url: str, reset: bool) -> None:
    """Create tables and insert demo rows."""
    engine = create_async_engine(database_url, echo=False)
    today = date.today()

    try:
        async with engine.begin() as conn:
            if reset:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

        async with AsyncSession(engine, expire_on_commit=False) as session:
            for code, first, last, user_id, salary, status, start, end in DEMO_EMPLOYEES:
                employee = Employee(
                    employee_code=code,
                    first_name=first,
                    last_name=last,
                    user_id=user_id,
                    base_salary=salary,
                    status=status,
                )
                session.add(employee)
                await session.flush()

                session.add(
                    Contract(
                        employee_id=employee.employee_id,
                        contract_number=f"HD-{code}",
                        base_salary=salary,
                        start_date=_shifted(today, *start),
                        end_date=_shifted(today, *end) if end else None,
                        is_indefinite=end is None,
                    )
                )
                session.add(
                    RewardEntry(
                        employee_id=employee.employee_id,
                        title="Year-end bonus",
                        category="BONUS",
                        amount=Decimal("2000000"),
                        pay_period=f"{today.year - 1:04d}-12",
                        awarded_on=date(today.year - 1, 12, 20),
                    )
                )
                print(f"Seeded {code} {first} {last} ({employee.employee_id})")

            await session.commit()
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo payroll data")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Async database URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all tables before seeding",
    )
    args = parser.parse_args()

    database_url = args.database_url or get_settings().database_url
    asyncio.run(seed(database_url, args.reset))
    print("Done.")


if __name__ == "__main__":
    main()
