"""Integration test fixtures: API client over the in-memory database."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.api.app import create_app
from payroll_ledger.api.dependencies import get_db_session, get_now
from tests.factories import add_employee, add_scenario_employee

HR_HEADERS = {"X-User-Id": "user-hr", "X-User-Role": "HR"}
EMPLOYEE_USER_ID = "user-emp-001"
EMPLOYEE_HEADERS = {"X-User-Id": EMPLOYEE_USER_ID, "X-User-Role": "EMPLOYEE"}


@pytest_asyncio.fixture
async def app(session_factory, now):
    """Application with the database and clock pinned for tests."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_now] = lambda: now
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def seeded_db(session: AsyncSession) -> dict:
    """Scenario employee linked to a login plus a colleague without payroll history."""
    employee = await add_scenario_employee(session, user_id=EMPLOYEE_USER_ID)
    colleague = await add_employee(session, "EMP002", first_name="Minh", last_name="Tran")
    await session.commit()
    return {"employee": employee, "colleague": colleague}
