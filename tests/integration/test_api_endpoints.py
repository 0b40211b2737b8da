"""Integration tests for API endpoints."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.api.dependencies import get_now
from payroll_ledger.models import PayrollRecord
from tests.factories import add_contract
from tests.integration.conftest import EMPLOYEE_HEADERS, HR_HEADERS

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/payroll-ledger"


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_liveness(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.json() == {"status": "alive"}


class TestAuthentication:
    """Test caller identity handling."""

    async def test_missing_headers(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/stats")

        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized"

    async def test_unknown_role(self, client: AsyncClient, seeded_db):
        response = await client.get(
            f"{BASE}/stats",
            headers={"X-User-Id": "user-x", "X-User-Role": "ADMIN"},
        )

        assert response.status_code == 401

    async def test_mutation_requires_elevated_role(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        response = await client.put(
            f"{BASE}/{employee.employee_id}/status",
            headers=EMPLOYEE_HEADERS,
            json={"pay_period": "2024-05", "status": "PAID"},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Forbidden"

    async def test_summaries_require_elevated_role(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/employees", headers=EMPLOYEE_HEADERS)
        assert response.status_code == 403


class TestSalaryHistory:
    """Test GET /payroll-ledger/{employee_id}."""

    async def test_history_through_current_month(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        response = await client.get(f"{BASE}/{employee.employee_id}", headers=HR_HEADERS)

        assert response.status_code == 200, response.text
        data = response.json()
        history = data["salary_history"]
        assert [e["pay_period"] for e in history] == [
            "2024-06",
            "2024-05",
            "2024-04",
            "2024-03",
        ]
        assert history[0]["status"] == "PENDING"
        assert history[0]["is_estimated"] is True
        assert Decimal(history[1]["net_pay"]) == Decimal("17000000")
        assert Decimal(data["total_paid"]) == Decimal("47000000")
        assert Decimal(data["total_pending"]) == Decimal("15000000")
        assert data["total_months"] == 4
        assert data["contract"]["start_date"] == "2024-03-01"
        assert data["employee"]["employee_code"] == "EMP001"

    async def test_ascending_order(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        response = await client.get(
            f"{BASE}/{employee.employee_id}",
            headers=HR_HEADERS,
            params={"order": "asc"},
        )

        assert response.json()["salary_history"][0]["pay_period"] == "2024-03"

    async def test_employee_sees_own_history(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        response = await client.get(f"{BASE}/{employee.employee_id}", headers=EMPLOYEE_HEADERS)

        assert response.status_code == 200

    async def test_employee_cannot_see_colleague(self, client: AsyncClient, seeded_db):
        colleague = seeded_db["colleague"]
        response = await client.get(f"{BASE}/{colleague.employee_id}", headers=EMPLOYEE_HEADERS)

        assert response.status_code == 403

    async def test_no_contract_returns_message(self, client: AsyncClient, seeded_db):
        colleague = seeded_db["colleague"]
        response = await client.get(f"{BASE}/{colleague.employee_id}", headers=HR_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["salary_history"] == []
        assert data["contract"] is None
        assert data["message"] == "Employee has no active contract"

    async def test_unknown_employee(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/no-such-employee", headers=HR_HEADERS)
        assert response.status_code == 404


class TestStatusUpdate:
    """Test PUT /payroll-ledger/{employee_id}/status."""

    async def test_materializes_estimate(
        self, client: AsyncClient, seeded_db, session: AsyncSession
    ):
        employee = seeded_db["employee"]
        response = await client.put(
            f"{BASE}/{employee.employee_id}/status",
            headers=HR_HEADERS,
            json={"pay_period": "2024-05", "status": "PAID"},
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["created"] is True
        record = data["payroll_record"]
        assert record["status"] == "PAID"
        assert Decimal(record["bonuses"]) == Decimal("2000000")
        assert Decimal(record["net_pay"]) == Decimal("17000000")

        count = await session.scalar(select(func.count()).select_from(PayrollRecord))
        assert count == 1

    async def test_second_update_reuses_record(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        url = f"{BASE}/{employee.employee_id}/status"

        first = await client.put(
            url, headers=HR_HEADERS, json={"pay_period": "2024-05", "status": "PAID"}
        )
        second = await client.put(
            url, headers=HR_HEADERS, json={"pay_period": "2024-05", "status": "PENDING"}
        )

        assert second.json()["created"] is False
        assert (
            second.json()["payroll_record"]["payroll_record_id"]
            == first.json()["payroll_record"]["payroll_record_id"]
        )

    @pytest.mark.parametrize(
        "body",
        [
            {"pay_period": "2024-5", "status": "PAID"},
            {"pay_period": "2024-13", "status": "PAID"},
            {"pay_period": "2024-05", "status": "SETTLED"},
            {"status": "PAID"},
        ],
    )
    async def test_invalid_body(self, client: AsyncClient, seeded_db, body):
        employee = seeded_db["employee"]
        response = await client.put(
            f"{BASE}/{employee.employee_id}/status", headers=HR_HEADERS, json=body
        )

        assert response.status_code == 400
        assert isinstance(response.json()["detail"], list)

    async def test_missing_contract(self, client: AsyncClient, seeded_db):
        colleague = seeded_db["colleague"]
        response = await client.put(
            f"{BASE}/{colleague.employee_id}/status",
            headers=HR_HEADERS,
            json={"pay_period": "2024-05", "status": "PAID"},
        )

        assert response.status_code == 404

    async def test_no_base_salary(
        self, client: AsyncClient, seeded_db, session: AsyncSession
    ):
        colleague = seeded_db["colleague"]
        await add_contract(session, colleague, start_date=date(2024, 1, 1), base_salary=None)
        await session.commit()

        response = await client.put(
            f"{BASE}/{colleague.employee_id}/status",
            headers=HR_HEADERS,
            json={"pay_period": "2024-05", "status": "PAID"},
        )

        assert response.status_code == 404
        assert "no base salary" in response.json()["detail"]
        count = await session.scalar(
            select(func.count()).select_from(PayrollRecord).where(
                PayrollRecord.employee_id == colleague.employee_id
            )
        )
        assert count == 0

    async def test_unknown_employee(self, client: AsyncClient, seeded_db):
        response = await client.put(
            f"{BASE}/no-such-employee/status",
            headers=HR_HEADERS,
            json={"pay_period": "2024-05", "status": "PAID"},
        )

        assert response.status_code == 404


class TestListing:
    """Test GET /payroll-ledger and the listing id round trip."""

    async def test_estimated_listing(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        response = await client.get(BASE, headers=HR_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["is_estimated"] is True
        assert data["total"] == 4
        first = data["items"][0]
        assert first["id"] == f"temp-{employee.employee_id}-2024-06"
        assert first["first_name"] == "Linh"
        assert first["employee_code"] == "EMP001"

    async def test_listing_id_round_trip(self, client: AsyncClient, seeded_db):
        """The synthetic id addresses the same employee and period."""
        employee = seeded_db["employee"]
        listing = await client.get(
            BASE, headers=HR_HEADERS, params={"pay_period": "2024-04"}
        )
        entry_id = listing.json()["items"][0]["id"]

        response = await client.put(
            f"{BASE}/entries/{entry_id}/status",
            headers=HR_HEADERS,
            json={"status": "PROCESSED"},
        )

        assert response.status_code == 200, response.text
        record = response.json()["payroll_record"]
        assert record["employee_id"] == employee.employee_id
        assert record["pay_period"] == "2024-04"
        assert record["status"] == "PROCESSED"

        durable = await client.get(BASE, headers=HR_HEADERS)
        items = durable.json()["items"]
        assert durable.json()["is_estimated"] is False
        assert [item["id"] for item in items] == [record["payroll_record_id"]]

    async def test_durable_id_accepted(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        created = await client.put(
            f"{BASE}/{employee.employee_id}/status",
            headers=HR_HEADERS,
            json={"pay_period": "2024-05", "status": "PENDING"},
        )
        record_id = created.json()["payroll_record"]["payroll_record_id"]

        response = await client.put(
            f"{BASE}/entries/{record_id}/status",
            headers=HR_HEADERS,
            json={"status": "PAID"},
        )

        assert response.status_code == 200
        assert response.json()["payroll_record"]["status"] == "PAID"
        assert response.json()["created"] is False

    async def test_unknown_entry_id(self, client: AsyncClient, seeded_db):
        response = await client.put(
            f"{BASE}/entries/no-such-record/status",
            headers=HR_HEADERS,
            json={"status": "PAID"},
        )
        assert response.status_code == 404

    async def test_employee_listing_is_self_scoped(self, client: AsyncClient, seeded_db):
        colleague = seeded_db["colleague"]
        response = await client.get(
            BASE,
            headers=EMPLOYEE_HEADERS,
            params={"employee_id": colleague.employee_id},
        )

        codes = {item["employee_code"] for item in response.json()["items"]}
        assert codes == {"EMP001"}

    async def test_invalid_filters(self, client: AsyncClient, seeded_db):
        bad_period = await client.get(BASE, headers=HR_HEADERS, params={"pay_period": "May"})
        bad_status = await client.get(BASE, headers=HR_HEADERS, params={"status": "LATE"})

        assert bad_period.status_code == 400
        assert bad_status.status_code == 400


class TestStatistics:
    """Test GET /payroll-ledger/stats."""

    async def test_organization_totals(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/stats", headers=HR_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["current_period"] == "2024-06"
        assert Decimal(data["total_paid_salary"]) == Decimal("47000000")
        assert Decimal(data["total_paid_bonuses"]) == Decimal("2000000")
        assert data["current_month"]["count"] == 1
        assert data["monthly"][0]["pay_period"] == "2024-05"
        assert data["yearly"][0]["year"] == 2024

    async def test_period_filter(self, client: AsyncClient, seeded_db):
        response = await client.get(
            f"{BASE}/stats", headers=HR_HEADERS, params={"period": "2024-04"}
        )

        assert Decimal(response.json()["total_paid_salary"]) == Decimal("15000000")

    async def test_month_without_year(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/stats", headers=HR_HEADERS, params={"month": 5})
        assert response.status_code == 400

    async def test_month_out_of_range(self, client: AsyncClient, seeded_db):
        response = await client.get(
            f"{BASE}/stats", headers=HR_HEADERS, params={"year": 2024, "month": 13}
        )
        assert response.status_code == 400


class TestBonusesAndRecords:
    """Test POST /payroll-ledger/bonuses and /payroll-ledger/records."""

    async def test_post_bonus(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        response = await client.post(
            f"{BASE}/bonuses",
            headers=HR_HEADERS,
            json={
                "employee_id": employee.employee_id,
                "pay_period": "2024-05",
                "amount": "500000",
            },
        )

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["reward"]["awarded_by"] == "user-hr"
        assert data["record_created"] is True
        assert Decimal(data["payroll_record"]["bonuses"]) == Decimal("2500000")

        history = await client.get(f"{BASE}/{employee.employee_id}", headers=HR_HEADERS)
        may = next(e for e in history.json()["salary_history"] if e["pay_period"] == "2024-05")
        assert may["has_record"] is True
        assert Decimal(may["net_pay"]) == Decimal("17500000")

    @pytest.mark.parametrize("amount", ["0", "-100"])
    async def test_post_bonus_rejects_non_positive(self, client: AsyncClient, seeded_db, amount):
        employee = seeded_db["employee"]
        response = await client.post(
            f"{BASE}/bonuses",
            headers=HR_HEADERS,
            json={
                "employee_id": employee.employee_id,
                "pay_period": "2024-05",
                "amount": amount,
            },
        )

        assert response.status_code == 400

    async def test_post_bonus_unknown_employee(self, client: AsyncClient, seeded_db):
        response = await client.post(
            f"{BASE}/bonuses",
            headers=HR_HEADERS,
            json={"employee_id": "missing", "pay_period": "2024-05", "amount": "1"},
        )

        assert response.status_code == 404

    async def test_create_record_and_duplicate(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        payload = {
            "employee_id": employee.employee_id,
            "pay_period": "2024-04",
            "deductions": "1000000",
        }

        created = await client.post(f"{BASE}/records", headers=HR_HEADERS, json=payload)
        duplicate = await client.post(f"{BASE}/records", headers=HR_HEADERS, json=payload)

        assert created.status_code == 201, created.text
        assert Decimal(created.json()["net_pay"]) == Decimal("14000000")
        assert created.json()["status"] == "PENDING"
        assert duplicate.status_code == 400

    async def test_employee_summaries(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/employees", headers=HR_HEADERS)

        assert response.status_code == 200
        by_code = {row["employee_code"]: row for row in response.json()}
        assert by_code["EMP001"]["completed_months"] == 3
        assert Decimal(by_code["EMP001"]["total_paid"]) == Decimal("47000000")
        assert by_code["EMP002"]["has_contract"] is False


class TestPayslip:
    """Test GET /payroll-ledger/records/{id}/payslip."""

    async def _create_record(self, client: AsyncClient, employee_id: str, **fields) -> str:
        response = await client.post(
            f"{BASE}/records",
            headers=HR_HEADERS,
            json={"employee_id": employee_id, "pay_period": "2024-04", **fields},
        )
        assert response.status_code == 201, response.text
        return response.json()["payroll_record_id"]

    async def test_payslip_breakdown(self, client: AsyncClient, seeded_db):
        employee = seeded_db["employee"]
        record_id = await self._create_record(
            client,
            employee.employee_id,
            overtime="250000",
            allowances="500000",
            deductions="300000",
            tax="1200000",
            notes="April payroll",
        )

        response = await client.get(
            f"{BASE}/records/{record_id}/payslip", headers=HR_HEADERS
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["employee"] == {
            "employee_id": employee.employee_id,
            "employee_code": "EMP001",
            "name": "Linh Nguyen",
        }
        assert data["pay_period"] == "2024-04"
        earnings = {key: Decimal(value) for key, value in data["earnings"].items()}
        assert earnings == {
            "base_salary": Decimal("15000000"),
            "overtime": Decimal("250000"),
            "bonuses": Decimal("0"),
            "allowances": Decimal("500000"),
            "gross_pay": Decimal("15750000"),
        }
        deductions = {key: Decimal(value) for key, value in data["deductions"].items()}
        assert deductions == {
            "tax": Decimal("1200000"),
            "other": Decimal("300000"),
            "total": Decimal("1500000"),
        }
        assert Decimal(data["net_pay"]) == Decimal("14250000")
        assert data["status"] == "PENDING"
        assert data["payment_date"] is None
        assert data["notes"] == "April payroll"

    async def test_employee_sees_own_payslip(self, client: AsyncClient, seeded_db):
        record_id = await self._create_record(client, seeded_db["employee"].employee_id)

        response = await client.get(
            f"{BASE}/records/{record_id}/payslip", headers=EMPLOYEE_HEADERS
        )

        assert response.status_code == 200

    async def test_employee_cannot_see_colleague_payslip(
        self, client: AsyncClient, seeded_db
    ):
        record_id = await self._create_record(
            client, seeded_db["colleague"].employee_id, base_salary="9000000"
        )

        response = await client.get(
            f"{BASE}/records/{record_id}/payslip", headers=EMPLOYEE_HEADERS
        )

        assert response.status_code == 403

    async def test_unknown_record(self, client: AsyncClient, seeded_db):
        response = await client.get(
            f"{BASE}/records/no-such-record/payslip", headers=HR_HEADERS
        )

        assert response.status_code == 404

    async def test_requires_caller_headers(self, client: AsyncClient, seeded_db):
        response = await client.get(f"{BASE}/records/anything/payslip")

        assert response.status_code == 401


class TestUnexpectedErrors:
    async def test_unhandled_error_returns_generic_500(self, app, seeded_db):
        def broken_clock():
            raise RuntimeError("clock unavailable")

        app.dependency_overrides[get_now] = broken_clock
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(f"{BASE}/stats", headers=HR_HEADERS)

        assert response.status_code == 500
        assert response.json() == {
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
