"""Employee API tests — listing, search, filters, CRUD and access control."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from hrportal.common.audit import AuditTrail
from hrportal.common.constants import EmploymentStatus

EMP = "/api/v1/employees"


def _payload(**overrides) -> dict:
    data = {
        "first_name": "Katherine",
        "last_name": "Johnson",
        "email": "katherine.johnson@example.com",
        "position": "Data Scientist",
        "start_date": "2023-05-02",
    }
    data.update(overrides)
    return data


# ═════════════════════════════════════════════════════════════════════
# List / search
# ═════════════════════════════════════════════════════════════════════


class TestListEmployees:

    @pytest.fixture
    async def roster(self, make_department, make_employee):
        eng = await make_department("Engineering")
        fin = await make_department("Finance")
        await make_employee(first_name="Ada", last_name="Lovelace", department_id=eng.id)
        await make_employee(first_name="Alan", last_name="Turing", department_id=eng.id,
                            position="Cryptanalyst")
        await make_employee(first_name="Mei", last_name="Chen", department_id=fin.id,
                            position="Finance Lead", status=EmploymentStatus.inactive)
        return {"eng": eng, "fin": fin}

    async def test_requires_authentication(self, client):
        resp = await client.get(EMP)
        assert resp.status_code == 401

    async def test_sorted_by_last_name(self, client, roster, hr_headers):
        resp = await client.get(EMP, headers=hr_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert [e["last_name"] for e in body["data"]] == ["Chen", "Lovelace", "Turing"]
        assert body["meta"]["total"] == 3

    async def test_search_matches_department_name(self, client, roster, hr_headers):
        resp = await client.get(EMP, params={"search": "finance"}, headers=hr_headers)
        assert [e["full_name"] for e in resp.json()["data"]] == ["Mei Chen"]

    async def test_search_matches_position_case_insensitive(self, client, roster, hr_headers):
        resp = await client.get(EMP, params={"search": "CRYPTO"}, headers=hr_headers)
        assert [e["last_name"] for e in resp.json()["data"]] == ["Turing"]

    async def test_filter_by_department_and_status(self, client, roster, hr_headers):
        resp = await client.get(
            EMP, params={"department_id": str(roster["eng"].id)}, headers=hr_headers,
        )
        assert {e["last_name"] for e in resp.json()["data"]} == {"Lovelace", "Turing"}

        resp = await client.get(EMP, params={"status": "inactive"}, headers=hr_headers)
        assert [e["last_name"] for e in resp.json()["data"]] == ["Chen"]

    async def test_pagination_meta(self, client, roster, hr_headers):
        resp = await client.get(EMP, params={"page_size": 2}, headers=hr_headers)
        meta = resp.json()["meta"]
        assert meta["total"] == 3
        assert meta["total_pages"] == 2
        assert meta["has_next"] is True

    async def test_response_includes_department_name(self, client, roster, hr_headers):
        resp = await client.get(EMP, params={"search": "Turing"}, headers=hr_headers)
        assert resp.json()["data"][0]["department_name"] == "Engineering"


# ═════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeCrud:

    async def test_create_employee(self, client, db, hr_headers, department):
        resp = await client.post(
            EMP, json=_payload(department_id=str(department.id)), headers=hr_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["full_name"] == "Katherine Johnson"
        assert data["department_name"] == "Engineering"
        assert data["status"] == "active"

        actions = (
            await db.execute(
                select(AuditTrail.action).where(
                    AuditTrail.entity_type == "employee",
                    AuditTrail.entity_id == uuid.UUID(data["id"]),
                )
            )
        ).scalars().all()
        assert actions == ["create"]

    async def test_create_requires_hr(self, client, employee_headers):
        resp = await client.post(EMP, json=_payload(), headers=employee_headers)
        assert resp.status_code == 403

    async def test_duplicate_email_conflicts(self, client, hr_headers, make_employee):
        await make_employee(email="katherine.johnson@example.com")
        resp = await client.post(EMP, json=_payload(), headers=hr_headers)
        assert resp.status_code == 409

    async def test_invalid_email_rejected(self, client, hr_headers):
        resp = await client.post(EMP, json=_payload(email="not-an-email"), headers=hr_headers)
        assert resp.status_code == 422
        assert "email" in resp.json()["errors"]

    async def test_unknown_department_404(self, client, hr_headers):
        resp = await client.post(
            EMP, json=_payload(department_id=str(uuid.uuid4())), headers=hr_headers,
        )
        assert resp.status_code == 404

    async def test_get_employee(self, client, employee, employee_headers):
        resp = await client.get(f"{EMP}/{employee.id}", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == employee.email

    async def test_get_unknown_404(self, client, hr_headers):
        resp = await client.get(f"{EMP}/{uuid.uuid4()}", headers=hr_headers)
        assert resp.status_code == 404

    async def test_partial_update(self, client, employee, hr_headers):
        resp = await client.patch(
            f"{EMP}/{employee.id}",
            json={"position": "Principal Engineer", "phone": "+44 20 7946 0000"},
            headers=hr_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["position"] == "Principal Engineer"
        assert data["first_name"] == "Ada"
        assert data["start_date"] == date(2022, 1, 10).isoformat()

    @pytest.mark.parametrize(
        "field", ["first_name", "last_name", "email", "position", "start_date", "status"],
    )
    async def test_update_with_null_required_field_rejected(
        self, client, employee, hr_headers, field,
    ):
        resp = await client.patch(f"{EMP}/{employee.id}", json={field: None}, headers=hr_headers)
        assert resp.status_code == 422
        assert field in resp.json()["errors"]

        resp = await client.get(f"{EMP}/{employee.id}", headers=hr_headers)
        assert resp.json()["data"]["first_name"] == "Ada"

    async def test_clear_department(self, client, employee, hr_headers):
        resp = await client.patch(
            f"{EMP}/{employee.id}", json={"department_id": None}, headers=hr_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["department_id"] is None
        assert data["department_name"] is None

    async def test_update_to_taken_email_conflicts(
        self, client, employee, hr_headers, make_employee,
    ):
        other = await make_employee(first_name="Alan", last_name="Turing")
        resp = await client.patch(
            f"{EMP}/{employee.id}", json={"email": other.email}, headers=hr_headers,
        )
        assert resp.status_code == 409

    async def test_delete_employee(self, client, hr_headers, make_employee):
        emp = await make_employee(first_name="Temp", last_name="Worker")
        resp = await client.delete(f"{EMP}/{emp.id}", headers=hr_headers)
        assert resp.status_code == 200

        resp = await client.get(f"{EMP}/{emp.id}", headers=hr_headers)
        assert resp.status_code == 404

    async def test_delete_with_leave_requests_conflicts(
        self, client, hr_headers, employee, employee_headers, annual_leave,
    ):
        resp = await client.post(
            "/api/v1/leave/requests",
            json={
                "leave_type_id": str(annual_leave.id),
                "start_date": "2024-03-01",
                "end_date": "2024-03-01",
            },
            headers=employee_headers,
        )
        assert resp.status_code == 201

        resp = await client.delete(f"{EMP}/{employee.id}", headers=hr_headers)
        assert resp.status_code == 409
