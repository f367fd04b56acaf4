"""Department API tests — list with headcounts, CRUD and guarded deletion."""

from __future__ import annotations

import uuid

import pytest

from hrportal.common.constants import EmploymentStatus

DEPT = "/api/v1/departments"


class TestListDepartments:

    async def test_list_with_active_employee_counts(
        self, client, hr_headers, make_department, make_employee,
    ):
        eng = await make_department("Engineering")
        await make_department("Legal")
        await make_employee(department_id=eng.id)
        await make_employee(first_name="Alan", last_name="Turing", department_id=eng.id)
        await make_employee(first_name="Old", last_name="Timer", department_id=eng.id,
                            status=EmploymentStatus.terminated)

        resp = await client.get(DEPT, headers=hr_headers)
        assert resp.status_code == 200
        body = resp.json()
        counts = {d["name"]: d["employee_count"] for d in body["data"]}
        assert counts == {"Engineering": 2, "Legal": 0}
        assert body["message"] == "Found 2 department(s)."

    async def test_sorted_by_name(self, client, hr_headers, make_department):
        for name in ("Sales", "Finance", "Marketing"):
            await make_department(name)
        resp = await client.get(DEPT, headers=hr_headers)
        assert [d["name"] for d in resp.json()["data"]] == ["Finance", "Marketing", "Sales"]

    async def test_requires_authentication(self, client):
        resp = await client.get(DEPT)
        assert resp.status_code == 401


class TestDepartmentCrud:

    async def test_create_department(self, client, hr_headers):
        resp = await client.post(
            DEPT,
            json={"name": "Research", "description": "R&D", "manager": "Hedy Lamarr"},
            headers=hr_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["name"] == "Research"
        assert data["employee_count"] == 0

    async def test_manager_cannot_create(self, client, manager_headers):
        resp = await client.post(DEPT, json={"name": "Research"}, headers=manager_headers)
        assert resp.status_code == 403

    async def test_duplicate_name_conflicts(self, client, hr_headers, department):
        resp = await client.post(DEPT, json={"name": department.name}, headers=hr_headers)
        assert resp.status_code == 409

    async def test_blank_name_rejected(self, client, hr_headers):
        resp = await client.post(DEPT, json={"name": ""}, headers=hr_headers)
        assert resp.status_code == 422

    async def test_get_department_counts_members(self, client, hr_headers, employee, department):
        resp = await client.get(f"{DEPT}/{department.id}", headers=hr_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["employee_count"] == 1

    async def test_get_unknown_404(self, client, hr_headers):
        resp = await client.get(f"{DEPT}/{uuid.uuid4()}", headers=hr_headers)
        assert resp.status_code == 404

    async def test_rename(self, client, hr_headers, department):
        resp = await client.patch(
            f"{DEPT}/{department.id}", json={"name": "Platform"}, headers=hr_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Platform"

    async def test_rename_to_existing_conflicts(
        self, client, hr_headers, department, make_department,
    ):
        await make_department("Finance")
        resp = await client.patch(
            f"{DEPT}/{department.id}", json={"name": "Finance"}, headers=hr_headers,
        )
        assert resp.status_code == 409

    async def test_update_with_null_name_rejected(self, client, hr_headers, department):
        resp = await client.patch(
            f"{DEPT}/{department.id}", json={"name": None}, headers=hr_headers,
        )
        assert resp.status_code == 422
        assert "name" in resp.json()["errors"]

        resp = await client.get(f"{DEPT}/{department.id}", headers=hr_headers)
        assert resp.json()["data"]["name"] == "Engineering"

    async def test_clear_optional_fields(self, client, hr_headers, department):
        resp = await client.patch(
            f"{DEPT}/{department.id}",
            json={"description": None, "manager": None},
            headers=hr_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["manager"] is None

    async def test_delete_empty_department(self, client, hr_headers, make_department):
        dept = await make_department("Temporary")
        resp = await client.delete(f"{DEPT}/{dept.id}", headers=hr_headers)
        assert resp.status_code == 200

        resp = await client.get(f"{DEPT}/{dept.id}", headers=hr_headers)
        assert resp.status_code == 404

    async def test_delete_with_members_conflicts(self, client, hr_headers, employee, department):
        resp = await client.delete(f"{DEPT}/{department.id}", headers=hr_headers)
        assert resp.status_code == 409
        assert "1 employee(s)" in resp.json()["detail"]
