"""Appointment API tests — personal calendar CRUD, date-range listing and
per-user isolation.
"""

from __future__ import annotations

import uuid

APPT = "/api/v1/appointments"


async def _create(client, headers, title: str, when: str, **extra) -> dict:
    resp = await client.post(APPT, json={"title": title, "date": when, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestAppointments:

    async def test_create_and_get(self, client, employee_user):
        user, headers = employee_user
        created = await _create(
            client, headers, "1:1 with manager", "2024-03-04T10:00:00Z",
            description="Quarterly check-in",
        )
        assert created["user_id"] == str(user.id)

        resp = await client.get(f"{APPT}/{created['id']}", headers=headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "1:1 with manager"
        assert data["date"].startswith("2024-03-04T10:00:00")

    async def test_list_ordered_by_date(self, client, employee_headers):
        await _create(client, employee_headers, "Later", "2024-05-01T09:00:00Z")
        await _create(client, employee_headers, "Sooner", "2024-02-01T09:00:00Z")
        await _create(client, employee_headers, "Middle", "2024-03-15T09:00:00Z")

        resp = await client.get(APPT, headers=employee_headers)
        assert [a["title"] for a in resp.json()["data"]] == ["Sooner", "Middle", "Later"]

    async def test_list_within_range(self, client, employee_headers):
        await _create(client, employee_headers, "Jan", "2024-01-10T09:00:00Z")
        await _create(client, employee_headers, "Feb", "2024-02-10T09:00:00Z")
        await _create(client, employee_headers, "Mar", "2024-03-10T09:00:00Z")

        resp = await client.get(
            APPT,
            params={"from": "2024-02-01T00:00:00Z", "to": "2024-02-29T23:59:59Z"},
            headers=employee_headers,
        )
        assert [a["title"] for a in resp.json()["data"]] == ["Feb"]

    async def test_inverted_range_422(self, client, employee_headers):
        resp = await client.get(
            APPT,
            params={"from": "2024-03-01T00:00:00Z", "to": "2024-02-01T00:00:00Z"},
            headers=employee_headers,
        )
        assert resp.status_code == 422
        assert "to" in resp.json()["errors"]

    async def test_missing_title_422(self, client, employee_headers):
        resp = await client.post(APPT, json={"date": "2024-03-01T09:00:00Z"}, headers=employee_headers)
        assert resp.status_code == 422

    async def test_partial_update(self, client, employee_headers):
        created = await _create(client, employee_headers, "Dentist", "2024-03-04T10:00:00Z")
        resp = await client.patch(
            f"{APPT}/{created['id']}",
            json={"description": "Bring insurance card"},
            headers=employee_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "Dentist"
        assert data["description"] == "Bring insurance card"

    async def test_update_null_date_rejected(self, client, employee_headers):
        created = await _create(client, employee_headers, "Dentist", "2024-03-04T10:00:00Z")
        resp = await client.patch(
            f"{APPT}/{created['id']}", json={"date": None}, headers=employee_headers,
        )
        assert resp.status_code == 422
        assert "date" in resp.json()["errors"]

    async def test_delete(self, client, employee_headers):
        created = await _create(client, employee_headers, "Dentist", "2024-03-04T10:00:00Z")
        resp = await client.delete(f"{APPT}/{created['id']}", headers=employee_headers)
        assert resp.status_code == 200

        resp = await client.get(f"{APPT}/{created['id']}", headers=employee_headers)
        assert resp.status_code == 404

    async def test_other_users_appointments_invisible(self, client, employee_headers, hr_headers):
        created = await _create(client, employee_headers, "Private", "2024-03-04T10:00:00Z")

        resp = await client.get(APPT, headers=hr_headers)
        assert resp.json()["data"] == []

        for method in ("get", "delete"):
            resp = await getattr(client, method)(f"{APPT}/{created['id']}", headers=hr_headers)
            assert resp.status_code == 404
        resp = await client.patch(
            f"{APPT}/{created['id']}", json={"title": "Mine now"}, headers=hr_headers,
        )
        assert resp.status_code == 404

    async def test_unknown_id_404(self, client, employee_headers):
        resp = await client.get(f"{APPT}/{uuid.uuid4()}", headers=employee_headers)
        assert resp.status_code == 404

    async def test_requires_authentication(self, client):
        resp = await client.get(APPT)
        assert resp.status_code == 401
