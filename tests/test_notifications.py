"""Notification tests — inbox listing, read state, ownership and the
leave-workflow dispatchers.
"""

from __future__ import annotations

import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from hrportal.common.constants import NotificationType, UserRole
from hrportal.notifications.models import Notification
from hrportal.notifications.service import (
    NotificationService,
    notify_leave_approved,
    notify_leave_rejected,
    notify_leave_submitted,
)

NOTIF = "/api/v1/notifications"


@pytest.fixture
def seed_notifications(db):
    """Insert *count* notifications for a recipient (committed)."""

    async def _seed(recipient_id: uuid.UUID, count: int = 3, **fields) -> list[Notification]:
        created = []
        for i in range(count):
            created.append(
                await NotificationService.create_notification(
                    db,
                    recipient_id=recipient_id,
                    title=fields.get("title", f"Notice {i}"),
                    message=fields.get("message", "Something happened."),
                    type=fields.get("type", NotificationType.info),
                )
            )
        await db.commit()
        return created

    return _seed


def _leave_request(employee_id: uuid.UUID) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        employee_id=employee_id,
        employee_name="Ada Lovelace",
        leave_type_name="Annual Leave",
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 5),
        total_days=5,
    )


# ═════════════════════════════════════════════════════════════════════
# Inbox API
# ═════════════════════════════════════════════════════════════════════


class TestNotificationInbox:

    async def test_list_only_own(self, client, employee_user, hr_admin, seed_notifications):
        user, headers = employee_user
        await seed_notifications(user.id, 2)
        await seed_notifications(hr_admin[0].id, 4)

        resp = await client.get(NOTIF, headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["data"]) == 2
        assert body["meta"]["total"] == 2
        assert body["meta"]["unread"] == 2

    async def test_filter_by_type(self, client, employee_user, seed_notifications):
        user, headers = employee_user
        await seed_notifications(user.id, 1, type=NotificationType.alert)
        await seed_notifications(user.id, 2)

        resp = await client.get(NOTIF, params={"type": "alert"}, headers=headers)
        assert [n["type"] for n in resp.json()["data"]] == ["alert"]

    async def test_pagination(self, client, employee_user, seed_notifications):
        user, headers = employee_user
        await seed_notifications(user.id, 5)

        resp = await client.get(NOTIF, params={"page_size": 2, "page": 3}, headers=headers)
        body = resp.json()
        assert len(body["data"]) == 1
        assert body["meta"]["total_pages"] == 3

    async def test_unread_count(self, client, employee_user, seed_notifications):
        user, headers = employee_user
        await seed_notifications(user.id, 3)

        resp = await client.get(f"{NOTIF}/unread-count", headers=headers)
        assert resp.json()["data"]["count"] == 3

    async def test_mark_read(self, client, employee_user, seed_notifications):
        user, headers = employee_user
        notes = await seed_notifications(user.id, 2)

        resp = await client.put(f"{NOTIF}/{notes[0].id}/read", headers=headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["is_read"] is True
        assert data["read_at"] is not None

        resp = await client.get(NOTIF, params={"is_read": "false"}, headers=headers)
        assert [n["id"] for n in resp.json()["data"]] == [str(notes[1].id)]

    async def test_mark_someone_elses_forbidden(
        self, client, employee_headers, hr_admin, seed_notifications,
    ):
        notes = await seed_notifications(hr_admin[0].id, 1)
        resp = await client.put(f"{NOTIF}/{notes[0].id}/read", headers=employee_headers)
        assert resp.status_code == 403

    async def test_mark_unknown_404(self, client, employee_headers):
        resp = await client.put(f"{NOTIF}/{uuid.uuid4()}/read", headers=employee_headers)
        assert resp.status_code == 404

    async def test_mark_all_read(self, client, employee_user, seed_notifications):
        user, headers = employee_user
        await seed_notifications(user.id, 3)

        resp = await client.put(f"{NOTIF}/read-all", headers=headers)
        assert resp.json()["data"]["count"] == 3

        resp = await client.get(f"{NOTIF}/unread-count", headers=headers)
        assert resp.json()["data"]["count"] == 0


# ═════════════════════════════════════════════════════════════════════
# Leave dispatchers
# ═════════════════════════════════════════════════════════════════════


class TestLeaveDispatchers:

    async def test_submitted_goes_to_active_admins(self, db, make_user, employee):
        hr, _ = await make_user(UserRole.hr_admin)
        sysadmin, _ = await make_user(UserRole.system_admin)
        await make_user(UserRole.manager)

        sent = await notify_leave_submitted(db, _leave_request(employee.id))
        assert sent == 2

        recipients = set(
            (await db.execute(select(Notification.recipient_id))).scalars().all()
        )
        assert recipients == {hr.id, sysadmin.id}

    async def test_approved_goes_to_employee_account(self, db, employee, employee_user):
        user, _ = employee_user
        sent = await notify_leave_approved(db, _leave_request(employee.id))
        assert sent == 1

        note = (await db.execute(select(Notification))).scalars().one()
        assert note.recipient_id == user.id
        assert note.type == NotificationType.approval
        assert note.entity_type == "leave_request"

    async def test_rejected_includes_reason(self, db, employee, employee_user):
        await notify_leave_rejected(db, _leave_request(employee.id), "Peak season")
        note = (await db.execute(select(Notification))).scalars().one()
        assert note.message.endswith("Reason: Peak season")

    async def test_employee_without_account_gets_nothing(self, db, employee):
        assert await notify_leave_approved(db, _leave_request(employee.id)) == 0
