"""Auth test suite — registration bootstrap, login, sessions, RBAC, rate limit."""

from __future__ import annotations

import uuid

import pytest
from jose import jwt
from sqlalchemy import select

from hrportal.auth.dependencies import has_role
from hrportal.auth.models import User, UserSession
from hrportal.auth.service import hash_password, hash_token, verify_password
from hrportal.common.constants import UserRole
from hrportal.config import settings
from tests.conftest import create_access_token

AUTH = "/api/v1/auth"


# ═════════════════════════════════════════════════════════════════════
# Password hashing / role hierarchy
# ═════════════════════════════════════════════════════════════════════


class TestPasswordHashing:

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("correct-horse-battery")
        assert hashed != "correct-horse-battery"
        assert verify_password("correct-horse-battery", hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-horse-battery")
        assert not verify_password("incorrect-horse", hashed)


class TestRoleHierarchy:

    @pytest.mark.parametrize(
        "role, required, expected",
        [
            (UserRole.system_admin, UserRole.hr_admin, True),
            (UserRole.hr_admin, UserRole.manager, True),
            (UserRole.manager, UserRole.employee, True),
            (UserRole.manager, UserRole.hr_admin, False),
            (UserRole.employee, UserRole.manager, False),
        ],
    )
    def test_has_role(self, role, required, expected):
        assert has_role(User(username="x", password_hash="x", role=role), required) is expected


# ═════════════════════════════════════════════════════════════════════
# Registration
# ═════════════════════════════════════════════════════════════════════


class TestRegistration:

    async def test_first_account_becomes_system_admin(self, client):
        resp = await client.post(
            f"{AUTH}/register",
            json={"username": "founder", "password": "s3cret-pass", "role": "employee"},
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["role"] == "system_admin"

    async def test_anonymous_registration_closed_after_bootstrap(self, client, hr_admin):
        resp = await client.post(
            f"{AUTH}/register", json={"username": "intruder", "password": "s3cret-pass"},
        )
        assert resp.status_code == 403

    async def test_hr_admin_cannot_create_accounts(self, client, hr_headers):
        resp = await client.post(
            f"{AUTH}/register",
            json={"username": "newbie", "password": "s3cret-pass"},
            headers=hr_headers,
        )
        assert resp.status_code == 403

    async def test_system_admin_creates_linked_account(self, client, make_user, employee):
        _, headers = await make_user(UserRole.system_admin)
        resp = await client.post(
            f"{AUTH}/register",
            json={
                "username": "ada",
                "password": "s3cret-pass",
                "role": "employee",
                "employee_id": str(employee.id),
            },
            headers=headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["role"] == "employee"
        assert data["employee_id"] == str(employee.id)

    async def test_duplicate_username_conflicts(self, client, make_user):
        _, headers = await make_user(UserRole.system_admin, username="root")
        resp = await client.post(
            f"{AUTH}/register",
            json={"username": "root", "password": "s3cret-pass"},
            headers=headers,
        )
        assert resp.status_code == 409

    async def test_employee_linked_twice_conflicts(self, client, make_user, employee_user):
        _, headers = await make_user(UserRole.system_admin)
        resp = await client.post(
            f"{AUTH}/register",
            json={
                "username": "second-login",
                "password": "s3cret-pass",
                "employee_id": str(employee_user[0].employee_id),
            },
            headers=headers,
        )
        assert resp.status_code == 409

    async def test_short_password_rejected(self, client):
        resp = await client.post(
            f"{AUTH}/register", json={"username": "founder", "password": "short"},
        )
        assert resp.status_code == 422
        assert "password" in resp.json()["errors"]


# ═════════════════════════════════════════════════════════════════════
# Login / logout / sessions
# ═════════════════════════════════════════════════════════════════════


class TestLogin:

    async def test_login_returns_token_and_user(self, client, db, make_user):
        user, _ = await make_user(UserRole.manager, username="grace")
        resp = await client.post(
            f"{AUTH}/login", json={"username": "grace", "password": "correct-horse-battery"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == settings.JWT_EXPIRY_HOURS * 3600
        assert body["user"]["role"] == "manager"

        claims = jwt.decode(
            body["access_token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM],
        )
        assert claims["sub"] == str(user.id)
        assert claims["type"] == "access"

        session = (
            await db.execute(
                select(UserSession).where(
                    UserSession.token_hash == hash_token(body["access_token"]),
                )
            )
        ).scalars().one()
        assert session.ip_address == "127.0.0.1"

    async def test_wrong_password_401(self, client, make_user):
        await make_user(username="grace")
        resp = await client.post(
            f"{AUTH}/login", json={"username": "grace", "password": "nope-nope-nope"},
        )
        assert resp.status_code == 401

    async def test_unknown_user_401(self, client):
        resp = await client.post(
            f"{AUTH}/login", json={"username": "ghost", "password": "whatever1"},
        )
        assert resp.status_code == 401

    async def test_logout_revokes_session(self, client, employee_headers):
        resp = await client.post(f"{AUTH}/logout", headers=employee_headers)
        assert resp.status_code == 200

        resp = await client.get(f"{AUTH}/me", headers=employee_headers)
        assert resp.status_code == 401

    async def test_login_rate_limited(self, client, make_user):
        await make_user(username="grace")
        codes = []
        for _ in range(11):
            resp = await client.post(
                f"{AUTH}/login", json={"username": "grace", "password": "wrong-password"},
            )
            codes.append(resp.status_code)
        assert codes[:10] == [401] * 10
        assert codes[10] == 429


# ═════════════════════════════════════════════════════════════════════
# Token validation / current user
# ═════════════════════════════════════════════════════════════════════


class TestCurrentUser:

    async def test_me_includes_employee_profile(self, client, employee_headers):
        resp = await client.get(f"{AUTH}/me", headers=employee_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "employee"
        assert body["display_name"] == "Ada Lovelace"
        assert body["department"] == "Engineering"
        assert "leave:request" in body["permissions"]

    async def test_missing_header_401(self, client):
        resp = await client.get(f"{AUTH}/me")
        assert resp.status_code == 401

    async def test_token_without_session_401(self, client, hr_admin):
        """A correctly signed token is useless without its session row."""
        user, _ = hr_admin
        token = create_access_token(user.id, UserRole.hr_admin)
        resp = await client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_expired_token_401(self, client):
        token = create_access_token(uuid.uuid4(), expired=True)
        resp = await client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired."

    async def test_wrong_token_type_401(self, client):
        token = create_access_token(uuid.uuid4(), token_type="refresh")
        resp = await client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_deactivated_user_401(self, client, db, make_user):
        user, headers = await make_user(UserRole.manager)
        user.is_active = False
        await db.commit()

        resp = await client.get(f"{AUTH}/me", headers=headers)
        assert resp.status_code == 401
