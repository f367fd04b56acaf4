"""Auth router — registration, login, logout, current user profile."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.dependencies import get_current_user, get_optional_user
from hrportal.auth.models import User
from hrportal.auth.schemas import (
    LoginRequest,
    MeResponse,
    TokenResponse,
    UserCreate,
    UserInfo,
)
from hrportal.auth.service import (
    authenticate,
    create_session,
    hash_token,
    register_user,
    revoke_session,
)
from hrportal.common.audit import create_audit_entry
from hrportal.common.constants import PERMISSIONS
from hrportal.common.rate_limit import LOGIN_RATE_LIMIT, limiter
from hrportal.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /register: Create an account ─────────────────────────────

@router.post("/register", status_code=201)
async def register(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    user = await register_user(db, body, actor=actor)

    await create_audit_entry(
        db,
        action="create",
        entity_type="user",
        entity_id=user.id,
        actor_id=actor.id if actor else user.id,
        new_values={"username": user.username, "role": user.role.value},
    )

    return {
        "data": UserInfo.model_validate(user).model_dump(mode="json"),
        "message": "Account created.",
    }


# ── POST /login: Exchange credentials for a token ─────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.username, body.password)

    ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    access_token, expires_in = await create_session(db, user, ip, user_agent)

    await create_audit_entry(
        db,
        action="login",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        new_values={"ip": ip, "user_agent": user_agent},
        ip_address=ip,
        user_agent=user_agent,
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserInfo.model_validate(user),
    )


# ── POST /logout: Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    await revoke_session(db, hash_token(token))

    await create_audit_entry(
        db,
        action="logout",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return {"message": "Logged out successfully"}


# ── GET /me: Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    employee = user.employee
    return MeResponse(
        id=user.id,
        username=user.username,
        role=user.role,
        employee_id=user.employee_id,
        is_active=user.is_active,
        permissions=PERMISSIONS.get(user.role, []),
        display_name=employee.full_name if employee else None,
        position=employee.position if employee else None,
        department=employee.department.name if employee and employee.department else None,
    )
