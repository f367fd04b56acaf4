"""Auth service — password hashing, JWT management, session lifecycle."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi.exceptions import HTTPException
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.models import User, UserSession
from hrportal.auth.schemas import UserCreate
from hrportal.common.constants import UserRole
from hrportal.common.exceptions import ConflictError, ForbiddenException, NotFoundException
from hrportal.config import settings
from hrportal.core_hr.models import Employee

logger = logging.getLogger(__name__)

password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    return password_context.verify(password, password_hash)


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(user_id: uuid.UUID, role: UserRole) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Users ───────────────────────────────────────────────────────────

async def count_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


async def register_user(
    db: AsyncSession,
    data: UserCreate,
    *,
    actor: Optional[User] = None,
) -> User:
    """Create a login account.

    The very first account may self-register and always becomes a
    system_admin. After that only a system_admin may create accounts.
    """
    existing_users = await count_users(db)
    role = data.role
    if existing_users == 0:
        role = UserRole.system_admin
    elif actor is None or actor.role != UserRole.system_admin:
        raise ForbiddenException("Only a system administrator can create accounts.")

    taken = await db.execute(select(User.id).where(User.username == data.username))
    if taken.scalar() is not None:
        raise ConflictError("username", data.username)

    if data.employee_id is not None:
        found = await db.execute(select(Employee.id).where(Employee.id == data.employee_id))
        if found.scalar() is None:
            raise NotFoundException("Employee", str(data.employee_id))
        linked = await db.execute(select(User.id).where(User.employee_id == data.employee_id))
        if linked.scalar() is not None:
            raise ConflictError("employee_id", str(data.employee_id))

    user = User(
        username=data.username,
        password_hash=hash_password(data.password),
        role=role,
        employee_id=data.employee_id,
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %s with role %s", user.username, role.value)
    return user


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """Return the active user matching the credentials, or raise 401."""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt for username %r", username)
        raise HTTPException(status_code=401, detail="Invalid username or password.")
    return user


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> tuple[str, int]:
    """Issue an access token and persist its session. Returns (token, expires_in)."""
    access_token, expires_in = create_access_token(user.id, user.role)

    session = UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        ip_address=ip,
        user_agent=user_agent,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )
    db.add(session)
    await db.flush()

    return access_token, expires_in


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark a session as revoked by its token hash."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()
