"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrportal.common.constants import UserRole


# ── Requests ────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.employee
    employee_id: Optional[uuid.UUID] = None


class LoginRequest(BaseModel):
    username: str
    password: str


# ── Responses ───────────────────────────────────────────────────────

class UserInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    role: UserRole
    employee_id: Optional[uuid.UUID] = None
    is_active: bool = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class MeResponse(UserInfo):
    permissions: list[str]
    display_name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
