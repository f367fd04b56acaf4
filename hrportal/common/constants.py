"""Enums and constants for the HR portal — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Employee / Core HR ──────────────────────────────────────────────

class EmploymentStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    on_leave = "on_leave"
    terminated = "terminated"


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr_admin = "hr_admin"
    system_admin = "system_admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    alert = "alert"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "profile:read_own",
        "leave:request",
        "leave:read_own",
        "appointment:manage_own",
        "notification:read_own",
    ],
    UserRole.manager: [
        "profile:read_own",
        "profile:read_all",
        "leave:request",
        "leave:read_own",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "appointment:manage_own",
        "notification:read_own",
        "dashboard:read",
    ],
    UserRole.hr_admin: [
        "profile:read_all",
        "profile:create",
        "profile:update",
        "profile:delete",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "leave:cancel",
        "leave:configure",
        "leave:delete",
        "appointment:manage_own",
        "notification:read_own",
        "dashboard:read",
        "audit:read",
    ],
    UserRole.system_admin: [
        "profile:read_all",
        "profile:create",
        "profile:update",
        "profile:delete",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "leave:cancel",
        "leave:configure",
        "leave:delete",
        "appointment:manage_own",
        "notification:read_own",
        "dashboard:read",
        "audit:read",
        "system:manage_users",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%Y-%m-%d"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
