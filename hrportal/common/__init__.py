"""Common module — shared utilities for the HR portal."""

from hrportal.common.audit import AuditTrail, create_audit_entry
from hrportal.common.constants import (
    DATE_FORMAT,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    EmploymentStatus,
    LeaveStatus,
    NotificationType,
    UserRole,
)
from hrportal.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InsufficientBalanceException,
    NotFoundException,
    PersistenceException,
    ValidationException,
    register_exception_handlers,
)
from hrportal.common.filters import apply_filters, apply_search
from hrportal.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "EmploymentStatus",
    "LeaveStatus",
    "NotificationType",
    "UserRole",
    "PERMISSIONS",
    "DATE_FORMAT",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InsufficientBalanceException",
    "NotFoundException",
    "PersistenceException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
