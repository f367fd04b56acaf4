"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update   → request bodies (write)
  - *Out / *View        → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hrportal.common.constants import LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Leave Type
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    default_days: int = Field(0, ge=0, le=366)


class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    default_days: Optional[int] = Field(None, ge=0, le=366)

    @field_validator("name", "default_days")
    @classmethod
    def not_null(cls, v):
        # Omit the field to keep the stored value.
        if v is None:
            raise ValueError("Field cannot be null.")
        return v


class LeaveTypeOut(BaseModel):
    """Full leave type representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    default_days: int
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Leave Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceView(BaseModel):
    """Balance for a single leave type, with the type name and remaining days."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    leave_type_name: str = ""
    year: int
    total_entitlement: int
    days_used: int
    remaining: int


class BalanceProvisionRequest(BaseModel):
    """Create one balance row; entitlement defaults to the type's default_days."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int = Field(..., ge=1900, le=9999)
    total_entitlement: Optional[int] = Field(None, ge=0, le=366)


class YearProvisionRequest(BaseModel):
    """Create the missing balances for a year (optionally one employee only)."""

    year: int = Field(..., ge=1900, le=9999)
    employee_id: Optional[uuid.UUID] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Request
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request.

    Dates are validated by the service so that an inverted range is
    reported the same way from every entry point.
    """

    employee_id: Optional[uuid.UUID] = Field(
        None, description="Defaults to the caller's own employee record"
    )
    leave_type_id: Optional[uuid.UUID] = None
    leave_type_name: Optional[str] = Field(
        None, description="Alternative to leave_type_id; exact name match"
    )
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)


class LeaveTransitionRequest(BaseModel):
    """Move a leave request to a new status."""

    status: LeaveStatus
    reason: Optional[str] = Field(None, max_length=1000)


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    employee_position: Optional[str] = None
    leave_type_id: uuid.UUID
    leave_type_name: str
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    status: LeaveStatus
    applied_date: date
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
