"""Core HR Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response           → response bodies (read)
  - *Brief              → compact embedded representations
"""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from hrportal.common.constants import EmploymentStatus


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    """Payload for creating a department."""

    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    manager: Optional[str] = Field(None, max_length=150)


class DepartmentUpdate(BaseModel):
    """Partial update; only supplied fields are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    manager: Optional[str] = Field(None, max_length=150)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("Department name cannot be null.")
        return v


class DepartmentResponse(BaseModel):
    """Full department representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    manager: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    # Enriched by service layer
    employee_count: int = 0


class DepartmentBrief(BaseModel):
    """Minimal department info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for creating a new employee."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    position: str = Field(..., min_length=1, max_length=150)
    department_id: Optional[uuid.UUID] = None
    start_date: date
    phone: Optional[str] = Field(None, max_length=30)
    status: EmploymentStatus = EmploymentStatus.active


class EmployeeUpdate(BaseModel):
    """Partial update; only supplied fields are written."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    position: Optional[str] = Field(None, min_length=1, max_length=150)
    department_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    phone: Optional[str] = Field(None, max_length=30)
    status: Optional[EmploymentStatus] = None

    # department_id and phone may be cleared; the rest are NOT NULL columns.
    @field_validator("first_name", "last_name", "email", "position", "start_date", "status")
    @classmethod
    def required_not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null.")
        return v


class EmployeeResponse(BaseModel):
    """Employee representation with its department name joined in."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    position: str
    department_id: Optional[uuid.UUID] = None
    department_name: Optional[str] = None
    start_date: date
    phone: Optional[str] = None
    status: EmploymentStatus
    created_at: datetime
    updated_at: datetime

