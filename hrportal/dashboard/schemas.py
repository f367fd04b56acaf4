"""Dashboard Pydantic v2 schemas — response model for the metrics endpoint."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class DepartmentHeadcountItem(BaseModel):
    """Active employee count for a single department."""

    department_id: Optional[uuid.UUID] = None
    department_name: str
    count: int = 0


class DashboardMetricsResponse(BaseModel):
    """KPI cards and chart data for the HR dashboard."""

    total_employees: int = Field(..., description="All employee records")
    active_departments: int = Field(..., description="Number of departments")
    pending_requests: int = Field(..., description="Leave requests with status=pending")
    leave_requests_by_status: dict[str, int] = Field(
        default_factory=dict,
        description="Leave request count per status (every status present)",
    )
    department_headcount: list[DepartmentHeadcountItem] = Field(
        default_factory=list,
        description="Active employees per department, largest first",
    )
