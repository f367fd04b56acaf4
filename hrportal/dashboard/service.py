"""Dashboard service — read-only aggregation queries across HR modules.

Counts are computed with COUNT/GROUP BY at the database level.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.common.constants import EmploymentStatus, LeaveStatus
from hrportal.core_hr.models import Department, Employee
from hrportal.dashboard.schemas import DashboardMetricsResponse, DepartmentHeadcountItem
from hrportal.leave.models import LeaveRequest

UNASSIGNED_DEPARTMENT = "Unassigned"


class DashboardService:
    """Async dashboard aggregation queries."""

    @staticmethod
    async def get_metrics(db: AsyncSession) -> DashboardMetricsResponse:
        total_employees = (
            await db.execute(select(func.count(Employee.id)))
        ).scalar_one()
        department_count = (
            await db.execute(select(func.count(Department.id)))
        ).scalar_one()

        # Leave requests by status; statuses with no rows report 0
        status_rows = (
            await db.execute(
                select(LeaveRequest.status, func.count(LeaveRequest.id))
                .group_by(LeaveRequest.status)
            )
        ).all()
        by_status = {status.value: 0 for status in LeaveStatus}
        for status, count in status_rows:
            by_status[LeaveStatus(status).value] = count

        # Head count per department (active employees only)
        headcount_rows = (
            await db.execute(
                select(
                    Employee.department_id,
                    Department.name,
                    func.count(Employee.id).label("cnt"),
                )
                .outerjoin(Department, Employee.department_id == Department.id)
                .where(Employee.status == EmploymentStatus.active)
                .group_by(Employee.department_id, Department.name)
                .order_by(func.count(Employee.id).desc(), Department.name)
            )
        ).all()
        headcount = [
            DepartmentHeadcountItem(
                department_id=dept_id,
                department_name=name or UNASSIGNED_DEPARTMENT,
                count=cnt,
            )
            for dept_id, name, cnt in headcount_rows
        ]

        return DashboardMetricsResponse(
            total_employees=total_employees,
            active_departments=department_count,
            pending_requests=by_status[LeaveStatus.pending.value],
            leave_requests_by_status=by_status,
            department_headcount=headcount,
        )
