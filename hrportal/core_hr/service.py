"""Core HR service layer — async CRUD for employees and departments.

Uses:
  - ``paginate()`` from hrportal.common.pagination
  - ``apply_filters / apply_search`` from hrportal.common.filters
  - ``create_audit_entry`` from hrportal.common.audit
  - ``NotFoundException / ConflictError`` from hrportal.common.exceptions
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrportal.common.audit import create_audit_entry, utcnow
from hrportal.common.constants import EmploymentStatus
from hrportal.common.exceptions import ConflictError, NotFoundException
from hrportal.common.filters import apply_filters, apply_search
from hrportal.common.pagination import PaginationMeta, PaginationParams, paginate
from hrportal.core_hr.models import Department, Employee
from hrportal.core_hr.schemas import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
)
from hrportal.leave.models import LeaveRequest


def _audit_value(value: Any) -> Any:
    """Make a column value JSON-safe for the audit trail."""
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees."""

    @staticmethod
    def _build_response(employee: Employee) -> EmployeeResponse:
        out = EmployeeResponse.model_validate(employee)
        out.department_name = employee.department.name if employee.department else None
        return out

    @staticmethod
    async def _load(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        result = await db.execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .options(selectinload(Employee.department))
            .execution_options(populate_existing=True)
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def _ensure_department(db: AsyncSession, department_id: Optional[uuid.UUID]) -> None:
        if department_id is None:
            return
        found = await db.execute(select(Department.id).where(Department.id == department_id))
        if found.scalar() is None:
            raise NotFoundException("Department", str(department_id))

    @staticmethod
    async def _ensure_email_free(
        db: AsyncSession,
        email: str,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Employee.id).where(func.lower(Employee.email) == email.lower())
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        if (await db.execute(query)).scalar() is not None:
            raise ConflictError("email", email)

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[EmploymentStatus] = None,
    ) -> tuple[list[EmployeeResponse], PaginationMeta]:
        """Return a paginated, filtered, searchable employee list."""

        query = (
            select(Employee)
            .outerjoin(Department, Employee.department_id == Department.id)
            .options(selectinload(Employee.department))
            .order_by(Employee.last_name, Employee.first_name)
        )

        filters: dict[str, Any] = {
            "department_id": department_id,
            "status": status,
        }
        query = apply_filters(query, Employee, filters)

        # Case-insensitive search across name / email / position / department
        query = apply_search(
            query,
            search,
            [
                Employee.first_name,
                Employee.last_name,
                Employee.email,
                Employee.position,
                Department.name,
            ],
        )

        rows, meta = await paginate(db, query, pagination, model=Employee)
        return [EmployeeService._build_response(emp) for emp in rows], meta

    # ── Get single ──────────────────────────────────────────────────

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> EmployeeResponse:
        employee = await EmployeeService._load(db, employee_id)
        return EmployeeService._build_response(employee)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> EmployeeResponse:
        """Create a new employee record."""

        await EmployeeService._ensure_department(db, data.department_id)
        await EmployeeService._ensure_email_free(db, data.email)

        employee = Employee(**data.model_dump())
        db.add(employee)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("email", data.email)

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )

        employee = await EmployeeService._load(db, employee.id)
        return EmployeeService._build_response(employee)

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> EmployeeResponse:
        """Partial-update an existing employee."""

        employee = await EmployeeService._load(db, employee_id)

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return EmployeeService._build_response(employee)

        if "department_id" in changes:
            await EmployeeService._ensure_department(db, changes["department_id"])
        if changes.get("email"):
            await EmployeeService._ensure_email_free(db, changes["email"], exclude_id=employee.id)

        old_values: dict[str, Any] = {}
        for field, value in changes.items():
            old_values[field] = _audit_value(getattr(employee, field, None))
            setattr(employee, field, value)
        employee.updated_at = utcnow()

        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("email", changes.get("email", ""))

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )

        employee = await EmployeeService._load(db, employee.id)
        return EmployeeService._build_response(employee)

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete an employee; refused while leave requests reference them.

        Leave balances go with the employee.
        """

        employee = await EmployeeService._load(db, employee_id)

        ref_count = (
            await db.execute(
                select(func.count())
                .select_from(LeaveRequest)
                .where(LeaveRequest.employee_id == employee_id)
            )
        ).scalar_one()
        if ref_count:
            raise ConflictError(
                "employee_id",
                str(employee_id),
                detail=f"Employee has {ref_count} leave request(s) and cannot be deleted.",
            )

        await db.delete(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="employee",
            entity_id=employee_id,
            actor_id=actor_id,
            old_values={"email": employee.email, "name": employee.full_name},
        )


# ═════════════════════════════════════════════════════════════════════
# DepartmentService
# ═════════════════════════════════════════════════════════════════════


class DepartmentService:
    """Async CRUD operations for departments."""

    @staticmethod
    async def _employee_counts(db: AsyncSession) -> dict[uuid.UUID, int]:
        result = await db.execute(
            select(
                Employee.department_id,
                func.count(Employee.id).label("cnt"),
            )
            .where(Employee.status == EmploymentStatus.active)
            .group_by(Employee.department_id)
        )
        return {row[0]: row[1] for row in result.all() if row[0]}

    @staticmethod
    async def _load(db: AsyncSession, department_id: uuid.UUID) -> Department:
        result = await db.execute(select(Department).where(Department.id == department_id))
        dept = result.scalars().first()
        if dept is None:
            raise NotFoundException("Department", str(department_id))
        return dept

    @staticmethod
    async def _ensure_name_free(
        db: AsyncSession,
        name: str,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Department.id).where(Department.name == name)
        if exclude_id is not None:
            query = query.where(Department.id != exclude_id)
        if (await db.execute(query)).scalar() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def list_departments(db: AsyncSession) -> list[DepartmentResponse]:
        """Return all departments with their active employee count."""

        result = await db.execute(select(Department).order_by(Department.name))
        departments = result.scalars().all()
        emp_counts = await DepartmentService._employee_counts(db)

        responses: list[DepartmentResponse] = []
        for dept in departments:
            resp = DepartmentResponse.model_validate(dept)
            resp.employee_count = emp_counts.get(dept.id, 0)
            responses.append(resp)
        return responses

    @staticmethod
    async def get_department(
        db: AsyncSession,
        department_id: uuid.UUID,
    ) -> DepartmentResponse:
        dept = await DepartmentService._load(db, department_id)

        count_result = await db.execute(
            select(func.count())
            .select_from(Employee)
            .where(
                Employee.department_id == department_id,
                Employee.status == EmploymentStatus.active,
            )
        )
        resp = DepartmentResponse.model_validate(dept)
        resp.employee_count = count_result.scalar() or 0
        return resp

    @staticmethod
    async def create_department(
        db: AsyncSession,
        data: DepartmentCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> DepartmentResponse:
        await DepartmentService._ensure_name_free(db, data.name)

        dept = Department(**data.model_dump())
        db.add(dept)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("name", data.name)

        await create_audit_entry(
            db,
            action="create",
            entity_type="department",
            entity_id=dept.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return DepartmentResponse.model_validate(dept)

    @staticmethod
    async def update_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        data: DepartmentUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> DepartmentResponse:
        dept = await DepartmentService._load(db, department_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("name"):
            await DepartmentService._ensure_name_free(db, changes["name"], exclude_id=dept.id)

        old_values = {field: getattr(dept, field) for field in changes}
        for field, value in changes.items():
            setattr(dept, field, value)
        dept.updated_at = utcnow()
        await db.flush()

        if changes:
            await create_audit_entry(
                db,
                action="update",
                entity_type="department",
                entity_id=dept.id,
                actor_id=actor_id,
                old_values=old_values,
                new_values=changes,
            )
        return await DepartmentService.get_department(db, dept.id)

    @staticmethod
    async def delete_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete a department; refused while employees reference it."""

        dept = await DepartmentService._load(db, department_id)

        member_count = (
            await db.execute(
                select(func.count())
                .select_from(Employee)
                .where(Employee.department_id == department_id)
            )
        ).scalar_one()
        if member_count:
            raise ConflictError(
                "department_id",
                str(department_id),
                detail=f"Department still has {member_count} employee(s).",
            )

        await db.delete(dept)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="department",
            entity_id=department_id,
            actor_id=actor_id,
            old_values={"name": dept.name},
        )
