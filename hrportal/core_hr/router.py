"""Core HR router — Employee and Department API endpoints.

Routes:
    /employees              — List (search, department filter), create
    /employees/{id}         — Get, update, delete
    /departments            — List (with employee counts), create
    /departments/{id}       — Get, update, delete
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.dependencies import get_current_user, require_role
from hrportal.auth.models import User
from hrportal.common.constants import EmploymentStatus, UserRole
from hrportal.common.pagination import PaginationParams
from hrportal.core_hr.schemas import (
    DepartmentCreate,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeUpdate,
)
from hrportal.core_hr.service import DepartmentService, EmployeeService
from hrportal.database import get_db


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

employees_router = APIRouter(prefix="", tags=["employees"])
departments_router = APIRouter(prefix="", tags=["departments"])


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /employees: List employees ─────────────────────────────────

@employees_router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name, email, position or department"),
    department_id: Optional[uuid.UUID] = Query(None, description="Filter by department"),
    status: Optional[EmploymentStatus] = Query(None, description="Filter by employment status"),
):
    """List employees with pagination, search, and filtering."""
    items, meta = await EmployeeService.list_employees(
        db,
        pagination,
        search=search,
        department_id=department_id,
        status=status,
    )
    return {
        "data": [item.model_dump(mode="json") for item in items],
        "meta": meta.model_dump(),
    }


# ── POST /employees: Create employee ──────────────────────────────

@employees_router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    employee = await EmployeeService.create_employee(db, body, actor_id=current_user.id)
    return {
        "data": employee.model_dump(mode="json"),
        "message": "Employee created successfully.",
    }


# ── GET /employees/{id}: Employee detail ──────────────────────────

@employees_router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    employee = await EmployeeService.get_employee(db, employee_id)
    return {
        "data": employee.model_dump(mode="json"),
        "message": "Employee retrieved successfully.",
    }


# ── PATCH /employees/{id}: Partial update ─────────────────────────

@employees_router.patch("/{employee_id}")
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    employee = await EmployeeService.update_employee(
        db, employee_id, body, actor_id=current_user.id,
    )
    return {
        "data": employee.model_dump(mode="json"),
        "message": "Employee updated successfully.",
    }


# ── DELETE /employees/{id} ─────────────────────────────────────────

@employees_router.delete("/{employee_id}")
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    await EmployeeService.delete_employee(db, employee_id, actor_id=current_user.id)
    return {"message": "Employee deleted successfully."}


# ═════════════════════════════════════════════════════════════════════
# Department Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /departments: List departments ─────────────────────────────

@departments_router.get("")
async def list_departments(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List all departments with employee counts."""
    departments = await DepartmentService.list_departments(db)
    return {
        "data": [dept.model_dump(mode="json") for dept in departments],
        "message": f"Found {len(departments)} department(s).",
    }


# ── POST /departments: Create department ──────────────────────────

@departments_router.post("", status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    dept = await DepartmentService.create_department(db, body, actor_id=current_user.id)
    return {
        "data": dept.model_dump(mode="json"),
        "message": "Department created successfully.",
    }


# ── GET /departments/{id}: Department detail ──────────────────────

@departments_router.get("/{department_id}")
async def get_department(
    department_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    dept = await DepartmentService.get_department(db, department_id)
    return {
        "data": dept.model_dump(mode="json"),
        "message": "Department retrieved successfully.",
    }


# ── PATCH /departments/{id} ────────────────────────────────────────

@departments_router.patch("/{department_id}")
async def update_department(
    department_id: uuid.UUID,
    body: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    dept = await DepartmentService.update_department(
        db, department_id, body, actor_id=current_user.id,
    )
    return {
        "data": dept.model_dump(mode="json"),
        "message": "Department updated successfully.",
    }


# ── DELETE /departments/{id} ───────────────────────────────────────

@departments_router.delete("/{department_id}")
async def delete_department(
    department_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    await DepartmentService.delete_department(db, department_id, actor_id=current_user.id)
    return {"message": "Department deleted successfully."}
