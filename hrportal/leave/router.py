"""Leave router — leave types, requests and their transitions, balances.

All endpoints require authentication. Employees work only with their own
requests and balances; managers and above may review any request; leave
type administration and provisioning are limited to HR.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.dependencies import get_current_user, has_role, require_role
from hrportal.auth.models import User
from hrportal.common.constants import LeaveStatus, UserRole
from hrportal.common.exceptions import ForbiddenException, NotFoundException
from hrportal.common.pagination import PaginationParams
from hrportal.database import get_db
from hrportal.leave.schemas import (
    BalanceProvisionRequest,
    LeaveRequestCreate,
    LeaveTransitionRequest,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
    YearProvisionRequest,
)
from hrportal.leave.service import LeaveBalanceService, LeaveService, LeaveTypeService

router = APIRouter(prefix="", tags=["leave"])


def _is_reviewer(user: User) -> bool:
    return has_role(user, UserRole.manager)


def _own_employee_id(user: User) -> uuid.UUID:
    """The caller's employee record; a user without one has no leave data."""
    if user.employee_id is None:
        raise ForbiddenException("Your account is not linked to an employee record.")
    return user.employee_id


# ═════════════════════════════════════════════════════════════════════
# Leave types
# ═════════════════════════════════════════════════════════════════════


# ── GET /types ──────────────────────────────────────────────────────

@router.get("/types")
async def list_leave_types(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All leave types, ordered by name."""
    types = await LeaveTypeService.list_leave_types(db)
    return {"data": [lt.model_dump(mode="json") for lt in types]}


# ── POST /types ─────────────────────────────────────────────────────

@router.post("/types", status_code=201)
async def create_leave_type(
    body: LeaveTypeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    leave_type = await LeaveTypeService.create_leave_type(db, body, actor_id=current_user.id)
    return {
        "data": leave_type.model_dump(mode="json"),
        "message": "Leave type created successfully.",
    }


# ── GET /types/{id} ─────────────────────────────────────────────────

@router.get("/types/{leave_type_id}")
async def get_leave_type(
    leave_type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    leave_type = await LeaveTypeService.get_leave_type(db, leave_type_id)
    return {"data": LeaveTypeOut.model_validate(leave_type).model_dump(mode="json")}


# ── PATCH /types/{id} ───────────────────────────────────────────────

@router.patch("/types/{leave_type_id}")
async def update_leave_type(
    leave_type_id: uuid.UUID,
    body: LeaveTypeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    leave_type = await LeaveTypeService.update_leave_type(
        db, leave_type_id, body, actor_id=current_user.id,
    )
    return {
        "data": leave_type.model_dump(mode="json"),
        "message": "Leave type updated successfully.",
    }


# ── DELETE /types/{id} ──────────────────────────────────────────────

@router.delete("/types/{leave_type_id}")
async def delete_leave_type(
    leave_type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    """Delete a leave type. Refused (409) while requests or balances use it."""
    await LeaveTypeService.delete_leave_type(db, leave_type_id, actor_id=current_user.id)
    return {"message": "Leave type deleted successfully."}


# ═════════════════════════════════════════════════════════════════════
# Leave requests
# ═════════════════════════════════════════════════════════════════════


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests")
async def list_leave_requests(
    employee_id: Optional[uuid.UUID] = Query(None, description="Filter by employee"),
    status: Optional[LeaveStatus] = Query(None, description="Filter by status"),
    leave_type_id: Optional[uuid.UUID] = Query(None, description="Filter by leave type"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List leave requests, newest first. Employees only see their own."""
    if not _is_reviewer(current_user):
        own_id = _own_employee_id(current_user)
        if employee_id is not None and employee_id != own_id:
            raise ForbiddenException("You can only view your own leave requests.")
        employee_id = own_id

    items, meta = await LeaveService.list_leave_requests(
        db,
        pagination,
        employee_id=employee_id,
        status=status,
        leave_type_id=leave_type_id,
    )
    return {
        "data": [item.model_dump(mode="json") for item in items],
        "meta": meta.model_dump(),
    }


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", status_code=201)
async def submit_leave_request(
    body: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Submit a leave request (status ``pending``).

    ``employee_id`` defaults to the caller's own record. Only reviewers may
    submit on behalf of someone else.
    """
    if body.employee_id is None and current_user.employee_id is not None:
        body.employee_id = current_user.employee_id
    if (
        body.employee_id is not None
        and body.employee_id != current_user.employee_id
        and not _is_reviewer(current_user)
    ):
        raise ForbiddenException("You can only submit leave requests for yourself.")

    leave_request = await LeaveService.submit_leave_request(
        db, body, actor_id=current_user.id,
    )
    return {
        "data": leave_request.model_dump(mode="json"),
        "message": "Leave request submitted successfully.",
    }


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}")
async def get_leave_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    leave_request = await LeaveService.get_leave_request(db, request_id)
    if not _is_reviewer(current_user) and leave_request.employee_id != current_user.employee_id:
        # Other employees' requests are indistinguishable from missing ones
        raise NotFoundException("LeaveRequest", str(request_id))
    return {"data": leave_request.model_dump(mode="json")}


# ── POST /requests/{id}/transition ──────────────────────────────────

@router.post("/requests/{request_id}/transition")
async def transition_leave_request(
    request_id: uuid.UUID,
    body: LeaveTransitionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Change a request's status, debiting or crediting the leave balance.

    Reviewers may apply any transition. Employees may only cancel their own
    requests.
    """
    if not _is_reviewer(current_user):
        leave_request = await LeaveService.get_leave_request(db, request_id)
        if leave_request.employee_id != current_user.employee_id:
            raise NotFoundException("LeaveRequest", str(request_id))
        if body.status != LeaveStatus.cancelled:
            raise ForbiddenException("You can only cancel your own leave requests.")

    leave_request = await LeaveService.transition_leave_request(
        db,
        request_id,
        body.status,
        actor_id=current_user.id,
        reason=body.reason,
    )
    return {
        "data": leave_request.model_dump(mode="json"),
        "message": f"Leave request {leave_request.status.value}.",
    }


# ── DELETE /requests/{id} ───────────────────────────────────────────

@router.delete("/requests/{request_id}")
async def delete_leave_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    """Delete a request record. Leave balances are not changed."""
    await LeaveService.delete_leave_request(db, request_id, actor_id=current_user.id)
    return {"message": "Leave request deleted successfully."}


# ═════════════════════════════════════════════════════════════════════
# Balances
# ═════════════════════════════════════════════════════════════════════


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances")
async def get_balances(
    employee_id: Optional[uuid.UUID] = Query(None, description="Defaults to the caller"),
    year: Optional[int] = Query(None, ge=1900, le=9999, description="Defaults to the current year"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Balances for one employee and year, with leave type names and remaining days."""
    if employee_id is None:
        employee_id = _own_employee_id(current_user)
    elif employee_id != current_user.employee_id and not _is_reviewer(current_user):
        raise ForbiddenException("You can only view your own leave balances.")

    balances = await LeaveBalanceService.get_balances(
        db, employee_id, year or date.today().year,
    )
    return {"data": [b.model_dump(mode="json") for b in balances]}


# ── POST /balances/provision ────────────────────────────────────────

@router.post("/balances/provision", status_code=201)
async def provision_balance(
    body: BalanceProvisionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    balance = await LeaveBalanceService.provision_balance(
        db,
        body.employee_id,
        body.leave_type_id,
        body.year,
        total_entitlement=body.total_entitlement,
        actor_id=current_user.id,
    )
    return {
        "data": balance.model_dump(mode="json"),
        "message": "Leave balance provisioned successfully.",
    }


# ── POST /balances/provision-year ───────────────────────────────────

@router.post("/balances/provision-year")
async def provision_year(
    body: YearProvisionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr_admin)),
):
    """Create the missing balances for a year from each leave type's default."""
    created = await LeaveBalanceService.provision_year(
        db, body.year, employee_id=body.employee_id, actor_id=current_user.id,
    )
    return {
        "data": {"year": body.year, "created": created},
        "message": f"{created} leave balance(s) provisioned.",
    }
