"""Leave service layer — day counting, leave type registry, balances, request lifecycle.

Business logic:
  - Inclusive calendar-day counting shared by submission and accounting
  - Leave type registry (lookup by id or unique name, guarded deletion)
  - Balance views and provisioning from each type's default entitlement
  - Request submission with optional balance enforcement
  - Status transitions that debit or credit the balance atomically
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Optional, Union

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrportal.common.audit import create_audit_entry, utcnow
from hrportal.common.constants import EmploymentStatus, LeaveStatus
from hrportal.common.exceptions import (
    ConflictError,
    InsufficientBalanceException,
    NotFoundException,
    PersistenceException,
    ValidationException,
)
from hrportal.common.filters import apply_filters
from hrportal.common.pagination import PaginationMeta, PaginationParams, paginate
from hrportal.config import settings
from hrportal.core_hr.models import Employee
from hrportal.leave.models import LeaveBalance, LeaveRequest, LeaveType
from hrportal.leave.schemas import (
    LeaveBalanceView,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)
from hrportal.notifications.service import (
    notify_leave_approved,
    notify_leave_rejected,
    notify_leave_submitted,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str, None]


# ═════════════════════════════════════════════════════════════════════
# Day counting
# ═════════════════════════════════════════════════════════════════════


def _as_date(value: DateLike) -> Optional[date]:
    """Normalize to a calendar date (midnight); None if it cannot be parsed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def calculate_leave_days(start: DateLike, end: DateLike) -> int:
    """Inclusive number of calendar days between *start* and *end*.

    Time of day is ignored. Returns 0 when either value is unparseable or
    *end* falls before *start*.

    >>> calculate_leave_days(date(2024, 1, 1), date(2024, 1, 5))
    5
    """
    start_day = _as_date(start)
    end_day = _as_date(end)
    if start_day is None or end_day is None or end_day < start_day:
        return 0
    return (end_day - start_day).days + 1


def balance_adjustment(old: LeaveStatus, new: LeaveStatus, days: int) -> int:
    """Signed change to ``days_used`` implied by a status transition.

    Entering ``approved`` debits the request's days; leaving ``approved`` for
    ``rejected`` or ``cancelled`` credits them back. Anything else is neutral.
    """
    if new == LeaveStatus.approved and old != LeaveStatus.approved:
        return days
    if old == LeaveStatus.approved and new in (LeaveStatus.rejected, LeaveStatus.cancelled):
        return -days
    return 0


# ═════════════════════════════════════════════════════════════════════
# LeaveTypeService
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeService:
    """Leave type registry."""

    @staticmethod
    async def list_leave_types(db: AsyncSession) -> list[LeaveTypeOut]:
        result = await db.execute(select(LeaveType).order_by(LeaveType.name))
        return [LeaveTypeOut.model_validate(lt) for lt in result.scalars().all()]

    @staticmethod
    async def get_leave_type(db: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
        result = await db.execute(select(LeaveType).where(LeaveType.id == leave_type_id))
        leave_type = result.scalars().first()
        if leave_type is None:
            raise NotFoundException("LeaveType", str(leave_type_id))
        return leave_type

    @staticmethod
    async def get_by_name(db: AsyncSession, name: str) -> LeaveType:
        """Exact, case-sensitive lookup by the unique type name."""
        result = await db.execute(select(LeaveType).where(LeaveType.name == name))
        leave_type = result.scalars().first()
        if leave_type is None:
            raise NotFoundException("LeaveType", name)
        return leave_type

    @staticmethod
    async def _ensure_name_free(
        db: AsyncSession,
        name: str,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(LeaveType.id).where(LeaveType.name == name)
        if exclude_id is not None:
            query = query.where(LeaveType.id != exclude_id)
        if (await db.execute(query)).scalar() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def create_leave_type(
        db: AsyncSession,
        data: LeaveTypeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveTypeOut:
        await LeaveTypeService._ensure_name_free(db, data.name)

        leave_type = LeaveType(**data.model_dump())
        db.add(leave_type)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("name", data.name)

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_type",
            entity_id=leave_type.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return LeaveTypeOut.model_validate(leave_type)

    @staticmethod
    async def update_leave_type(
        db: AsyncSession,
        leave_type_id: uuid.UUID,
        data: LeaveTypeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveTypeOut:
        """Partial update. Renaming does not touch names already copied onto requests."""
        leave_type = await LeaveTypeService.get_leave_type(db, leave_type_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("name"):
            await LeaveTypeService._ensure_name_free(db, changes["name"], exclude_id=leave_type.id)

        old_values = {field: getattr(leave_type, field) for field in changes}
        for field, value in changes.items():
            setattr(leave_type, field, value)
        leave_type.updated_at = utcnow()
        await db.flush()

        if changes:
            await create_audit_entry(
                db,
                action="update",
                entity_type="leave_type",
                entity_id=leave_type.id,
                actor_id=actor_id,
                old_values=old_values,
                new_values=changes,
            )
        return LeaveTypeOut.model_validate(leave_type)

    @staticmethod
    async def delete_leave_type(
        db: AsyncSession,
        leave_type_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete a leave type; refused while any request or balance references it."""
        leave_type = await LeaveTypeService.get_leave_type(db, leave_type_id)

        request_refs = (
            await db.execute(
                select(func.count())
                .select_from(LeaveRequest)
                .where(LeaveRequest.leave_type_id == leave_type_id)
            )
        ).scalar_one()
        balance_refs = (
            await db.execute(
                select(func.count())
                .select_from(LeaveBalance)
                .where(LeaveBalance.leave_type_id == leave_type_id)
            )
        ).scalar_one()
        if request_refs or balance_refs:
            raise ConflictError(
                "leave_type_id",
                str(leave_type_id),
                detail=(
                    f"{leave_type.name} is referenced by {request_refs} request(s) "
                    f"and {balance_refs} balance(s) and cannot be deleted."
                ),
            )

        await db.delete(leave_type)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="leave_type",
            entity_id=leave_type_id,
            actor_id=actor_id,
            old_values={"name": leave_type.name, "default_days": leave_type.default_days},
        )


# ═════════════════════════════════════════════════════════════════════
# LeaveBalanceService
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceService:
    """Balance views and provisioning. Never changes ``days_used``."""

    @staticmethod
    def _build_view(balance: LeaveBalance) -> LeaveBalanceView:
        view = LeaveBalanceView.model_validate(balance)
        view.leave_type_name = balance.leave_type.name if balance.leave_type else ""
        return view

    @staticmethod
    async def get_balances(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> list[LeaveBalanceView]:
        """All balances of an employee for a year, ordered by leave type name."""

        emp_check = await db.execute(select(Employee.id).where(Employee.id == employee_id))
        if emp_check.scalar() is None:
            raise NotFoundException("Employee", str(employee_id))

        result = await db.execute(
            select(LeaveBalance)
            .join(LeaveType, LeaveBalance.leave_type_id == LeaveType.id)
            .where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.year == year,
            )
            .options(selectinload(LeaveBalance.leave_type))
            .order_by(LeaveType.name)
            .execution_options(populate_existing=True)
        )
        return [LeaveBalanceService._build_view(bal) for bal in result.scalars().all()]

    @staticmethod
    async def provision_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        year: int,
        *,
        total_entitlement: Optional[int] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveBalanceView:
        """Create one balance row; the entitlement defaults to the type's default_days."""

        emp_check = await db.execute(select(Employee.id).where(Employee.id == employee_id))
        if emp_check.scalar() is None:
            raise NotFoundException("Employee", str(employee_id))
        leave_type = await LeaveTypeService.get_leave_type(db, leave_type_id)

        existing = await db.execute(
            select(LeaveBalance.id).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type_id == leave_type_id,
                LeaveBalance.year == year,
            )
        )
        if existing.scalar() is not None:
            raise ConflictError(
                "year",
                year,
                detail=f"A {leave_type.name} balance for {year} already exists for this employee.",
            )

        entitlement = leave_type.default_days if total_entitlement is None else total_entitlement
        balance = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            total_entitlement=entitlement,
            days_used=0,
        )
        db.add(balance)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("year", year)

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_balance",
            entity_id=balance.id,
            actor_id=actor_id,
            new_values={
                "employee_id": str(employee_id),
                "leave_type": leave_type.name,
                "year": year,
                "total_entitlement": entitlement,
            },
        )
        logger.info(
            "Provisioned %s balance for employee %s in %d (%d days)",
            leave_type.name, employee_id, year, entitlement,
        )

        balance.leave_type = leave_type
        return LeaveBalanceService._build_view(balance)

    @staticmethod
    async def provision_year(
        db: AsyncSession,
        year: int,
        *,
        employee_id: Optional[uuid.UUID] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Create every missing (active employee, leave type) balance for *year*.

        Existing rows are left alone. Returns the number of rows created.
        """
        emp_query = select(Employee.id).where(Employee.status == EmploymentStatus.active)
        if employee_id is not None:
            emp_query = select(Employee.id).where(Employee.id == employee_id)
        employee_ids = list((await db.execute(emp_query)).scalars().all())
        if employee_id is not None and not employee_ids:
            raise NotFoundException("Employee", str(employee_id))

        leave_types = (await db.execute(select(LeaveType))).scalars().all()

        existing_q = select(LeaveBalance.employee_id, LeaveBalance.leave_type_id).where(
            LeaveBalance.year == year,
        )
        if employee_id is not None:
            existing_q = existing_q.where(LeaveBalance.employee_id == employee_id)
        existing = {(row[0], row[1]) for row in (await db.execute(existing_q)).all()}

        created = 0
        for emp_id in employee_ids:
            for leave_type in leave_types:
                if (emp_id, leave_type.id) in existing:
                    continue
                db.add(
                    LeaveBalance(
                        employee_id=emp_id,
                        leave_type_id=leave_type.id,
                        year=year,
                        total_entitlement=leave_type.default_days,
                        days_used=0,
                    )
                )
                created += 1
        await db.flush()

        if created:
            await create_audit_entry(
                db,
                action="provision",
                entity_type="leave_balance",
                entity_id=employee_id or uuid.UUID(int=0),
                actor_id=actor_id,
                new_values={"year": year, "created": created},
            )
        logger.info("Provisioned %d leave balance(s) for %d", created, year)
        return created


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Leave request lifecycle and the balance accounting tied to it."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _load_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    @staticmethod
    async def _resolve_leave_type(
        db: AsyncSession,
        data: LeaveRequestCreate,
    ) -> LeaveType:
        """Resolve the submitted type by id or name; unknown types are invalid input."""
        try:
            if data.leave_type_id is not None:
                return await LeaveTypeService.get_leave_type(db, data.leave_type_id)
            return await LeaveTypeService.get_by_name(db, data.leave_type_name or "")
        except NotFoundException as exc:
            raise ValidationException(
                {"leave_type_id": [f"Unknown leave type '{exc.entity_id}'."]}
            )

    @staticmethod
    async def _check_available(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
        days: int,
    ) -> None:
        """Submission-time balance check (read only)."""
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type_id == leave_type.id,
                LeaveBalance.year == year,
            )
        )
        balance = result.scalars().first()
        if balance is None:
            raise ValidationException(
                {"leave_type_id": [
                    f"No {leave_type.name} balance found for {year}. Please contact HR."
                ]}
            )
        if balance.days_used + days > balance.total_entitlement:
            raise InsufficientBalanceException(
                leave_type=leave_type.name,
                year=year,
                requested=days,
                available=balance.remaining,
            )

    @staticmethod
    async def _adjust_balance(
        db: AsyncSession,
        leave_req: LeaveRequest,
        adjustment: int,
    ) -> LeaveBalance:
        """Apply a signed change to the balance row the request draws from.

        The row is locked for the rest of the transaction. Debits must fit
        within the entitlement; credits clamp ``days_used`` at zero.
        """
        leave_type = await LeaveTypeService.get_leave_type(db, leave_req.leave_type_id)
        year = leave_req.start_date.year

        result = await db.execute(
            select(LeaveBalance)
            .where(
                LeaveBalance.employee_id == leave_req.employee_id,
                LeaveBalance.leave_type_id == leave_type.id,
                LeaveBalance.year == year,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        balance = result.scalars().first()
        if balance is None:
            raise NotFoundException(
                "LeaveBalance", f"{leave_req.employee_id}/{leave_type.name}/{year}"
            )

        if adjustment > 0 and balance.days_used + adjustment > balance.total_entitlement:
            raise InsufficientBalanceException(
                leave_type=leave_type.name,
                year=year,
                requested=adjustment,
                available=balance.remaining,
            )

        new_used = LeaveBalance.days_used + adjustment
        await db.execute(
            update(LeaveBalance)
            .where(LeaveBalance.id == balance.id)
            .values(
                days_used=case((new_used < 0, 0), else_=new_used),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await db.refresh(balance, ["days_used", "updated_at"])
        return balance

    @staticmethod
    async def _persist_status(
        db: AsyncSession,
        leave_req: LeaveRequest,
        new_status: LeaveStatus,
        *,
        actor_id: Optional[uuid.UUID],
        reason: Optional[str],
    ) -> None:
        now = utcnow()
        leave_req.status = new_status
        if new_status != LeaveStatus.pending:
            leave_req.reviewed_by = actor_id
            leave_req.reviewed_at = now
        if reason is not None:
            leave_req.reason = reason
        leave_req.updated_at = now
        await db.flush()

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit_leave_request(
        db: AsyncSession,
        data: LeaveRequestCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
        enforce_balance: Optional[bool] = None,
    ) -> LeaveRequestOut:
        """Validate and persist a new ``pending`` request. Balances are not touched.

        ``enforce_balance`` overrides the LEAVE_ENFORCE_BALANCE_ON_SUBMIT
        setting for this call.
        """

        errors: dict[str, list[str]] = {}
        if data.employee_id is None:
            errors["employee_id"] = ["This field is required."]
        if data.leave_type_id is None and not data.leave_type_name:
            errors["leave_type_id"] = ["This field is required."]
        if errors:
            raise ValidationException(errors)

        total_days = calculate_leave_days(data.start_date, data.end_date)
        if total_days <= 0:
            raise ValidationException(
                {"end_date": ["end_date must be on or after start_date."]}
            )

        emp_result = await db.execute(select(Employee).where(Employee.id == data.employee_id))
        employee = emp_result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", str(data.employee_id))

        leave_type = await LeaveService._resolve_leave_type(db, data)

        if enforce_balance is None:
            enforce_balance = settings.LEAVE_ENFORCE_BALANCE_ON_SUBMIT
        if enforce_balance:
            await LeaveService._check_available(
                db, employee.id, leave_type, data.start_date.year, total_days,
            )

        leave_request = LeaveRequest(
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            leave_type_name=leave_type.name,
            employee_name=employee.full_name,
            employee_position=employee.position,
            start_date=data.start_date,
            end_date=data.end_date,
            total_days=total_days,
            reason=data.reason,
            status=LeaveStatus.pending,
        )
        db.add(leave_request)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave_request.id,
            actor_id=actor_id,
            new_values={
                "employee_id": str(employee.id),
                "leave_type": leave_type.name,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "total_days": total_days,
                "status": LeaveStatus.pending.value,
            },
        )
        logger.info(
            "Leave request %s submitted for employee %s (%s, %d day(s))",
            leave_request.id, employee.id, leave_type.name, total_days,
        )

        await notify_leave_submitted(db, leave_request)

        return LeaveRequestOut.model_validate(leave_request)

    # ─────────────────────────────────────────────────────────────────
    # Transition
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def transition_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        new_status: LeaveStatus,
        *,
        actor_id: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Move a request to *new_status*, adjusting its balance where required.

        The balance change and the status change commit together or not at
        all: both run inside one SAVEPOINT. Store failures surface as
        ``PersistenceException``.
        """

        new_status = LeaveStatus(new_status)
        leave_req = await LeaveService._load_request(db, request_id)
        old_status = leave_req.status

        days = calculate_leave_days(leave_req.start_date, leave_req.end_date)
        adjustment = balance_adjustment(old_status, new_status, days)

        balance: Optional[LeaveBalance] = None
        try:
            async with db.begin_nested():
                if adjustment:
                    balance = await LeaveService._adjust_balance(db, leave_req, adjustment)
                await LeaveService._persist_status(
                    db, leave_req, new_status, actor_id=actor_id, reason=reason,
                )
        except SQLAlchemyError as exc:
            logger.error(
                "Leave request %s transition %s -> %s failed: %s",
                request_id, old_status.value, new_status.value, exc,
            )
            raise PersistenceException(
                f"Could not move leave request {request_id} to {new_status.value}."
            ) from exc

        audit_new: dict[str, Any] = {"status": new_status.value}
        if reason is not None:
            audit_new["reason"] = reason
        if balance is not None:
            audit_new["balance_adjustment"] = adjustment
            audit_new["days_used"] = balance.days_used
        await create_audit_entry(
            db,
            action="transition",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=actor_id,
            old_values={"status": old_status.value},
            new_values=audit_new,
        )
        logger.info(
            "Leave request %s: %s -> %s (balance %+d)",
            leave_req.id, old_status.value, new_status.value, adjustment,
        )

        if new_status != old_status:
            if new_status == LeaveStatus.approved:
                await notify_leave_approved(db, leave_req)
            elif new_status == LeaveStatus.rejected:
                await notify_leave_rejected(db, leave_req, reason)

        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Read / delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequestOut:
        return LeaveRequestOut.model_validate(await LeaveService._load_request(db, request_id))

    @staticmethod
    async def list_leave_requests(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        leave_type_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[LeaveRequestOut], PaginationMeta]:
        """Paginated requests, newest first."""
        query = select(LeaveRequest).order_by(
            LeaveRequest.created_at.desc(), LeaveRequest.start_date.desc(),
        )
        query = apply_filters(
            query,
            LeaveRequest,
            {
                "employee_id": employee_id,
                "status": status,
                "leave_type_id": leave_type_id,
            },
        )
        rows, meta = await paginate(db, query, pagination, model=LeaveRequest)
        return [LeaveRequestOut.model_validate(r) for r in rows], meta

    @staticmethod
    async def delete_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Remove a request record. Balances are never touched."""
        leave_req = await LeaveService._load_request(db, request_id)
        snapshot = {
            "status": leave_req.status.value,
            "total_days": leave_req.total_days,
            "leave_type": leave_req.leave_type_name,
        }
        await db.delete(leave_req)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="leave_request",
            entity_id=request_id,
            actor_id=actor_id,
            old_values=snapshot,
        )
