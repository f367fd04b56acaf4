"""Notification service — CRUD operations and leave-workflow dispatchers."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.auth.models import User
from hrportal.common.constants import NotificationType, UserRole
from hrportal.common.exceptions import ForbiddenException, NotFoundException
from hrportal.common.pagination import PaginationParams, build_meta
from hrportal.notifications.models import Notification
from hrportal.notifications.schemas import (
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType = NotificationType.info,
        title: str,
        message: str,
        link: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            link=link,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for a user, newest first."""
        query = (
            select(Notification)
            .where(Notification.recipient_id == user_id)
            .order_by(Notification.created_at.desc())
        )

        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if notification_type is not None:
            query = query.where(Notification.type == notification_type)

        # Total count (with filters applied)
        count_q = query.with_only_columns(func.count()).order_by(None)
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.page_size)
            )
        ).scalars().all()

        # Unread count (always unfiltered, used for the badge)
        unread = await NotificationService.get_unread_count(db, user_id)

        meta = build_meta(pagination, total)
        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        result = await db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalars().first()

        if notification is None:
            raise NotFoundException("Notification", notification_id)

        if notification.recipient_id != user_id:
            raise ForbiddenException("You can only mark your own notifications as read.")

        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> int:
        """Bulk-mark all unread notifications as read. Returns count updated."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def get_unread_count(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> int:
        """Return the number of unread notifications for a user."""
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()


# ── Best-effort dispatch ────────────────────────────────────────────
# Notification side effects never fail the operation that triggered them:
# each batch runs in a SAVEPOINT and any error is logged and dropped.


async def _emit(
    db: AsyncSession,
    recipients: Sequence[uuid.UUID],
    **fields: Any,
) -> int:
    sent = 0
    try:
        async with db.begin_nested():
            for recipient_id in recipients:
                await NotificationService.create_notification(
                    db, recipient_id=recipient_id, **fields,
                )
                sent += 1
    except Exception:
        logger.warning(
            "Dropped %r notification for %s %s",
            fields.get("title"),
            fields.get("entity_type"),
            fields.get("entity_id"),
            exc_info=True,
        )
        return 0
    return sent


async def _admin_user_ids(db: AsyncSession) -> list[uuid.UUID]:
    result = await db.execute(
        select(User.id).where(
            User.role.in_([UserRole.hr_admin, UserRole.system_admin]),
            User.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def _employee_user_ids(db: AsyncSession, employee_id: uuid.UUID) -> list[uuid.UUID]:
    result = await db.execute(
        select(User.id).where(User.employee_id == employee_id, User.is_active.is_(True))
    )
    return list(result.scalars().all())


# ── Leave workflow dispatchers ──────────────────────────────────────
# They accept the ORM object directly to avoid tight schema coupling.


async def notify_leave_submitted(
    db: AsyncSession,
    leave_request,  # hrportal.leave.models.LeaveRequest
) -> int:
    """Tell HR administrators a new leave request needs review."""
    try:
        recipients = await _admin_user_ids(db)
    except Exception:
        logger.warning("Could not resolve leave reviewers", exc_info=True)
        return 0
    return await _emit(
        db,
        recipients,
        type=NotificationType.action_required,
        title="New Leave Request",
        message=(
            f"{leave_request.employee_name} requested {leave_request.leave_type_name} "
            f"from {leave_request.start_date} to {leave_request.end_date} "
            f"({leave_request.total_days} day(s))."
        ),
        link=f"/leave/requests/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )


async def notify_leave_approved(
    db: AsyncSession,
    leave_request,  # hrportal.leave.models.LeaveRequest
) -> int:
    """Tell the employee their leave request was approved."""
    try:
        recipients = await _employee_user_ids(db, leave_request.employee_id)
    except Exception:
        logger.warning("Could not resolve leave requester", exc_info=True)
        return 0
    return await _emit(
        db,
        recipients,
        type=NotificationType.approval,
        title="Leave Request Approved",
        message=(
            f"Your {leave_request.leave_type_name} request from "
            f"{leave_request.start_date} to {leave_request.end_date} has been approved."
        ),
        link=f"/leave/requests/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )


async def notify_leave_rejected(
    db: AsyncSession,
    leave_request,  # hrportal.leave.models.LeaveRequest
    reason: Optional[str] = None,
) -> int:
    """Tell the employee their leave request was rejected."""
    try:
        recipients = await _employee_user_ids(db, leave_request.employee_id)
    except Exception:
        logger.warning("Could not resolve leave requester", exc_info=True)
        return 0
    message = (
        f"Your {leave_request.leave_type_name} request from "
        f"{leave_request.start_date} to {leave_request.end_date} was rejected."
    )
    if reason:
        message += f" Reason: {reason}"
    return await _emit(
        db,
        recipients,
        type=NotificationType.alert,
        title="Leave Request Rejected",
        message=message,
        link=f"/leave/requests/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )
