"""Appointment service — per-user calendar CRUD.

Every operation is scoped to the owning user; another user's appointment is
reported as not found rather than forbidden.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.appointments.models import Appointment
from hrportal.appointments.schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
)
from hrportal.common.audit import utcnow
from hrportal.common.exceptions import NotFoundException, ValidationException


class AppointmentService:

    @staticmethod
    async def _load(
        db: AsyncSession,
        appointment_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Appointment:
        result = await db.execute(
            select(Appointment).where(
                Appointment.id == appointment_id,
                Appointment.user_id == user_id,
            )
        )
        appointment = result.scalars().first()
        if appointment is None:
            raise NotFoundException("Appointment", str(appointment_id))
        return appointment

    @staticmethod
    async def list_appointments(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[AppointmentResponse]:
        """The user's appointments ordered by date, optionally within [from, to]."""
        if date_from and date_to and date_to < date_from:
            raise ValidationException({"to": ["'to' must not be before 'from'."]})

        query = select(Appointment).where(Appointment.user_id == user_id)
        if date_from is not None:
            query = query.where(Appointment.date >= date_from)
        if date_to is not None:
            query = query.where(Appointment.date <= date_to)
        query = query.order_by(Appointment.date.asc(), Appointment.created_at.asc())

        result = await db.execute(query)
        return [AppointmentResponse.model_validate(a) for a in result.scalars().all()]

    @staticmethod
    async def get_appointment(
        db: AsyncSession,
        appointment_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> AppointmentResponse:
        appointment = await AppointmentService._load(db, appointment_id, user_id)
        return AppointmentResponse.model_validate(appointment)

    @staticmethod
    async def create_appointment(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        appointment = Appointment(user_id=user_id, **data.model_dump())
        db.add(appointment)
        await db.flush()
        return AppointmentResponse.model_validate(appointment)

    @staticmethod
    async def update_appointment(
        db: AsyncSession,
        appointment_id: uuid.UUID,
        user_id: uuid.UUID,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        appointment = await AppointmentService._load(db, appointment_id, user_id)

        changes = data.model_dump(exclude_unset=True)
        if "title" in changes and not changes["title"]:
            raise ValidationException({"title": ["Title cannot be empty."]})
        if "date" in changes and changes["date"] is None:
            raise ValidationException({"date": ["Date cannot be null."]})

        for field, value in changes.items():
            setattr(appointment, field, value)
        appointment.updated_at = utcnow()
        await db.flush()
        return AppointmentResponse.model_validate(appointment)

    @staticmethod
    async def delete_appointment(
        db: AsyncSession,
        appointment_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        appointment = await AppointmentService._load(db, appointment_id, user_id)
        await db.delete(appointment)
        await db.flush()
