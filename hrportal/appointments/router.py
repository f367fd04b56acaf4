"""Appointment endpoints — the authenticated user's own calendar."""


import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.appointments.schemas import AppointmentCreate, AppointmentUpdate
from hrportal.appointments.service import AppointmentService
from hrportal.auth.dependencies import get_current_user
from hrportal.auth.models import User
from hrportal.database import get_db

router = APIRouter(prefix="", tags=["appointments"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("")
async def list_appointments(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List own appointments ordered by date."""
    items = await AppointmentService.list_appointments(
        db, user.id, date_from=date_from, date_to=date_to,
    )
    return {"data": [item.model_dump(mode="json") for item in items]}


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_appointment(
    body: AppointmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await AppointmentService.create_appointment(db, user.id, body)
    return {
        "data": appointment.model_dump(mode="json"),
        "message": "Appointment created successfully.",
    }


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await AppointmentService.get_appointment(db, appointment_id, user.id)
    return {"data": appointment.model_dump(mode="json")}


# ── PATCH /{id} ─────────────────────────────────────────────────────

@router.patch("/{appointment_id}")
async def update_appointment(
    appointment_id: uuid.UUID,
    body: AppointmentUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await AppointmentService.update_appointment(
        db, appointment_id, user.id, body,
    )
    return {
        "data": appointment.model_dump(mode="json"),
        "message": "Appointment updated successfully.",
    }


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AppointmentService.delete_appointment(db, appointment_id, user.id)
    return {"message": "Appointment deleted successfully."}
