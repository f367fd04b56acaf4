"""Appointment Pydantic v2 schemas."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AppointmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    date: datetime = Field(..., description="Start of the appointment (date and time)")
    description: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Partial update; only supplied fields are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    date: Optional[datetime] = None
    description: Optional[str] = None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    date: datetime
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
