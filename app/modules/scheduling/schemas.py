"""Scheduling schemas."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import SlotStatusEnum

HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class AvailabilityCreate(BaseModel):
    """Create therapist availability window request."""

    therapist_id: UUID | None = None
    date: dt.date
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    status: SlotStatusEnum = SlotStatusEnum.AVAILABLE


class AvailabilityRead(BaseModel):
    """Availability window response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    therapist_id: UUID
    date: dt.date
    start_time: str
    end_time: str
    status: SlotStatusEnum
    created_at: dt.datetime
    updated_at: dt.datetime


class SlotRead(BaseModel):
    """Bookable slot for one service and therapist."""

    model_config = ConfigDict(from_attributes=True)

    start_time: str
    end_time: str
    available: bool
