"""Earnings schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from app.core.enums import EarningsViewEnum
from app.modules.booking.schemas import BookingRead


class BusinessEarningsRead(BaseModel):
    """Page of bookings in one earnings view."""

    view: EarningsViewEnum
    items: list[BookingRead]
    total: int
    limit: int
    offset: int
    total_amount: Decimal


class TherapistEarningsRead(BaseModel):
    items: list[BookingRead]
    pending_amount: Decimal
    paid_amount: Decimal
