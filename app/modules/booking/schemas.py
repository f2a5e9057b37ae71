"""Booking schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import BookingPaymentStatusEnum, BookingStatusEnum, PayoutStatusEnum, RoleEnum
from app.modules.booking.policies import visible_status

HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class BookingCreate(BaseModel):
    """Create booking request."""

    service_id: UUID
    date: dt.date
    time: str = Field(pattern=HHMM_PATTERN)
    therapist_id: UUID | None = None
    # Required when a business or admin books on behalf of a customer.
    customer_id: UUID | None = None


class BookingRejectRequest(BaseModel):
    """Reject or cancel booking request."""

    reason: str | None = Field(default=None, max_length=512)


class TherapistResponseRequest(BaseModel):
    """Therapist answer to an assigned booking."""

    accept: bool


class AssignTherapistRequest(BaseModel):
    """Assign therapist request."""

    therapist_id: UUID


class BookingRescheduleRequest(BaseModel):
    """Reschedule booking request."""

    new_date: dt.date
    new_time: str = Field(pattern=HHMM_PATTERN)


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    therapist_id: UUID | None
    service_id: UUID
    business_id: UUID
    date: dt.date
    time: str
    duration_minutes: int
    service_price: Decimal
    status: BookingStatusEnum
    payment_status: BookingPaymentStatusEnum
    assigned_by_admin: bool
    response_visible_to_business_only: bool
    therapist_responded: bool
    confirmed_at: dt.datetime | None
    cancelled_at: dt.datetime | None
    cancellation_reason: str | None
    rescheduled_at: dt.datetime | None
    original_date: dt.date | None
    original_time: str | None
    completed_at: dt.datetime | None
    therapist_payout_status: PayoutStatusEnum | None
    therapist_payout_amount: Decimal | None
    therapist_paid_at: dt.datetime | None
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def for_viewer(cls, booking, role: RoleEnum) -> "BookingRead":
        """Serialize booking with the status the viewer is allowed to see."""
        data = cls.model_validate(booking)
        return data.model_copy(update={"status": visible_status(booking, role)})


class ExpirationFailureRead(BaseModel):
    booking_id: UUID
    reason: str


class ExpirationReportRead(BaseModel):
    """Result of an expiration sweep."""

    cancelled: list[BookingRead]
    failures: list[ExpirationFailureRead]
