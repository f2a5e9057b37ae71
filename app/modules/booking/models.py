"""Booking ORM models."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import BookingPaymentStatusEnum, BookingStatusEnum, PayoutStatusEnum, enum_values


class Booking(BaseModelMixin, Base):
    """Appointment of a customer for a service, optionally with a therapist."""

    __tablename__ = "bookings"

    customer_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    therapist_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    service_id: Mapped[UUID] = mapped_column(ForeignKey("services.id", ondelete="RESTRICT"), nullable=False)
    business_id: Mapped[UUID] = mapped_column(
        ForeignKey("businesses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    availability_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("therapist_availability.id", ondelete="SET NULL"),
        nullable=True,
    )

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    service_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
        index=True,
    )
    payment_status: Mapped[BookingPaymentStatusEnum] = mapped_column(
        SAEnum(BookingPaymentStatusEnum, name="booking_payment_status_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
        index=True,
    )

    # No ORM defaults: every construction path must pass these explicitly.
    assigned_by_admin: Mapped[bool] = mapped_column(Boolean, nullable=False)
    response_visible_to_business_only: Mapped[bool] = mapped_column(Boolean, nullable=False)
    therapist_responded: Mapped[bool] = mapped_column(Boolean, nullable=False)
    assigned_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    confirmed_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    confirmed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cancelled_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    rescheduled_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rescheduled_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    original_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    original_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    therapist_payout_status: Mapped[PayoutStatusEnum | None] = mapped_column(
        SAEnum(PayoutStatusEnum, name="payout_status_enum", native_enum=False, values_callable=enum_values),
        nullable=True,
    )
    therapist_payout_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    therapist_paid_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
