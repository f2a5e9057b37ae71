"""Billing ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import PaymentMethodEnum, PaymentStatusEnum, PaymentTypeEnum, enum_values


class Payment(BaseModelMixin, Base):
    """Payment attempt recorded against a booking."""

    __tablename__ = "payments"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    advance_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    payment_type: Mapped[PaymentTypeEnum] = mapped_column(
        SAEnum(PaymentTypeEnum, name="payment_type_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    method: Mapped[PaymentMethodEnum] = mapped_column(
        SAEnum(PaymentMethodEnum, name="payment_method_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    status: Mapped[PaymentStatusEnum] = mapped_column(
        SAEnum(PaymentStatusEnum, name="payment_status_enum", native_enum=False, values_callable=enum_values),
        default=PaymentStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    external_reference: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    gateway_order_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    recorded_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
