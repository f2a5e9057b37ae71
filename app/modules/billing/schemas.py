"""Billing schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import PaymentMethodEnum, PaymentStatusEnum, PaymentTypeEnum
from app.modules.booking.schemas import BookingRead


class CashPaymentCreate(BaseModel):
    """Record cash-on-visit payment request."""

    amount: Decimal = Field(gt=0)


class GatewayOrderCreate(BaseModel):
    """Create gateway order request."""

    total_amount: Decimal = Field(gt=0)
    payment_type: PaymentTypeEnum = PaymentTypeEnum.ADVANCE


class GatewayOrderRead(BaseModel):
    """Order handle for the checkout widget."""

    booking_id: UUID
    order_id: str
    key_id: str
    currency: str
    total_amount: Decimal
    advance_amount: Decimal
    remaining_amount: Decimal
    payment_type: PaymentTypeEnum
    gateway_amount: int
    is_mock: bool


class GatewayPaymentResult(BaseModel):
    """Checkout result posted back after the customer pays."""

    order_id: str = Field(min_length=1, max_length=128)
    payment_id: str = Field(min_length=1, max_length=128)
    signature: str = Field(default="", max_length=256)


class PaymentUpdateStatus(BaseModel):
    """Update payment status request."""

    status: PaymentStatusEnum


class PaymentRead(BaseModel):
    """Payment response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    amount: Decimal
    total_amount: Decimal
    advance_paid: Decimal
    remaining_amount: Decimal
    currency: str
    payment_type: PaymentTypeEnum
    method: PaymentMethodEnum
    status: PaymentStatusEnum
    external_reference: str | None
    gateway_order_id: str | None
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime


class PaymentWithBookingRead(BaseModel):
    """Payment together with the booking it moved."""

    payment: PaymentRead
    booking: BookingRead
