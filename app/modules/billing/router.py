"""Billing API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.modules.billing.schemas import (
    CashPaymentCreate,
    GatewayOrderCreate,
    GatewayOrderRead,
    GatewayPaymentResult,
    PaymentRead,
    PaymentUpdateStatus,
    PaymentWithBookingRead,
)
from app.modules.billing.service import PaymentService, get_payment_service
from app.modules.booking.schemas import BookingRead
from app.modules.identity.actor import Actor
from app.modules.identity.service import get_current_actor

router = APIRouter(prefix="/billing", tags=["billing"])


@router.post(
    "/bookings/{booking_id}/cash",
    response_model=PaymentWithBookingRead,
    status_code=status.HTTP_201_CREATED,
)
async def record_cash_payment(
    booking_id: UUID,
    payload: CashPaymentCreate,
    service: PaymentService = Depends(get_payment_service),
    actor: Actor = Depends(get_current_actor),
) -> PaymentWithBookingRead:
    """Record pay-at-visit cash payment and confirm booking."""
    payment, booking = await service.record_cash_payment(booking_id, payload.amount, actor)
    return PaymentWithBookingRead(
        payment=PaymentRead.model_validate(payment),
        booking=BookingRead.for_viewer(booking, actor.role),
    )


@router.post("/bookings/{booking_id}/orders", response_model=GatewayOrderRead, status_code=status.HTTP_201_CREATED)
async def create_gateway_order(
    booking_id: UUID,
    payload: GatewayOrderCreate,
    service: PaymentService = Depends(get_payment_service),
    actor: Actor = Depends(get_current_actor),
) -> GatewayOrderRead:
    """Open gateway order for the advance (or full) amount."""
    order = await service.record_gateway_order(
        booking_id,
        payload.total_amount,
        actor,
        payment_type=payload.payment_type,
    )
    return GatewayOrderRead(
        booking_id=order.booking_id,
        order_id=order.order_id,
        key_id=order.key_id,
        currency=order.currency,
        total_amount=order.total_amount,
        advance_amount=order.advance_amount,
        remaining_amount=order.remaining_amount,
        payment_type=order.payment_type,
        gateway_amount=order.gateway_amount,
        is_mock=order.is_mock,
    )


@router.post("/bookings/{booking_id}/verify", response_model=PaymentWithBookingRead)
async def verify_gateway_payment(
    booking_id: UUID,
    payload: GatewayPaymentResult,
    service: PaymentService = Depends(get_payment_service),
    actor: Actor = Depends(get_current_actor),
) -> PaymentWithBookingRead:
    """Verify checkout signature and mark booking paid."""
    payment, booking = await service.verify_gateway_payment(booking_id, payload, actor)
    return PaymentWithBookingRead(
        payment=PaymentRead.model_validate(payment),
        booking=BookingRead.for_viewer(booking, actor.role),
    )


@router.get("/bookings/{booking_id}/payments", response_model=list[PaymentRead])
async def list_booking_payments(
    booking_id: UUID,
    service: PaymentService = Depends(get_payment_service),
    actor: Actor = Depends(get_current_actor),
) -> list[PaymentRead]:
    payments = await service.list_booking_payments(booking_id, actor)
    return [PaymentRead.model_validate(item) for item in payments]


@router.patch("/payments/{payment_id}/status", response_model=PaymentRead)
async def update_payment_status(
    payment_id: UUID,
    payload: PaymentUpdateStatus,
    service: PaymentService = Depends(get_payment_service),
    actor: Actor = Depends(get_current_actor),
) -> PaymentRead:
    """Update payment status (admin or owning business)."""
    payment = await service.update_payment_status(payment_id, payload.status, actor)
    return PaymentRead.model_validate(payment)
