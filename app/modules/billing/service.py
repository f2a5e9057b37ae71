"""Payment reconciliation: cash, gateway orders and verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import (
    BookingPaymentStatusEnum,
    BookingStatusEnum,
    PaymentMethodEnum,
    PaymentStatusEnum,
    PaymentTypeEnum,
    RoleEnum,
)
from app.modules.audit.repository import AuditRepository
from app.modules.billing.calculations import split_advance, to_gateway_minor_units
from app.modules.billing.gateway import RazorpayGateway
from app.modules.billing.models import Payment
from app.modules.billing.repository import BillingRepository
from app.modules.billing.schemas import GatewayPaymentResult
from app.modules.booking.access import BookingAccess
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.booking.state_machine import apply_transition, apply_update
from app.modules.catalog.repository import CatalogRepository
from app.modules.identity.actor import Actor
from app.shared.exceptions import (
    BusinessRuleException,
    ConfigErrorException,
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    PaymentVerificationFailedException,
)
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

PAYABLE_STATUSES = (BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED)
# Cash is also collected at the visit for the balance left after an advance.
CASH_STATUSES = (BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED, BookingStatusEnum.PAID)


@dataclass(frozen=True, slots=True)
class PaymentOrder:
    """Gateway order plus the advance/remaining split it was computed from."""

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


class PaymentService:
    """Records payment attempts and drives payment-dependent booking transitions."""

    def __init__(
        self,
        repository: BillingRepository,
        booking_repository: BookingRepository,
        catalog_repository: CatalogRepository,
        audit_repository: AuditRepository,
        gateway: RazorpayGateway | None,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository
        self.audit_repository = audit_repository
        self.gateway = gateway
        self.access = BookingAccess(catalog_repository)

    def _require_gateway(self) -> RazorpayGateway:
        if self.gateway is None:
            raise ConfigErrorException("Payment gateway keys are not configured")
        return self.gateway

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _ensure_payer(self, booking: Booking, actor: Actor) -> None:
        if actor.role == RoleEnum.CUSTOMER:
            if booking.customer_id != actor.id:
                raise ForbiddenException("Customers can pay only their own bookings")
            return
        if actor.role == RoleEnum.THERAPIST:
            raise ForbiddenException("Therapists cannot record payments")
        await self.access.ensure_business_access(booking, actor)

    @staticmethod
    def _ensure_not_awaiting_therapist(booking: Booking) -> None:
        if booking.assigned_by_admin and not booking.therapist_responded:
            raise BusinessRuleException("Booking is waiting for the assigned therapist to respond")

    async def _emit(self, payment: Payment, event_type: str, booking: Booking) -> None:
        await self.audit_repository.create_outbox_event(
            aggregate_type="payment",
            aggregate_id=str(payment.id),
            event_type=event_type,
            payload={
                "payment_id": str(payment.id),
                "booking_id": str(booking.id),
                "customer_id": str(booking.customer_id),
                "business_id": str(booking.business_id),
                "amount": str(payment.amount),
                "method": str(payment.method),
                "status": str(payment.status),
            },
        )

    async def record_cash_payment(self, booking_id: UUID, amount: Decimal, actor: Actor) -> tuple[Payment, Booking]:
        """Record pay-at-visit cash; a pending booking is confirmed by it."""
        booking = await self._get_booking(booking_id)
        await self._ensure_payer(booking, actor)

        if booking.status not in CASH_STATUSES:
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.CONFIRMED)
        self._ensure_not_awaiting_therapist(booking)

        total = Decimal(booking.service_price)
        payment = await self.repository.create_payment(
            booking_id=booking.id,
            amount=Decimal(amount),
            total_amount=total,
            advance_paid=Decimal("0"),
            remaining_amount=total,
            currency=settings.gateway_currency,
            payment_type=PaymentTypeEnum.FULL,
            method=PaymentMethodEnum.CASH,
            status=PaymentStatusEnum.PENDING,
            recorded_by=actor.id,
        )
        if booking.status == BookingStatusEnum.PENDING:
            await apply_transition(
                self.booking_repository,
                booking,
                BookingStatusEnum.CONFIRMED,
                operation="record_cash_payment",
                values={"confirmed_by": booking.customer_id, "confirmed_at": utc_now()},
            )
        await self._emit(payment, "payment.recorded", booking)
        return payment, booking

    async def record_gateway_order(
        self,
        booking_id: UUID,
        total_amount: Decimal,
        actor: Actor,
        *,
        payment_type: PaymentTypeEnum = PaymentTypeEnum.ADVANCE,
    ) -> PaymentOrder:
        """Open a gateway order and keep it as a pending payment; booking status is untouched."""
        gateway = self._require_gateway()
        booking = await self._get_booking(booking_id)
        await self._ensure_payer(booking, actor)

        if booking.status not in PAYABLE_STATUSES:
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.PAID)
        self._ensure_not_awaiting_therapist(booking)

        total = Decimal(booking.service_price)
        if Decimal(total_amount) != total:
            raise BusinessRuleException("Order total must match the booked service price")

        if payment_type == PaymentTypeEnum.FULL:
            charge, remaining = total, Decimal("0")
        else:
            charge, remaining = split_advance(total, settings.advance_payment_percent)
        gateway_amount = to_gateway_minor_units(charge)
        order = await gateway.create_order(
            amount_minor=gateway_amount,
            currency=settings.gateway_currency,
            receipt=f"receipt_{booking.id}",
        )
        await self.repository.create_payment(
            booking_id=booking.id,
            amount=charge,
            total_amount=total,
            advance_paid=charge,
            remaining_amount=remaining,
            currency=order.currency,
            payment_type=payment_type,
            method=PaymentMethodEnum.GATEWAY,
            status=PaymentStatusEnum.PENDING,
            recorded_by=actor.id,
            gateway_order_id=order.order_id,
        )
        logger.info("Gateway order %s opened for booking %s", order.order_id, booking.id)
        return PaymentOrder(
            booking_id=booking.id,
            order_id=order.order_id,
            key_id=gateway.key_id,
            currency=order.currency,
            total_amount=total,
            advance_amount=charge,
            remaining_amount=remaining,
            payment_type=payment_type,
            gateway_amount=gateway_amount,
            is_mock=order.is_mock,
        )

    async def verify_gateway_payment(
        self,
        booking_id: UUID,
        result: GatewayPaymentResult,
        actor: Actor,
    ) -> tuple[Payment, Booking]:
        """Verify checkout signature against the stored order; on success mark the booking paid."""
        gateway = self._require_gateway()
        booking = await self._get_booking(booking_id)
        await self._ensure_payer(booking, actor)

        order = await self.repository.get_gateway_order(booking.id, result.order_id)
        if order is None:
            raise NotFoundException("Gateway order not found for this booking")
        if order.status == PaymentStatusEnum.COMPLETED:
            raise BusinessRuleException("Payment was already verified")

        if booking.status not in PAYABLE_STATUSES:
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.PAID)
        self._ensure_not_awaiting_therapist(booking)

        if not gateway.verify_signature(result.order_id, result.payment_id, result.signature):
            failed = await self.repository.create_payment(
                booking_id=booking.id,
                amount=order.amount,
                total_amount=order.total_amount,
                advance_paid=order.advance_paid,
                remaining_amount=order.remaining_amount,
                currency=order.currency,
                payment_type=order.payment_type,
                method=PaymentMethodEnum.GATEWAY,
                status=PaymentStatusEnum.FAILED,
                recorded_by=actor.id,
                external_reference=result.payment_id,
                gateway_order_id=result.order_id,
            )
            await self._emit(failed, "payment.failed", booking)
            logger.warning("Signature mismatch for booking %s order %s", booking.id, result.order_id)
            raise PaymentVerificationFailedException("Payment signature verification failed")

        if await self.repository.get_completed_by_reference(result.payment_id) is not None:
            raise BusinessRuleException("Payment was already verified")

        if not await self.repository.complete_if_pending(
            order,
            external_reference=result.payment_id,
            paid_at=utc_now(),
        ):
            raise BusinessRuleException("Payment was already verified")

        if order.payment_type == PaymentTypeEnum.FULL:
            booking_payment_status = BookingPaymentStatusEnum.COMPLETED
        else:
            booking_payment_status = BookingPaymentStatusEnum.PARTIAL
        await apply_transition(
            self.booking_repository,
            booking,
            BookingStatusEnum.PAID,
            operation="verify_gateway_payment",
            values={"payment_status": booking_payment_status},
        )
        await self._emit(order, "payment.verified", booking)
        return order, booking

    async def update_payment_status(
        self,
        payment_id: UUID,
        status: PaymentStatusEnum,
        actor: Actor,
    ) -> Payment:
        """Move payment along its status edges (admin or owning business)."""
        payment = await self.repository.get_payment_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found")

        booking = await self._get_booking(payment.booking_id)
        await self.access.ensure_business_access(booking, actor)

        if payment.status == status:
            return payment
        previous_status = payment.status

        allowed_transitions: dict[PaymentStatusEnum, set[PaymentStatusEnum]] = {
            PaymentStatusEnum.PENDING: {PaymentStatusEnum.COMPLETED, PaymentStatusEnum.FAILED},
            PaymentStatusEnum.COMPLETED: {PaymentStatusEnum.REFUNDED},
            PaymentStatusEnum.FAILED: set(),
            PaymentStatusEnum.REFUNDED: set(),
        }
        if status not in allowed_transitions[payment.status]:
            raise BusinessRuleException(
                f"Invalid payment status transition: {payment.status} -> {status}",
            )
        if status == PaymentStatusEnum.COMPLETED and payment.method == PaymentMethodEnum.GATEWAY:
            raise BusinessRuleException("Gateway payments are completed only by signature verification")

        if status == PaymentStatusEnum.COMPLETED:
            paid_at = payment.paid_at or utc_now()
        elif status == PaymentStatusEnum.REFUNDED:
            paid_at = payment.paid_at
        else:
            paid_at = None

        payment = await self.repository.set_payment_status(payment, status, paid_at)

        if (
            status == PaymentStatusEnum.COMPLETED
            and payment.method == PaymentMethodEnum.CASH
            and booking.payment_status != BookingPaymentStatusEnum.COMPLETED
        ):
            await apply_update(
                self.booking_repository,
                booking,
                operation="update_payment_status",
                values={"payment_status": BookingPaymentStatusEnum.COMPLETED},
            )

        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="billing.payment.status.update",
            entity_type="payment",
            entity_id=str(payment.id),
            payload={
                "from_status": str(previous_status),
                "to_status": str(status),
                "paid_at": payment.paid_at.isoformat() if payment.paid_at is not None else None,
            },
        )
        await self._emit(payment, "payment.status_updated", booking)
        return payment

    async def list_booking_payments(self, booking_id: UUID, actor: Actor) -> list[Payment]:
        booking = await self._get_booking(booking_id)
        await self.access.ensure_participant(booking, actor)
        return await self.repository.list_booking_payments(booking.id)


async def get_payment_service(session: AsyncSession = Depends(get_db_session)) -> PaymentService:
    """Dependency provider for payment service."""
    return PaymentService(
        repository=BillingRepository(session),
        booking_repository=BookingRepository(session),
        catalog_repository=CatalogRepository(session),
        audit_repository=AuditRepository(session),
        gateway=RazorpayGateway.from_settings(settings),
    )
