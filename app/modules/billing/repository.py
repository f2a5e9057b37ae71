"""Billing repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import PaymentMethodEnum, PaymentStatusEnum, PaymentTypeEnum
from app.modules.billing.models import Payment


class BillingRepository:
    """DB operations for billing domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_payment(
        self,
        *,
        booking_id: UUID,
        amount: Decimal,
        total_amount: Decimal,
        advance_paid: Decimal,
        remaining_amount: Decimal,
        currency: str,
        payment_type: PaymentTypeEnum,
        method: PaymentMethodEnum,
        status: PaymentStatusEnum,
        recorded_by: UUID | None,
        external_reference: str | None = None,
        gateway_order_id: str | None = None,
        paid_at: datetime | None = None,
    ) -> Payment:
        payment = Payment(
            booking_id=booking_id,
            amount=amount,
            total_amount=total_amount,
            advance_paid=advance_paid,
            remaining_amount=remaining_amount,
            currency=currency.upper(),
            payment_type=payment_type,
            method=method,
            status=status,
            recorded_by=recorded_by,
            external_reference=external_reference,
            gateway_order_id=gateway_order_id,
            paid_at=paid_at,
        )
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_payment_by_id(self, payment_id: UUID) -> Payment | None:
        stmt = select(Payment).where(Payment.id == payment_id)
        return await self.session.scalar(stmt)

    async def get_completed_by_reference(self, external_reference: str) -> Payment | None:
        stmt = select(Payment).where(
            Payment.external_reference == external_reference,
            Payment.status == PaymentStatusEnum.COMPLETED,
        )
        return await self.session.scalar(stmt)

    async def get_gateway_order(self, booking_id: UUID, gateway_order_id: str) -> Payment | None:
        """Order row opened by record_gateway_order, pending until verified."""
        stmt = (
            select(Payment)
            .where(
                Payment.booking_id == booking_id,
                Payment.gateway_order_id == gateway_order_id,
                Payment.method == PaymentMethodEnum.GATEWAY,
                Payment.status.in_([PaymentStatusEnum.PENDING, PaymentStatusEnum.COMPLETED]),
            )
            .order_by(Payment.created_at.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def complete_if_pending(
        self,
        payment: Payment,
        *,
        external_reference: str,
        paid_at: datetime,
    ) -> bool:
        stmt = (
            update(Payment)
            .where(Payment.id == payment.id, Payment.status == PaymentStatusEnum.PENDING)
            .values(
                status=PaymentStatusEnum.COMPLETED,
                external_reference=external_reference,
                paid_at=paid_at,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return False
        await self.session.refresh(payment)
        return True

    async def list_booking_payments(self, booking_id: UUID) -> list[Payment]:
        stmt = select(Payment).where(Payment.booking_id == booking_id).order_by(Payment.created_at.asc())
        return list((await self.session.scalars(stmt)).all())

    async def set_payment_status(
        self,
        payment: Payment,
        status: PaymentStatusEnum,
        paid_at: datetime | None,
    ) -> Payment:
        payment.status = status
        payment.paid_at = paid_at
        await self.session.flush()
        return payment
