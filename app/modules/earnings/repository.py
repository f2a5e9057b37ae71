"""Earnings read queries."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import BookingPaymentStatusEnum, BookingStatusEnum
from app.modules.booking.models import Booking


class EarningsRepository:
    """Aggregations over bookings for earnings views."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_view(
        self,
        business_ids: list[UUID] | None,
        statuses: Iterable[BookingStatusEnum],
        payment_statuses: Iterable[BookingPaymentStatusEnum],
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int, Decimal]:
        base_stmt: Select[tuple[Booking]] = select(Booking).where(
            Booking.status.in_(list(statuses)),
            Booking.payment_status.in_(list(payment_statuses)),
        )
        if business_ids is not None:
            base_stmt = base_stmt.where(Booking.business_id.in_(business_ids))

        subquery = base_stmt.subquery()
        totals_stmt = select(func.count(), func.coalesce(func.sum(subquery.c.service_price), 0)).select_from(subquery)
        total, amount = (await self.session.execute(totals_stmt)).one()

        stmt = base_stmt.order_by(Booking.date.desc(), Booking.time.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), int(total or 0), Decimal(amount or 0)

    async def list_therapist_completed(self, therapist_id: UUID) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(
                Booking.therapist_id == therapist_id,
                Booking.status == BookingStatusEnum.COMPLETED,
                Booking.therapist_payout_status.is_not(None),
            )
            .order_by(Booking.completed_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())
