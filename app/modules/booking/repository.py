"""Booking repository layer."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import BookingPaymentStatusEnum, BookingStatusEnum, RoleEnum
from app.modules.booking.models import Booking


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_booking(
        self,
        *,
        customer_id: UUID,
        therapist_id: UUID | None,
        service_id: UUID,
        business_id: UUID,
        availability_id: UUID | None,
        day: date,
        time: str,
        duration_minutes: int,
        service_price,
        assigned_by_admin: bool,
        assigned_by_id: UUID | None,
    ) -> Booking:
        booking = Booking(
            customer_id=customer_id,
            therapist_id=therapist_id,
            service_id=service_id,
            business_id=business_id,
            availability_id=availability_id,
            date=day,
            time=time,
            duration_minutes=duration_minutes,
            service_price=service_price,
            status=BookingStatusEnum.PENDING,
            payment_status=BookingPaymentStatusEnum.PENDING,
            assigned_by_admin=assigned_by_admin,
            assigned_by_id=assigned_by_id,
            response_visible_to_business_only=False,
            therapist_responded=False,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        return await self.session.get(Booking, booking_id)

    async def list_bookings(
        self,
        user_id: UUID,
        role: RoleEnum,
        business_ids: list[UUID],
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking)

        if role == RoleEnum.CUSTOMER:
            base_stmt = base_stmt.where(Booking.customer_id == user_id)
        elif role == RoleEnum.THERAPIST:
            base_stmt = base_stmt.where(Booking.therapist_id == user_id)
        elif role == RoleEnum.BUSINESS:
            base_stmt = base_stmt.where(Booking.business_id.in_(business_ids))

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.date.desc(), Booking.time.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def update_if_current(
        self,
        booking: Booking,
        expected_statuses: tuple[BookingStatusEnum, ...],
        values: dict[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        criteria = [Booking.id == booking.id, Booking.status.in_(expected_statuses)]
        for field_name, field_value in (expected or {}).items():
            column = getattr(Booking, field_name)
            criteria.append(column.is_(None) if field_value is None else column == field_value)

        stmt = (
            update(Booking)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return False
        await self.session.refresh(booking)
        return True

    async def find_expiration_candidates(
        self,
        statuses: Iterable[BookingStatusEnum],
        payment_status: BookingPaymentStatusEnum,
        on_or_before: date,
    ) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(
                Booking.status.in_(list(statuses)),
                Booking.payment_status == payment_status,
                Booking.date <= on_or_before,
            )
            .order_by(Booking.date.asc(), Booking.time.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_therapist_bookings_on(
        self,
        therapist_id: UUID,
        day: date,
        statuses: Iterable[BookingStatusEnum],
    ) -> list[Booking]:
        stmt = select(Booking).where(
            Booking.therapist_id == therapist_id,
            Booking.date == day,
            Booking.status.in_(list(statuses)),
        )
        return list((await self.session.scalars(stmt)).all())

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        async with self.session.begin_nested():
            yield
