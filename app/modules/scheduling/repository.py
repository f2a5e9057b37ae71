"""Scheduling repository layer."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import SlotStatusEnum
from app.modules.scheduling.models import TherapistAvailability


class SchedulingRepository:
    """DB access for scheduling domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_availability(
        self,
        therapist_id: UUID,
        day: date,
        start_time: str,
        end_time: str,
        status: SlotStatusEnum,
    ) -> TherapistAvailability:
        window = TherapistAvailability(
            therapist_id=therapist_id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=status,
        )
        self.session.add(window)
        await self.session.flush()
        return window

    async def list_for_therapist_day(self, therapist_id: UUID, day: date) -> list[TherapistAvailability]:
        stmt = (
            select(TherapistAvailability)
            .where(TherapistAvailability.therapist_id == therapist_id, TherapistAvailability.date == day)
            .order_by(TherapistAvailability.start_time.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def find_overlapping(
        self,
        therapist_id: UUID,
        day: date,
        start_time: str,
        end_time: str,
    ) -> TherapistAvailability | None:
        stmt = select(TherapistAvailability).where(
            TherapistAvailability.therapist_id == therapist_id,
            TherapistAvailability.date == day,
            TherapistAvailability.start_time < end_time,
            TherapistAvailability.end_time > start_time,
        )
        return await self.session.scalar(stmt.limit(1))

    async def find_covering_slot(
        self,
        therapist_id: UUID,
        day: date,
        at: str,
        status: SlotStatusEnum = SlotStatusEnum.AVAILABLE,
    ) -> TherapistAvailability | None:
        stmt = (
            select(TherapistAvailability)
            .where(
                TherapistAvailability.therapist_id == therapist_id,
                TherapistAvailability.date == day,
                TherapistAvailability.start_time <= at,
                TherapistAvailability.end_time > at,
                TherapistAvailability.status == status,
            )
            .order_by(TherapistAvailability.start_time.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def reserve_slot(self, slot_id: UUID) -> bool:
        stmt = (
            update(TherapistAvailability)
            .where(
                TherapistAvailability.id == slot_id,
                TherapistAvailability.status == SlotStatusEnum.AVAILABLE,
            )
            .values(status=SlotStatusEnum.BOOKED)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release_slot(self, slot_id: UUID) -> bool:
        stmt = (
            update(TherapistAvailability)
            .where(
                TherapistAvailability.id == slot_id,
                TherapistAvailability.status == SlotStatusEnum.BOOKED,
            )
            .values(status=SlotStatusEnum.AVAILABLE)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
