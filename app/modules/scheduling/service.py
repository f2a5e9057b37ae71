"""Scheduling business logic layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import BookingStatusEnum, RoleEnum, SlotStatusEnum
from app.modules.booking.repository import BookingRepository
from app.modules.catalog.repository import CatalogRepository
from app.modules.identity.actor import Actor
from app.modules.identity.repository import IdentityRepository
from app.modules.scheduling.models import TherapistAvailability
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import AvailabilityCreate
from app.modules.scheduling.slot_calculator import calculate_time_slots
from app.shared.exceptions import BusinessRuleException, ForbiddenException, NotFoundException

settings = get_settings()

# Bookings in these statuses keep their start time blocked.
ACTIVE_BOOKING_STATUSES = (
    BookingStatusEnum.PENDING,
    BookingStatusEnum.CONFIRMED,
    BookingStatusEnum.PAID,
    BookingStatusEnum.RESCHEDULED,
)


@dataclass(frozen=True, slots=True)
class SlotView:
    start_time: str
    end_time: str
    available: bool


class SchedulingService:
    """Scheduling domain service."""

    def __init__(
        self,
        repository: SchedulingRepository,
        booking_repository: BookingRepository,
        catalog_repository: CatalogRepository,
        identity_repository: IdentityRepository,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository
        self.catalog_repository = catalog_repository
        self.identity_repository = identity_repository

    async def create_availability(self, payload: AvailabilityCreate, actor: Actor) -> TherapistAvailability:
        """Open a working window (therapists for themselves, admins for anyone)."""
        if actor.role == RoleEnum.THERAPIST:
            if payload.therapist_id is not None and payload.therapist_id != actor.id:
                raise ForbiddenException("Therapists can only manage their own availability")
            therapist_id = actor.id
        elif actor.is_admin:
            if payload.therapist_id is None:
                raise BusinessRuleException("therapist_id is required")
            therapist = await self.identity_repository.get_user_with_role(payload.therapist_id, RoleEnum.THERAPIST)
            if therapist is None:
                raise NotFoundException("Therapist not found")
            therapist_id = therapist.id
        else:
            raise ForbiddenException("Only therapists and admins can manage availability")

        if payload.end_time <= payload.start_time:
            raise BusinessRuleException("end_time must be after start_time")

        overlapping = await self.repository.find_overlapping(
            therapist_id,
            payload.date,
            payload.start_time,
            payload.end_time,
        )
        if overlapping is not None:
            raise BusinessRuleException("Availability overlaps an existing window")

        return await self.repository.create_availability(
            therapist_id=therapist_id,
            day=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            status=payload.status,
        )

    async def list_availability(self, therapist_id: UUID, day: date) -> list[TherapistAvailability]:
        return await self.repository.list_for_therapist_day(therapist_id, day)

    async def list_slots(self, service_id: UUID, therapist_id: UUID, day: date) -> list[SlotView]:
        """Calculator slots for the business day, flagged against availability and bookings."""
        service = await self.catalog_repository.get_service_by_id(service_id)
        if service is None:
            raise NotFoundException("Service not found")

        business = service.business
        opening_time = business.opening_time if business is not None else settings.default_opening_time
        closing_time = business.closing_time if business is not None else settings.default_closing_time
        duration = service.duration_minutes or settings.default_service_duration_minutes

        slots = calculate_time_slots(opening_time, closing_time, duration, settings.slot_break_minutes)

        windows = [
            window
            for window in await self.repository.list_for_therapist_day(therapist_id, day)
            if window.status == SlotStatusEnum.AVAILABLE
        ]
        taken = {
            booking.time
            for booking in await self.booking_repository.list_therapist_bookings_on(
                therapist_id,
                day,
                ACTIVE_BOOKING_STATUSES,
            )
        }

        views: list[SlotView] = []
        for slot in slots:
            covered = any(window.start_time <= slot.start_time < window.end_time for window in windows)
            views.append(
                SlotView(
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    available=covered and slot.start_time not in taken,
                ),
            )
        return views


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return SchedulingService(
        repository=SchedulingRepository(session),
        booking_repository=BookingRepository(session),
        catalog_repository=CatalogRepository(session),
        identity_repository=IdentityRepository(session),
    )
