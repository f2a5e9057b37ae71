from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4

import pytest

from app.core.enums import BookingStatusEnum, RoleEnum, SlotStatusEnum
from app.modules.identity.actor import Actor
from app.modules.scheduling.schemas import AvailabilityCreate
from app.modules.scheduling.service import SchedulingService
from app.shared.exceptions import BusinessRuleException, ForbiddenException

day = date(2026, 2, 20)


@dataclass
class FakeWindow:
    id: UUID
    therapist_id: UUID
    date: date
    start_time: str
    end_time: str
    status: SlotStatusEnum = SlotStatusEnum.AVAILABLE


@dataclass
class FakeBusiness:
    opening_time: str = "09:00"
    closing_time: str = "12:00"


@dataclass
class FakeService:
    id: UUID
    business: FakeBusiness | None
    duration_minutes: int = 60


@dataclass
class FakeBooking:
    therapist_id: UUID
    date: date
    time: str
    status: BookingStatusEnum


class FakeSchedulingRepository:
    def __init__(self, windows: list[FakeWindow] | None = None) -> None:
        self.windows = windows or []

    async def create_availability(self, therapist_id, day, start_time, end_time, status) -> FakeWindow:
        window = FakeWindow(uuid4(), therapist_id, day, start_time, end_time, status)
        self.windows.append(window)
        return window

    async def list_for_therapist_day(self, therapist_id, day) -> list[FakeWindow]:
        return [window for window in self.windows if window.therapist_id == therapist_id and window.date == day]

    async def find_overlapping(self, therapist_id, day, start_time, end_time) -> FakeWindow | None:
        for window in await self.list_for_therapist_day(therapist_id, day):
            if window.start_time < end_time and start_time < window.end_time:
                return window
        return None


class FakeBookingRepository:
    def __init__(self, bookings: list[FakeBooking] | None = None) -> None:
        self.bookings = bookings or []

    async def list_therapist_bookings_on(self, therapist_id, day, statuses) -> list[FakeBooking]:
        return [
            booking
            for booking in self.bookings
            if booking.therapist_id == therapist_id and booking.date == day and booking.status in statuses
        ]


class FakeCatalogRepository:
    def __init__(self, service: FakeService) -> None:
        self.service = service

    async def get_service_by_id(self, service_id: UUID) -> FakeService | None:
        return self.service if service_id == self.service.id else None


class FakeIdentityRepository:
    def __init__(self, therapist_ids: set[UUID]) -> None:
        self.therapist_ids = therapist_ids

    async def get_user_with_role(self, user_id: UUID, role: RoleEnum):
        if role == RoleEnum.THERAPIST and user_id in self.therapist_ids:
            return Actor(id=user_id, role=role)
        return None


def make_service(
    *,
    windows: list[FakeWindow] | None = None,
    bookings: list[FakeBooking] | None = None,
    therapist_ids: set[UUID] | None = None,
    business: FakeBusiness | None = None,
) -> tuple[SchedulingService, FakeService, FakeSchedulingRepository]:
    catalog_service = FakeService(id=uuid4(), business=business or FakeBusiness())
    repository = FakeSchedulingRepository(windows)
    service = SchedulingService(
        repository=repository,  # type: ignore[arg-type]
        booking_repository=FakeBookingRepository(bookings),  # type: ignore[arg-type]
        catalog_repository=FakeCatalogRepository(catalog_service),  # type: ignore[arg-type]
        identity_repository=FakeIdentityRepository(therapist_ids or set()),  # type: ignore[arg-type]
    )
    return service, catalog_service, repository


@pytest.mark.asyncio
async def test_therapist_opens_own_window() -> None:
    therapist = Actor(id=uuid4(), role=RoleEnum.THERAPIST)
    service, _, repository = make_service()

    window = await service.create_availability(
        AvailabilityCreate(date=day, start_time="09:00", end_time="13:00"),
        therapist,
    )

    assert window.therapist_id == therapist.id
    assert repository.windows == [window]


@pytest.mark.asyncio
async def test_overlapping_window_is_rejected() -> None:
    therapist = Actor(id=uuid4(), role=RoleEnum.THERAPIST)
    existing = FakeWindow(uuid4(), therapist.id, day, "09:00", "12:00")
    service, _, _ = make_service(windows=[existing])

    with pytest.raises(BusinessRuleException):
        await service.create_availability(
            AvailabilityCreate(date=day, start_time="11:00", end_time="14:00"),
            therapist,
        )


@pytest.mark.asyncio
async def test_therapist_cannot_open_window_for_colleague() -> None:
    therapist = Actor(id=uuid4(), role=RoleEnum.THERAPIST)
    service, _, _ = make_service()

    with pytest.raises(ForbiddenException):
        await service.create_availability(
            AvailabilityCreate(therapist_id=uuid4(), date=day, start_time="09:00", end_time="10:00"),
            therapist,
        )


@pytest.mark.asyncio
async def test_customer_cannot_manage_availability() -> None:
    service, _, _ = make_service()

    with pytest.raises(ForbiddenException):
        await service.create_availability(
            AvailabilityCreate(date=day, start_time="09:00", end_time="10:00"),
            Actor(id=uuid4(), role=RoleEnum.CUSTOMER),
        )


@pytest.mark.asyncio
async def test_slots_flag_coverage_and_taken_times() -> None:
    therapist_id = uuid4()
    windows = [FakeWindow(uuid4(), therapist_id, day, "09:00", "11:00")]
    bookings = [
        FakeBooking(therapist_id, day, "09:00", BookingStatusEnum.CONFIRMED),
        FakeBooking(therapist_id, day, "10:15", BookingStatusEnum.CANCELLED),
    ]
    service, catalog_service, _ = make_service(windows=windows, bookings=bookings)

    slots = await service.list_slots(catalog_service.id, therapist_id, day)

    assert [(slot.start_time, slot.available) for slot in slots] == [
        ("09:00", False),
        ("10:15", True),
    ]


@pytest.mark.asyncio
async def test_slots_ignore_unavailable_windows() -> None:
    therapist_id = uuid4()
    windows = [FakeWindow(uuid4(), therapist_id, day, "09:00", "12:00", SlotStatusEnum.ON_LEAVE)]
    service, catalog_service, _ = make_service(windows=windows)

    slots = await service.list_slots(catalog_service.id, therapist_id, day)

    assert slots
    assert not any(slot.available for slot in slots)
