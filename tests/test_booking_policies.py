from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from app.core.enums import BookingStatusEnum, RoleEnum
from app.modules.booking.policies import (
    booking_start_at,
    is_expired,
    should_restrict_reschedule,
    visible_status,
)

fixed_now = datetime(2026, 2, 19, 12, 0, tzinfo=UTC)


@dataclass
class FakeBooking:
    status: BookingStatusEnum
    date: date
    time: str
    response_visible_to_business_only: bool = False


def _booking_at(start: datetime, status: BookingStatusEnum = BookingStatusEnum.PENDING) -> FakeBooking:
    return FakeBooking(status=status, date=start.date(), time=start.strftime("%H:%M"))


def test_booking_start_at_respects_business_timezone() -> None:
    start = booking_start_at(date(2026, 2, 19), "10:00", "Asia/Kolkata")

    assert start == datetime(2026, 2, 19, 4, 30, tzinfo=UTC)


def test_booking_thirty_hours_in_the_past_is_expired() -> None:
    booking = _booking_at(fixed_now - timedelta(hours=30))

    assert is_expired(booking, fixed_now) is True


def test_future_booking_is_not_expired() -> None:
    booking = _booking_at(fixed_now + timedelta(hours=1))

    assert is_expired(booking, fixed_now) is False


def test_grace_period_delays_expiration() -> None:
    booking = _booking_at(fixed_now - timedelta(minutes=10))

    assert is_expired(booking, fixed_now, grace=timedelta(minutes=30)) is False
    assert is_expired(booking, fixed_now, grace=timedelta(minutes=5)) is True


def test_only_pending_and_confirmed_bookings_expire() -> None:
    start = fixed_now - timedelta(days=2)
    for status in (BookingStatusEnum.PAID, BookingStatusEnum.COMPLETED, BookingStatusEnum.CANCELLED):
        assert is_expired(_booking_at(start, status), fixed_now) is False
    assert is_expired(_booking_at(start, BookingStatusEnum.CONFIRMED), fixed_now) is True


def test_reschedule_restricted_for_customer_inside_window() -> None:
    start = fixed_now + timedelta(hours=2)

    assert should_restrict_reschedule(start.date(), start.strftime("%H:%M"), RoleEnum.CUSTOMER, fixed_now) is True


def test_reschedule_allowed_for_customer_outside_window() -> None:
    start = fixed_now + timedelta(hours=48)

    assert should_restrict_reschedule(start.date(), start.strftime("%H:%M"), RoleEnum.CUSTOMER, fixed_now) is False


def test_reschedule_never_restricted_for_therapist() -> None:
    start = fixed_now - timedelta(hours=1)

    assert should_restrict_reschedule(start.date(), start.strftime("%H:%M"), RoleEnum.THERAPIST, fixed_now) is False


def test_customer_sees_gated_response_as_pending() -> None:
    booking = _booking_at(fixed_now, BookingStatusEnum.THERAPIST_REJECTED)
    booking.response_visible_to_business_only = True

    assert visible_status(booking, RoleEnum.CUSTOMER) == BookingStatusEnum.PENDING
    assert visible_status(booking, RoleEnum.BUSINESS) == BookingStatusEnum.THERAPIST_REJECTED
