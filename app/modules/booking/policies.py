"""Pure time-based booking rules."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from app.core.enums import BookingStatusEnum, RoleEnum
from app.shared.utils import combine_local, ensure_utc, parse_hhmm

EXPIRABLE_STATUSES = frozenset({BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED})
RESCHEDULABLE_STATUSES = frozenset({BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED})


def booking_start_at(day: date, at: str, tz_name: str) -> datetime:
    """Absolute start instant of a booking held as local day + HH:MM."""
    return combine_local(day, parse_hhmm(at), tz_name)


def is_expired(
    booking: Any,
    now: datetime,
    *,
    grace: timedelta = timedelta(0),
    tz_name: str = "UTC",
) -> bool:
    """True when a pending/confirmed booking's start (plus grace) has passed."""
    if BookingStatusEnum(booking.status) not in EXPIRABLE_STATUSES:
        return False
    return booking_start_at(booking.date, booking.time, tz_name) + grace <= ensure_utc(now)


def should_restrict_reschedule(
    day: date,
    at: str,
    role: RoleEnum,
    now: datetime,
    *,
    window: timedelta = timedelta(hours=24),
    tz_name: str = "UTC",
) -> bool:
    """Block reschedules close to (or past) the start, except for therapists."""
    if role == RoleEnum.THERAPIST:
        return False
    return booking_start_at(day, at, tz_name) - ensure_utc(now) <= window


def visible_status(booking: Any, viewer_role: RoleEnum) -> BookingStatusEnum:
    """Status as the viewer may see it; customers see gated responses as pending."""
    status = BookingStatusEnum(booking.status)
    if viewer_role == RoleEnum.CUSTOMER and booking.response_visible_to_business_only:
        return BookingStatusEnum.PENDING
    return status
