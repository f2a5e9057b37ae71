"""Booking status graph and the conditional-write primitive every transition uses."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from app.core.enums import BookingStatusEnum
from app.core.metrics import record_booking_transition, record_transition_conflict
from app.shared.exceptions import ConflictingTransitionException, InvalidStateTransitionException
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

S = BookingStatusEnum

ALLOWED_TRANSITIONS: dict[BookingStatusEnum, frozenset[BookingStatusEnum]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.THERAPIST_REJECTED, S.PAID, S.CANCELLED, S.RESCHEDULED}),
    # Legacy rows only; nothing produces this status any more.
    S.THERAPIST_CONFIRMED: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.THERAPIST_REJECTED: frozenset({S.PENDING, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.PAID, S.COMPLETED, S.CANCELLED, S.NO_SHOW, S.RESCHEDULED}),
    S.PAID: frozenset({S.COMPLETED, S.CANCELLED}),
    S.RESCHEDULED: frozenset({S.PENDING, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: BookingStatusEnum, target: BookingStatusEnum) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: BookingStatusEnum, target: BookingStatusEnum) -> None:
    """Raise when `current -> target` is not an edge of the booking graph."""
    if not can_transition(current, target):
        raise InvalidStateTransitionException(current, target)


class ConditionalBookingWriter(Protocol):
    async def update_if_current(
        self,
        booking: Any,
        expected_statuses: tuple[BookingStatusEnum, ...],
        values: dict[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> bool: ...


async def apply_transition(
    repository: ConditionalBookingWriter,
    booking: Any,
    target: BookingStatusEnum,
    *,
    operation: str,
    values: Mapping[str, Any] | None = None,
    expected: Mapping[str, Any] | None = None,
) -> Any:
    """Move booking to `target` only if nobody changed its status meanwhile."""
    current = BookingStatusEnum(booking.status)
    ensure_transition(current, target)

    changes = {"status": target, "updated_at": utc_now(), **(values or {})}
    applied = await repository.update_if_current(booking, (current,), changes, expected=expected)
    if not applied:
        record_transition_conflict(operation)
        logger.warning("Lost %s race for booking %s (%s -> %s)", operation, booking.id, current, target)
        raise ConflictingTransitionException("Booking was modified concurrently, reload and retry")

    record_booking_transition(current, target)
    return booking


async def apply_update(
    repository: ConditionalBookingWriter,
    booking: Any,
    *,
    operation: str,
    values: Mapping[str, Any],
    expected: Mapping[str, Any] | None = None,
) -> Any:
    """Write non-status fields guarded by the status the caller validated."""
    current = BookingStatusEnum(booking.status)
    changes = {"updated_at": utc_now(), **values}
    applied = await repository.update_if_current(booking, (current,), changes, expected=expected)
    if not applied:
        record_transition_conflict(operation)
        logger.warning("Lost %s race for booking %s", operation, booking.id)
        raise ConflictingTransitionException("Booking was modified concurrently, reload and retry")
    return booking
