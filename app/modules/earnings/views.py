"""Half/full payment projections over booking state.

Both views are filters on (status, payment_status); nothing here is stored.
A booking can only leave `confirmed` forward, so once it reaches `completed`
it is in the full view and never returns to the half view.
"""

from __future__ import annotations

from typing import Any

from app.core.enums import BookingPaymentStatusEnum, BookingStatusEnum, EarningsViewEnum

VIEW_FILTERS: dict[EarningsViewEnum, tuple[frozenset[BookingStatusEnum], frozenset[BookingPaymentStatusEnum]]] = {
    EarningsViewEnum.HALF: (
        frozenset({BookingStatusEnum.CONFIRMED}),
        frozenset({BookingPaymentStatusEnum.PARTIAL, BookingPaymentStatusEnum.COMPLETED}),
    ),
    EarningsViewEnum.FULL: (
        frozenset({BookingStatusEnum.COMPLETED}),
        frozenset({BookingPaymentStatusEnum.COMPLETED}),
    ),
}


def in_view(booking: Any, view: EarningsViewEnum) -> bool:
    """In-memory check of the same filter the earnings queries apply."""
    statuses, payment_statuses = VIEW_FILTERS[view]
    return booking.status in statuses and booking.payment_status in payment_statuses
