from __future__ import annotations

import random
from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest

from app.core.enums import BookingStatusEnum
from app.modules.booking.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    apply_transition,
    can_transition,
    ensure_transition,
)
from app.shared.exceptions import ConflictingTransitionException, InvalidStateTransitionException

S = BookingStatusEnum


@dataclass
class FakeBooking:
    status: BookingStatusEnum
    id: UUID = field(default_factory=uuid4)
    payment_status: str = "pending"


class FakeWriter:
    """Conditional writer that can simulate a concurrent status change."""

    def __init__(self, stolen_status: BookingStatusEnum | None = None) -> None:
        self.stolen_status = stolen_status
        self.writes: list[dict] = []

    async def update_if_current(self, booking, expected_statuses, values, *, expected=None) -> bool:
        if self.stolen_status is not None:
            booking.status = self.stolen_status
        if booking.status not in expected_statuses:
            return False
        for key, value in (expected or {}).items():
            if getattr(booking, key) != value:
                return False
        for key, value in values.items():
            setattr(booking, key, value)
        self.writes.append(values)
        return True


def test_terminal_statuses_have_no_outgoing_edges() -> None:
    assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELLED, S.NO_SHOW}
    for status in TERMINAL_STATUSES:
        for target in S:
            assert can_transition(status, target) is False


def test_every_status_has_an_entry() -> None:
    assert set(ALLOWED_TRANSITIONS) == set(S)


def test_ensure_transition_raises_for_unknown_edge() -> None:
    with pytest.raises(InvalidStateTransitionException):
        ensure_transition(S.PAID, S.PENDING)


@pytest.mark.asyncio
async def test_apply_transition_writes_status_and_extra_values() -> None:
    booking = FakeBooking(status=S.PENDING)
    writer = FakeWriter()

    await apply_transition(writer, booking, S.CONFIRMED, operation="approve", values={"payment_status": "partial"})

    assert booking.status == S.CONFIRMED
    assert booking.payment_status == "partial"
    assert "updated_at" in writer.writes[0]


@pytest.mark.asyncio
async def test_apply_transition_raises_when_status_changed_concurrently() -> None:
    booking = FakeBooking(status=S.PENDING)
    writer = FakeWriter(stolen_status=S.CANCELLED)

    with pytest.raises(ConflictingTransitionException):
        await apply_transition(writer, booking, S.CONFIRMED, operation="approve")
    assert writer.writes == []


@pytest.mark.asyncio
async def test_apply_transition_respects_expected_fields() -> None:
    booking = FakeBooking(status=S.PENDING, payment_status="partial")

    with pytest.raises(ConflictingTransitionException):
        await apply_transition(
            FakeWriter(),
            booking,
            S.CANCELLED,
            operation="cancel_expired",
            expected={"payment_status": "pending"},
        )
    assert booking.status == S.PENDING


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", range(20))
async def test_random_transition_requests_only_follow_graph_edges(seed: int) -> None:
    rng = random.Random(seed)
    booking = FakeBooking(status=S.PENDING)
    writer = FakeWriter()
    history = [booking.status]

    for _ in range(30):
        target = rng.choice(list(S))
        previous = booking.status
        try:
            await apply_transition(writer, booking, target, operation="random")
        except InvalidStateTransitionException:
            assert booking.status == previous
            continue
        history.append(booking.status)

    for current, following in zip(history, history[1:]):
        assert following in ALLOWED_TRANSITIONS[current]
