from __future__ import annotations

import pytest

from app.modules.scheduling.slot_calculator import TimeSlot, calculate_time_slots


def test_slots_are_separated_by_break() -> None:
    slots = calculate_time_slots("09:00", "12:00", 60, break_minutes=15)

    assert slots == [
        TimeSlot(start_time="09:00", end_time="10:00"),
        TimeSlot(start_time="10:15", end_time="11:15"),
    ]


def test_slot_ending_exactly_at_closing_time_is_kept() -> None:
    slots = calculate_time_slots("09:00", "10:00", 60, break_minutes=15)

    assert slots == [TimeSlot(start_time="09:00", end_time="10:00")]


def test_no_slots_when_duration_exceeds_opening_hours() -> None:
    assert calculate_time_slots("09:00", "09:45", 60) == []


def test_zero_break_lays_slots_back_to_back() -> None:
    slots = calculate_time_slots("10:00", "11:30", 30, break_minutes=0)

    assert [slot.start_time for slot in slots] == ["10:00", "10:30", "11:00"]


@pytest.mark.parametrize(("duration", "break_minutes"), [(0, 15), (-30, 15), (60, -1)])
def test_invalid_durations_are_rejected(duration: int, break_minutes: int) -> None:
    with pytest.raises(ValueError):
        calculate_time_slots("09:00", "18:00", duration, break_minutes=break_minutes)


def test_malformed_time_is_rejected() -> None:
    with pytest.raises(ValueError):
        calculate_time_slots("9:00", "18:00", 60)
