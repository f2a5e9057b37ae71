"""Pure appointment slot generation from business hours."""

from __future__ import annotations

from dataclasses import dataclass

from app.shared.utils import format_minutes, minutes_of_day, parse_hhmm


@dataclass(frozen=True, slots=True)
class TimeSlot:
    start_time: str
    end_time: str


def calculate_time_slots(
    opening_time: str,
    closing_time: str,
    duration_minutes: int,
    break_minutes: int = 15,
) -> list[TimeSlot]:
    """Lay out back-to-back slots separated by a break.

    The first slot starts at opening time; a slot is kept only when it ends
    at or before closing time. The next slot starts `break_minutes` after the
    previous one ends.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if break_minutes < 0:
        raise ValueError("break_minutes must not be negative")

    cursor = minutes_of_day(parse_hhmm(opening_time))
    day_end = minutes_of_day(parse_hhmm(closing_time))

    slots: list[TimeSlot] = []
    while cursor + duration_minutes <= day_end:
        slot_end = cursor + duration_minutes
        slots.append(TimeSlot(start_time=format_minutes(cursor), end_time=format_minutes(slot_end)))
        cursor = slot_end + break_minutes
    return slots
