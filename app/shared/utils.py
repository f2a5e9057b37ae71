"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_hhmm(value: str) -> time:
    """Parse a zero-padded 24h 'HH:mm' string."""
    hours_text, sep, minutes_text = value.strip().partition(":")
    if not sep or len(hours_text) != 2 or len(minutes_text) != 2:
        raise ValueError(f"Expected HH:mm, got '{value}'")
    return time(hour=int(hours_text), minute=int(minutes_text))


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(total_minutes: int) -> str:
    """Format minutes since midnight as 'HH:mm'."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def combine_local(day: date, at: time, tz_name: str) -> datetime:
    """Build an aware UTC instant from a local calendar day and wall time."""
    local = datetime.combine(day, at, tzinfo=ZoneInfo(tz_name))
    return local.astimezone(timezone.utc)
