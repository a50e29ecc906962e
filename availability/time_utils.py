"""Time parsing helpers for slot arithmetic."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Tuple, Union

from infrastructure.constants import (
    SLOT_GRID_END,
    SLOT_GRID_START,
    SLOT_INTERVAL_MINUTES,
)

MINUTES_PER_DAY = 24 * 60

DateLike = Union[date, str]


def parse_time_string(time_str: str) -> Tuple[int, int]:
    """Split an ``HH:MM`` (or ``HH:MM:SS``) string into hour and minute."""

    if not isinstance(time_str, str) or ":" not in time_str:
        raise ValueError(f"Time string '{time_str}' missing colon separator")

    parts = time_str.strip().split(":")
    hour = int(parts[0])
    minute = int(parts[1])

    # "24:00" is accepted as an end-of-day boundary for closing times.
    if hour == 24 and minute == 0:
        return hour, minute
    if not (0 <= hour <= 23):
        raise ValueError(f"Hour {hour} out of valid range 0-23")
    if not (0 <= minute <= 59):
        raise ValueError(f"Minute {minute} out of valid range 0-59")

    return hour, minute


def time_to_minutes(time_str: str) -> int:
    hour, minute = parse_time_string(time_str)
    return hour * 60 + minute


def minutes_to_time(total_minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``, wrapping past midnight."""

    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """Return ``start_time + duration`` modulo 24 hours."""

    return minutes_to_time(time_to_minutes(start_time) + int(duration_minutes))


def normalise_time(value: str) -> str:
    """Trim backend times such as ``"09:00:00"`` down to ``"09:00"``."""

    if not value:
        return ""
    hour, minute = parse_time_string(value)
    return f"{hour:02d}:{minute:02d}"


def canonical_slot_keys(
    start: str = SLOT_GRID_START,
    end: str = SLOT_GRID_END,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
) -> List[str]:
    """Return every slot start from ``start`` through ``end`` inclusive."""

    first = time_to_minutes(start)
    last = time_to_minutes(end)
    return [minutes_to_time(value) for value in range(first, last + 1, interval_minutes)]


def parse_iso_date(value: DateLike) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()


def combine_local(day: DateLike, time_str: str) -> datetime:
    """Build the naive local datetime for ``day`` at ``time_str``."""

    hour, minute = parse_time_string(time_str)
    return datetime.combine(parse_iso_date(day), datetime.min.time()).replace(
        hour=hour,
        minute=minute,
    )
