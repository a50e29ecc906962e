"""Client-side conflict prediction for reservations.

The backend is the only authority on overlaps; these helpers exist so the UI
can warn before a submission, never to block one.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from availability.time_utils import DateLike, parse_iso_date, time_to_minutes
from reservations.models import Reservation


def _interval(time_str: str, duration: int) -> tuple:
    start = time_to_minutes(time_str)
    return start, start + int(duration)


def intervals_overlap(first_start: str, first_duration: int, second_start: str, second_duration: int) -> bool:
    """True when half-open intervals ``[start, start + duration)`` intersect."""

    a_start, a_end = _interval(first_start, first_duration)
    b_start, b_end = _interval(second_start, second_duration)
    return a_start < b_end and b_start < a_end


def find_overlaps(
    reservations: Iterable[Reservation],
    *,
    resource_id: str,
    day: DateLike,
    start_time: str,
    duration: int,
    ignore_id: Optional[str] = None,
) -> List[Reservation]:
    """Return non-cancelled reservations that would collide with a candidate."""

    target_date: date = parse_iso_date(day)
    conflicts = []
    for existing in reservations:
        if existing.id == ignore_id or not existing.is_active:
            continue
        if existing.resource_id != resource_id or existing.date != target_date:
            continue
        if intervals_overlap(existing.time, existing.duration, start_time, duration):
            conflicts.append(existing)
    return conflicts
