"""Advance-booking window rules.

Every check works on naive local datetimes: slot dates and times are wall-clock
values of the establishment and are never converted between timezones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, List, Mapping, Optional

from infrastructure.constants import (
    DEFAULT_ALLOW_SAME_DAY,
    DEFAULT_MAX_ADVANCE_DAYS,
    DEFAULT_MIN_ADVANCE_HOURS,
)
from .opening_hours import OpeningHours, parse_opening_hours
from .time_utils import DateLike, combine_local, parse_iso_date


@dataclass(frozen=True)
class BookingPolicy:
    """Booking restrictions configured per establishment."""

    min_advance_hours: float = DEFAULT_MIN_ADVANCE_HOURS
    max_advance_days: int = DEFAULT_MAX_ADVANCE_DAYS
    allow_same_day: bool = DEFAULT_ALLOW_SAME_DAY
    opening_hours: OpeningHours = field(default_factory=dict)

    @classmethod
    def from_establishment(cls, payload: Optional[Mapping[str, Any]]) -> "BookingPolicy":
        """Build a policy from an establishment payload.

        Missing or zero values fall back to the platform defaults, and same-day
        booking is allowed unless explicitly disabled.
        """

        payload = payload or {}
        return cls(
            min_advance_hours=payload.get("minAdvanceBookingHours") or DEFAULT_MIN_ADVANCE_HOURS,
            max_advance_days=payload.get("maxAdvanceBookingDays") or DEFAULT_MAX_ADVANCE_DAYS,
            allow_same_day=payload.get("allowSameDayBooking") is not False,
            opening_hours=parse_opening_hours(payload.get("openingHours")),
        )


def is_bookable(
    slot_time: str,
    slot_date: DateLike,
    now: datetime,
    min_advance_hours: float,
) -> bool:
    """Return whether a slot start may still be booked at ``now``.

    Only the start time is checked; the duration-derived end time is handled
    by the business-hours rule.
    """

    day = parse_iso_date(slot_date)
    today = now.date()
    if day < today:
        return False

    slot_start = combine_local(day, slot_time)
    if day == today:
        return slot_start > now + timedelta(hours=min_advance_hours)
    return slot_start > now


def first_selectable_date(today: date, allow_same_day: bool) -> date:
    return today if allow_same_day else today + timedelta(days=1)


def is_date_selectable(
    day: DateLike,
    today: date,
    max_advance_days: int,
    allow_same_day: bool,
) -> bool:
    """Mirror :func:`generate_booking_dates` for a single date."""

    target = parse_iso_date(day)
    if target < first_selectable_date(today, allow_same_day):
        return False
    return (target - today).days < max_advance_days


def generate_booking_dates(
    today: date,
    max_advance_days: int,
    allow_same_day: bool,
) -> List[date]:
    """Return the bounded list of dates a customer may pick from."""

    start_offset = 0 if allow_same_day else 1
    return [today + timedelta(days=offset) for offset in range(start_offset, max_advance_days)]
