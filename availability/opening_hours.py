"""Business-hours helpers shared by every slot computation path."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from infrastructure.constants import (
    DEFAULT_CLOSING_TIME,
    DEFAULT_OPENING_TIME,
    WEEKDAY_NAMES,
)
from .time_utils import MINUTES_PER_DAY, DateLike, parse_iso_date, time_to_minutes


@dataclass(frozen=True)
class DayHours:
    """Opening window for a single weekday."""

    open: str = DEFAULT_OPENING_TIME
    close: str = DEFAULT_CLOSING_TIME
    closed: bool = False

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "DayHours":
        if not payload:
            return cls()
        return cls(
            open=payload.get("open") or DEFAULT_OPENING_TIME,
            close=payload.get("close") or DEFAULT_CLOSING_TIME,
            closed=bool(payload.get("closed", False)),
        )


DEFAULT_DAY_HOURS = DayHours()

OpeningHours = Dict[str, DayHours]


def parse_opening_hours(payload: Optional[Mapping[str, Any]]) -> OpeningHours:
    """Parse an establishment ``openingHours`` mapping keyed by weekday name."""

    if not payload:
        return {}
    parsed: OpeningHours = {}
    for day_name in WEEKDAY_NAMES:
        if day_name in payload:
            parsed[day_name] = DayHours.from_payload(payload.get(day_name))
    return parsed


def hours_for_date(opening_hours: Optional[OpeningHours], day: DateLike) -> DayHours:
    """Return the opening window for ``day``, defaulting when unconfigured."""

    weekday_name = WEEKDAY_NAMES[parse_iso_date(day).weekday()]
    if not opening_hours:
        return DEFAULT_DAY_HOURS
    return opening_hours.get(weekday_name, DEFAULT_DAY_HOURS)


def fits_business_hours(time_str: str, duration_minutes: int, hours: DayHours) -> bool:
    """True when ``[time, time + duration)`` lies inside the opening window.

    A closing time at or before the opening time belongs to the next day, so
    ``close="00:00"`` is midnight and ``close="01:00"`` is 1 AM.
    """

    if hours.closed:
        return False
    opening = time_to_minutes(hours.open)
    closing = time_to_minutes(hours.close)
    if closing <= opening:
        closing += MINUTES_PER_DAY
    start = time_to_minutes(time_str)
    end = start + int(duration_minutes)
    return opening <= start and end <= closing
