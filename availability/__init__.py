"""Slot availability: booking windows, business hours and the slot grid."""

from .time_utils import calculate_end_time, canonical_slot_keys, normalise_time
from .opening_hours import DayHours, fits_business_hours, hours_for_date
from .window_policy import (
    BookingPolicy,
    generate_booking_dates,
    is_bookable,
    is_date_selectable,
)
from .slot_grid import SlotGrid, SlotGridBuilder

__all__ = [
    "calculate_end_time",
    "canonical_slot_keys",
    "normalise_time",
    "DayHours",
    "fits_business_hours",
    "hours_for_date",
    "BookingPolicy",
    "generate_booking_dates",
    "is_bookable",
    "is_date_selectable",
    "SlotGrid",
    "SlotGridBuilder",
]
