"""Optimistic reservation state for a single session."""

from .reservation_store import ReservationFilter, ReservationStore
from .reservation_transitions import apply_status_update, can_apply_action, status_for_action
from .reservation_validation import find_overlaps, intervals_overlap

__all__ = [
    "ReservationFilter",
    "ReservationStore",
    "apply_status_update",
    "can_apply_action",
    "status_for_action",
    "find_overlaps",
    "intervals_overlap",
]
