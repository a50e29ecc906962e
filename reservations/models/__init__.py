"""Domain model definitions for the booking core."""

from .reservation import PaymentStatus, Reservation, ReservationStatus
from .resource import Resource, ResourceKind
from .time_slot import TimeSlot

__all__ = [
    "PaymentStatus",
    "Reservation",
    "ReservationStatus",
    "Resource",
    "ResourceKind",
    "TimeSlot",
]
