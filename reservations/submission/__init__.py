"""Booking submission: single bookings and non-atomic recurring series."""

from .metrics import SubmissionStats
from .orchestrator import BookingSubmissionOrchestrator, SubmissionState
from .pricing import occurrence_price, price_for_duration

__all__ = [
    "BookingSubmissionOrchestrator",
    "SubmissionState",
    "SubmissionStats",
    "occurrence_price",
    "price_for_duration",
]
