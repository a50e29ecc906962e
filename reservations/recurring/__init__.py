"""Recurring booking occurrence generation and conflict resolution."""

from .dates import add_months, compute_occurrence_dates
from .reconciler import (
    Alternative,
    AlternativeKind,
    RecurrenceOccurrence,
    RecurringAvailabilityReconciler,
    RecurringRequest,
    RecurringState,
)

__all__ = [
    "add_months",
    "compute_occurrence_dates",
    "Alternative",
    "AlternativeKind",
    "RecurrenceOccurrence",
    "RecurringAvailabilityReconciler",
    "RecurringRequest",
    "RecurringState",
]
