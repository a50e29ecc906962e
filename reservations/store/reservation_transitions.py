"""State transition helpers for reservations."""

from __future__ import annotations

from typing import Any

from infrastructure.constants import STATUS_ACTIONS
from reservations.models import Reservation, ReservationStatus

# Statuses from which each admin action may be issued.
ALLOWED_SOURCE_STATUSES = {
    "confirm": {ReservationStatus.PENDING},
    "cancel": {ReservationStatus.PENDING, ReservationStatus.CONFIRMED},
    "start": {ReservationStatus.PENDING, ReservationStatus.CONFIRMED},
    "complete": {ReservationStatus.IN_PROGRESS, ReservationStatus.CONFIRMED},
    "no_show": {ReservationStatus.PENDING, ReservationStatus.CONFIRMED},
}


def status_for_action(action: str) -> ReservationStatus:
    """Return the status the backend records for an admin action."""

    try:
        return ReservationStatus(STATUS_ACTIONS[action])
    except KeyError:
        raise ValueError(f"Unknown reservation action: {action}") from None


def can_apply_action(reservation: Reservation, action: str) -> bool:
    """Client-side guard; the backend still decides with ``ConflictError``."""

    status_for_action(action)
    if reservation.status.is_terminal:
        return False
    return reservation.status in ALLOWED_SOURCE_STATUSES[action]


def apply_status_update(
    reservation: Reservation,
    new_status: ReservationStatus,
    **updates: Any,
) -> Reservation:
    """Return a copy of ``reservation`` with a new status and extra fields."""

    return reservation.with_updates(status=new_status, **updates)
