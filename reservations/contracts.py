"""Shared booking draft/result contracts for the grid, reconciler and submission."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from availability.time_utils import DateLike, calculate_end_time, parse_iso_date, time_to_minutes
from infrastructure.constants import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    SLOT_INTERVAL_MINUTES,
)
from .models import Reservation, ResourceKind


class RecurrenceRule(Enum):
    """How far apart consecutive occurrences of a recurring booking are."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class ClientInfo:
    """Contact data of the person the booking is for."""

    name: str
    phone: str = ""
    email: str = ""
    client_id: Optional[str] = None


def validate_duration(duration: int) -> None:
    if duration < MIN_DURATION_MINUTES or duration > MAX_DURATION_MINUTES:
        raise ValueError(
            f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
        )
    if duration % SLOT_INTERVAL_MINUTES:
        raise ValueError(f"Duration must be a multiple of {SLOT_INTERVAL_MINUTES} minutes")


@dataclass(frozen=True)
class BookingDraft:
    """A single booking as assembled by the UI, consumed once by submission."""

    resource_id: str
    date: date
    start_time: str
    duration: int
    client: ClientInfo
    total_price: float
    payment_method: str = "cash"
    deposit_amount: float = 0.0
    resource_kind: ResourceKind = ResourceKind.COURT
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", parse_iso_date(self.date))
        validate_duration(self.duration)
        if time_to_minutes(self.start_time) % SLOT_INTERVAL_MINUTES:
            raise ValueError(f"Start time {self.start_time} is not aligned to the slot grid")
        if self.deposit_amount < 0:
            raise ValueError("Deposit amount cannot be negative")
        if self.deposit_amount > self.total_price:
            raise ValueError("Deposit amount cannot exceed the total price")

    @property
    def end_time(self) -> str:
        return calculate_end_time(self.start_time, self.duration)


@dataclass(frozen=True)
class ResolvedOccurrence:
    """Final ``(date, resource, time)`` triple for one recurring occurrence."""

    date: date
    resource_id: str
    time: str


@dataclass(frozen=True)
class RecurringBookingDraft:
    """A recurring series: the anchor draft plus every resolved occurrence."""

    base: BookingDraft
    occurrences: Tuple[ResolvedOccurrence, ...]
    rule: RecurrenceRule = RecurrenceRule.WEEKLY

    def __post_init__(self) -> None:
        if not self.occurrences:
            raise ValueError("A recurring booking needs at least one occurrence")

    @classmethod
    def from_slots(
        cls,
        base: BookingDraft,
        slots: Iterable[ResolvedOccurrence],
        rule: RecurrenceRule = RecurrenceRule.WEEKLY,
    ) -> "RecurringBookingDraft":
        return cls(base=base, occurrences=tuple(slots), rule=rule)

    def ordered_occurrences(self) -> List[ResolvedOccurrence]:
        """Occurrences in ascending date order (then time)."""

        return sorted(self.occurrences, key=lambda item: (item.date, item.time))


class SubmissionStatus(Enum):
    """Overall result of a submission."""

    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL = "partial"


@dataclass(frozen=True)
class OccurrenceFailure:
    """A single occurrence the backend refused."""

    date: date
    resource_id: str
    time: str
    error: str


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome surfaced to the UI after a submission."""

    status: SubmissionStatus
    reservations: Tuple[Reservation, ...] = field(default_factory=tuple)
    failures: Tuple[OccurrenceFailure, ...] = field(default_factory=tuple)
    message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.status == SubmissionStatus.SUCCESS

    @property
    def success_count(self) -> int:
        return len(self.reservations)

    @property
    def error_count(self) -> int:
        return len(self.failures)

    @property
    def failed_dates(self) -> List[date]:
        return [failure.date for failure in self.failures]

    @classmethod
    def from_batch(
        cls,
        reservations: Iterable[Reservation],
        failures: Iterable[OccurrenceFailure],
        *,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> "SubmissionResult":
        created = tuple(reservations)
        failed = tuple(failures)
        if failed and created:
            status = SubmissionStatus.PARTIAL
            message = f"Created {len(created)} bookings. {len(failed)} failed."
        elif failed:
            status = SubmissionStatus.FAILURE
            message = "No bookings could be created. Please try again."
        else:
            status = SubmissionStatus.SUCCESS
            message = f"Created {len(created)} bookings."
        return cls(
            status=status,
            reservations=created,
            failures=failed,
            message=message,
            started_at=started_at,
            completed_at=completed_at,
        )


def compose_booking_payload(
    draft: BookingDraft,
    *,
    target_date: Optional[DateLike] = None,
    resource_id: Optional[str] = None,
    start_time: Optional[str] = None,
    total_amount: Optional[float] = None,
) -> Dict[str, object]:
    """Build the create-booking request body for ``draft``.

    The keyword overrides let a recurring occurrence reuse the anchor draft
    with its own date, resource, time and price.
    """

    booking_time = start_time or draft.start_time
    day = parse_iso_date(target_date) if target_date is not None else draft.date
    payload: Dict[str, object] = {
        "date": day.isoformat(),
        "startTime": booking_time,
        "endTime": calculate_end_time(booking_time, draft.duration),
        "duration": draft.duration,
        "totalAmount": draft.total_price if total_amount is None else total_amount,
        "clientName": draft.client.name,
        "clientPhone": draft.client.phone,
        "paymentType": "full",
        "depositAmount": draft.deposit_amount,
        "notes": draft.notes or f"Payment method: {draft.payment_method}",
    }
    if draft.client.email:
        payload["clientEmail"] = draft.client.email
    if draft.client.client_id:
        payload["clientId"] = draft.client.client_id
    if draft.deposit_amount > 0:
        payload["depositMethod"] = draft.payment_method

    target_resource = resource_id or draft.resource_id
    if draft.resource_kind is ResourceKind.AMENITY:
        payload["amenityId"] = target_resource
    else:
        payload["courtId"] = target_resource
    return payload
