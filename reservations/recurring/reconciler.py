"""
Recurring Availability Reconciler

Asks the backend which occurrences of a recurring booking collide with
existing reservations, keeps the per-occurrence resolution state, and turns
the result into the ``(date, resource, time)`` triples the submission step
consumes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from availability.time_utils import DateLike, normalise_time, parse_iso_date
from reservations.contracts import (
    BookingDraft,
    RecurrenceRule,
    RecurringBookingDraft,
    ResolvedOccurrence,
)
from reservations.models import ResourceKind
from .dates import compute_occurrence_dates


class AlternativeKind(Enum):
    """How an alternative differs from the requested slot."""

    SAME_RESOURCE_DIFF_TIME = "same_resource_diff_time"
    DIFF_RESOURCE = "diff_resource"


@dataclass(frozen=True)
class Alternative:
    """A substitute ``(resource, time)`` offered for a conflicting occurrence."""

    resource_id: str
    time: str
    kind: Optional[AlternativeKind] = None
    price: Optional[float] = None
    resource_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], requested_resource_id: str) -> "Alternative":
        resource_id = str(
            payload.get("courtId")
            or payload.get("amenityId")
            or payload.get("resourceId")
            or requested_resource_id
        )
        try:
            kind = AlternativeKind(payload.get("type"))
        except ValueError:
            kind = (
                AlternativeKind.SAME_RESOURCE_DIFF_TIME
                if resource_id == requested_resource_id
                else AlternativeKind.DIFF_RESOURCE
            )
        price = payload.get("price")
        return cls(
            resource_id=resource_id,
            time=normalise_time(payload.get("time") or payload.get("startTime")),
            kind=kind,
            price=float(price) if price is not None else None,
            resource_name=payload.get("courtName") or payload.get("amenityName"),
        )


@dataclass(frozen=True)
class RecurrenceOccurrence:
    """Availability and resolution state of one date in the series."""

    date: date
    available: bool = True
    conflict: Optional[Any] = None
    alternatives: Tuple[Alternative, ...] = field(default_factory=tuple)
    resolved: bool = False
    chosen_alternative: Optional[Alternative] = None
    skipped: bool = False

    @property
    def needs_resolution(self) -> bool:
        return not self.available and not self.resolved


@dataclass(frozen=True)
class RecurringRequest:
    """Anchor slot and recurrence parameters of a recurring booking."""

    establishment_id: str
    resource_id: str
    start_date: date
    start_time: str
    duration: int
    occurrence_count: int
    rule: RecurrenceRule = RecurrenceRule.WEEKLY
    resource_kind: ResourceKind = ResourceKind.COURT
    sport: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", parse_iso_date(self.start_date))
        object.__setattr__(self, "rule", RecurrenceRule(self.rule))
        if self.occurrence_count < 1:
            raise ValueError("occurrence_count must be at least 1")

    def dates(self) -> List[date]:
        return compute_occurrence_dates(self.start_date, self.rule, self.occurrence_count)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "establishmentId": self.establishment_id,
            "startDate": self.start_date.isoformat(),
            "startTime": self.start_time,
            "duration": self.duration,
            "totalWeeks": self.occurrence_count,
            "recurrenceType": self.rule.value,
        }
        if self.resource_kind is ResourceKind.AMENITY:
            payload["amenityId"] = self.resource_id
        else:
            payload["courtId"] = self.resource_id
            if self.sport and self.sport != "amenity":
                payload["sport"] = self.sport
        return payload


class RecurringState(Enum):
    """Lifecycle of a recurring booking from check to submission."""

    IDLE = "idle"
    CHECKING_AVAILABILITY = "checking_availability"
    CONFLICTS_PENDING = "conflicts_pending"
    READY_TO_SUBMIT = "ready_to_submit"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


class RecurringAvailabilityReconciler:
    """
    Orchestrates the recurring availability check and conflict resolution.

    Conflict detection itself belongs to the backend; this class only maps its
    answer onto the locally computed dates and tracks what the user chose for
    each occurrence. Alternatives are not cross-checked against each other.

    Attributes:
        api: Collaborator exposing ``check_recurring_availability(payload)``
        state: Current ``RecurringState``
        request: Request of the most recent check
        summary: Backend summary of the most recent check
        logger: Logger instance for this class
    """

    def __init__(self, api: Any, *, logger: Optional[logging.Logger] = None) -> None:
        self.api = api
        self.logger = logger or logging.getLogger('RecurringReconciler')
        self.state = RecurringState.IDLE
        self.request: Optional[RecurringRequest] = None
        self.summary: Dict[str, Any] = {}
        self.last_result: Optional[Any] = None
        self._occurrences: Dict[date, RecurrenceOccurrence] = {}
        self._checked = False
        self._inflight: Optional[asyncio.Future] = None
        self._abandon_requested = False

    # ------------------------------------------------------------------
    # Availability check
    # ------------------------------------------------------------------
    async def check_availability(self, request: RecurringRequest) -> List[RecurrenceOccurrence]:
        """Ask the backend about every occurrence of ``request``.

        Backend errors propagate; the reconciler goes back to ``idle``.
        An abandoned check returns an empty list without raising.
        """

        self.reset()
        self.request = request
        self.state = RecurringState.CHECKING_AVAILABILITY
        dates = request.dates()
        self.logger.info(
            "Checking %s %s occurrences of %s at %s from %s",
            len(dates),
            request.rule.value,
            request.resource_id,
            request.start_time,
            request.start_date,
        )

        inflight = asyncio.ensure_future(self.api.check_recurring_availability(request.to_payload()))
        self._inflight = inflight
        try:
            response = await inflight
        except asyncio.CancelledError:
            if self._abandon_requested:
                self.logger.debug("Recurring availability check abandoned")
                self.reset()
                return []
            self.state = RecurringState.IDLE
            raise
        except Exception as exc:
            self.logger.error("Recurring availability check failed: %s", exc)
            self.state = RecurringState.IDLE
            raise
        finally:
            self._inflight = None

        self._occurrences = self._map_response(request, dates, response or {})
        self.summary = dict((response or {}).get("summary") or {})
        self._checked = True
        self._refresh_state()

        pending = [item.date.isoformat() for item in self._occurrences.values() if item.needs_resolution]
        if pending:
            self.logger.warning(f"""RECURRING CONFLICTS FOUND
            Resource: {request.resource_id}
            Dates: {', '.join(pending)}
            """)
        return self.occurrences

    def abandon(self) -> None:
        """Drop an in-flight check without surfacing an error."""

        if self._inflight is not None and not self._inflight.done():
            self._abandon_requested = True
            self._inflight.cancel()

    def reset(self) -> None:
        self.state = RecurringState.IDLE
        self.summary = {}
        self.last_result = None
        self._occurrences = {}
        self._checked = False
        self._abandon_requested = False

    def _map_response(
        self,
        request: RecurringRequest,
        dates: List[date],
        response: Mapping[str, Any],
    ) -> Dict[date, RecurrenceOccurrence]:
        reported: Dict[date, Mapping[str, Any]] = {}
        for item in response.get("availability") or []:
            try:
                reported[parse_iso_date(item["date"])] = item
            except (KeyError, TypeError, ValueError):
                self.logger.debug("Ignoring availability entry without a usable date: %r", item)

        occurrences: Dict[date, RecurrenceOccurrence] = {}
        for day in dates:
            item = reported.get(day)
            if item is None:
                self.logger.debug("Backend reported nothing for %s; assuming available", day)
                occurrences[day] = RecurrenceOccurrence(date=day)
                continue
            occurrences[day] = self._occurrence_from_payload(request, day, item)
        return occurrences

    @staticmethod
    def _occurrence_from_payload(
        request: RecurringRequest,
        day: date,
        item: Mapping[str, Any],
    ) -> RecurrenceOccurrence:
        primary = item.get("primaryCourt") or item.get("primaryResource") or {}
        available = primary.get("available", True) is not False
        alternatives = tuple(
            Alternative.from_payload(entry, request.resource_id)
            for entry in item.get("alternatives") or []
        )

        chosen = None
        selected = item.get("selectedCourt") or item.get("selectedResource")
        if selected:
            selected_id = str(selected.get("id")) if isinstance(selected, Mapping) else str(selected)
            chosen = Alternative(
                resource_id=selected_id,
                time=request.start_time,
                kind=(
                    AlternativeKind.SAME_RESOURCE_DIFF_TIME
                    if selected_id == request.resource_id
                    else AlternativeKind.DIFF_RESOURCE
                ),
            )
        skipped = bool(item.get("isSkipped"))
        return RecurrenceOccurrence(
            date=day,
            available=available,
            conflict=primary.get("conflictWith"),
            alternatives=alternatives,
            resolved=available or chosen is not None or skipped,
            chosen_alternative=chosen,
            skipped=skipped,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    @property
    def occurrences(self) -> List[RecurrenceOccurrence]:
        return [self._occurrences[day] for day in sorted(self._occurrences)]

    def occurrence(self, day: DateLike) -> RecurrenceOccurrence:
        target = parse_iso_date(day)
        if target not in self._occurrences:
            raise KeyError(f"No occurrence on {target.isoformat()}")
        return self._occurrences[target]

    def apply_alternative(self, day: DateLike, alternative: Alternative) -> RecurrenceOccurrence:
        """Resolve one occurrence with ``alternative``; other occurrences are untouched."""

        current = self.occurrence(day)
        updated = replace(current, resolved=True, chosen_alternative=alternative, skipped=False)
        self._occurrences[current.date] = updated
        self.logger.info(
            "Occurrence %s resolved with %s at %s",
            current.date,
            alternative.resource_id,
            alternative.time,
        )
        self._refresh_state()
        return updated

    def skip(self, day: DateLike) -> RecurrenceOccurrence:
        """Leave an occurrence out of the submission."""

        current = self.occurrence(day)
        updated = replace(current, skipped=True, resolved=True)
        self._occurrences[current.date] = updated
        self.logger.info("Occurrence %s skipped", current.date)
        self._refresh_state()
        return updated

    @property
    def has_conflicts(self) -> bool:
        return any(not item.available for item in self._occurrences.values())

    @property
    def unresolved(self) -> List[RecurrenceOccurrence]:
        return [item for item in self.occurrences if item.needs_resolution]

    @property
    def can_submit(self) -> bool:
        if not self._checked or self.state in (RecurringState.SUBMITTING, RecurringState.COMPLETED):
            return False
        occurrences = self._occurrences.values()
        return all(item.available or item.resolved for item in occurrences) and any(
            not item.skipped for item in occurrences
        )

    def resolved_slots(self) -> List[ResolvedOccurrence]:
        """Final triples for every non-skipped occurrence, ascending by date."""

        if self.request is None:
            return []
        slots = []
        for item in self.occurrences:
            if item.skipped:
                continue
            if item.chosen_alternative is not None:
                slots.append(
                    ResolvedOccurrence(
                        date=item.date,
                        resource_id=item.chosen_alternative.resource_id,
                        time=item.chosen_alternative.time,
                    )
                )
            else:
                slots.append(
                    ResolvedOccurrence(
                        date=item.date,
                        resource_id=self.request.resource_id,
                        time=self.request.start_time,
                    )
                )
        return slots

    def build_draft(self, base: BookingDraft) -> RecurringBookingDraft:
        if not self.can_submit:
            raise ValueError("Recurring booking still has unresolved conflicts")
        rule = self.request.rule if self.request else RecurrenceRule.WEEKLY
        return RecurringBookingDraft.from_slots(base, self.resolved_slots(), rule)

    # ------------------------------------------------------------------
    # Submission hooks
    # ------------------------------------------------------------------
    def mark_submitting(self) -> None:
        self.state = RecurringState.SUBMITTING

    def mark_completed(self, result: Any = None) -> None:
        self.last_result = result
        self.state = RecurringState.COMPLETED

    def _refresh_state(self) -> None:
        if self.state not in (
            RecurringState.CHECKING_AVAILABILITY,
            RecurringState.CONFLICTS_PENDING,
            RecurringState.READY_TO_SUBMIT,
        ):
            return
        if any(item.needs_resolution for item in self._occurrences.values()):
            self.state = RecurringState.CONFLICTS_PENDING
        else:
            self.state = RecurringState.READY_TO_SUBMIT

