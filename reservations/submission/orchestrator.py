"""
Booking Submission Orchestrator

Turns booking drafts into backend create calls. Single bookings are all or
nothing; recurring series are created one occurrence at a time and may end
partially created, which is reported rather than rolled back.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from infrastructure.errors import NotFoundError
from infrastructure.settings import AppSettings, current_local_time, get_settings
from reservations.contracts import (
    BookingDraft,
    OccurrenceFailure,
    RecurringBookingDraft,
    ResolvedOccurrence,
    SubmissionResult,
    SubmissionStatus,
    compose_booking_payload,
)
from reservations.models import Reservation, Resource, ResourceKind
from reservations.recurring.reconciler import RecurringAvailabilityReconciler
from reservations.store import ReservationStore
from .metrics import SubmissionStats
from .pricing import occurrence_price


class SubmissionState(Enum):
    """Where the orchestrator is in its current submission."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    COMPLETED = "completed"


class BookingSubmissionOrchestrator:
    """
    Sequences create-booking calls and keeps the reservation store in step.

    Attributes:
        api: Backend collaborator (``create_booking`` and, optionally,
            ``create_recurring_booking_group``)
        store: Reservation store updated after every successful create
        state: Current ``SubmissionState``
        stats: Session counters
        logger: Logger instance for this class
    """

    def __init__(
        self,
        api: Any,
        store: ReservationStore,
        *,
        resources: Optional[Iterable[Resource]] = None,
        establishment_id: Optional[str] = None,
        use_group_endpoint: Optional[bool] = None,
        stats: Optional[SubmissionStats] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[AppSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        settings = settings or get_settings()
        self.logger = logger or logging.getLogger('BookingSubmission')
        self.api = api
        self.store = store
        self.resources: Dict[str, Resource] = {resource.id: resource for resource in resources or []}
        self.establishment_id = establishment_id
        self.use_group_endpoint = (
            settings.recurring_group_endpoint if use_group_endpoint is None else use_group_endpoint
        )
        self.stats = stats or SubmissionStats()
        self.state = SubmissionState.IDLE
        self._clock = clock or (lambda: current_local_time(settings))

    async def submit(
        self,
        draft: Union[BookingDraft, RecurringBookingDraft],
        *,
        reconciler: Optional[RecurringAvailabilityReconciler] = None,
    ) -> SubmissionResult:
        if isinstance(draft, RecurringBookingDraft):
            return await self.submit_recurring(draft, reconciler=reconciler)
        return await self.submit_single(draft)

    def predict_conflicts(self, draft: BookingDraft) -> List[Reservation]:
        """Reservations in the store that appear to overlap ``draft``."""

        return self.store.predict_conflicts(
            draft.resource_id,
            draft.date,
            draft.start_time,
            draft.duration,
        )

    # ------------------------------------------------------------------
    # Single booking
    # ------------------------------------------------------------------
    async def submit_single(self, draft: BookingDraft) -> SubmissionResult:
        """Create one booking; errors are logged and re-raised."""

        started_at = self._clock()
        self.state = SubmissionState.SUBMITTING
        conflicts = self.predict_conflicts(draft)
        if conflicts:
            self.logger.warning(
                "Submitting %s %s on %s despite %s overlapping local reservation(s)",
                draft.date,
                draft.start_time,
                draft.resource_id,
                len(conflicts),
            )

        payload = compose_booking_payload(draft)
        begin = time.monotonic()
        reservation: Optional[Reservation] = None
        try:
            reservation = await asyncio.shield(self._create_and_store(payload))
        except Exception as exc:
            self.stats.record_failure(time.monotonic() - begin)
            self.logger.error(f"""BOOKING FAILED
            Resource: {draft.resource_id}
            Date: {draft.date} {draft.start_time}
            Error: {exc}
            """)
            raise
        finally:
            self.state = SubmissionState.SUCCEEDED if reservation is not None else SubmissionState.FAILED

        self.stats.record_success(time.monotonic() - begin)
        self.logger.info(f"""BOOKING CREATED
        Reservation ID: {reservation.id}
        Resource: {reservation.resource_id}
        Date: {reservation.date} {reservation.time}
        """)
        return SubmissionResult(
            status=SubmissionStatus.SUCCESS,
            reservations=(reservation,),
            message="Booking created.",
            started_at=started_at,
            completed_at=self._clock(),
        )

    # ------------------------------------------------------------------
    # Recurring series
    # ------------------------------------------------------------------
    async def submit_recurring(
        self,
        draft: RecurringBookingDraft,
        *,
        reconciler: Optional[RecurringAvailabilityReconciler] = None,
    ) -> SubmissionResult:
        """Create every occurrence of ``draft`` in ascending date order."""

        started_at = self._clock()
        self.state = SubmissionState.SUBMITTING
        if reconciler is not None:
            reconciler.mark_submitting()

        occurrences = draft.ordered_occurrences()
        self.logger.info(
            "Submitting recurring series of %s occurrence(s) starting %s",
            len(occurrences),
            occurrences[0].date,
        )

        failures: List[OccurrenceFailure] = []
        result: Optional[SubmissionResult] = None
        try:
            created: Optional[List[Reservation]] = None
            if self._group_path_applies(draft, occurrences):
                created = await self._try_group_create(draft, occurrences, failures)

            if created is None:
                created = []
                for occurrence in occurrences:
                    reservation = await self._create_occurrence(draft, occurrence, failures)
                    if reservation is not None:
                        created.append(reservation)

            result = SubmissionResult.from_batch(
                created,
                failures,
                started_at=started_at,
                completed_at=self._clock(),
            )
        finally:
            # Interrupted batches still close the reconciler.
            self.state = SubmissionState.COMPLETED if result is not None else SubmissionState.FAILED
            if reconciler is not None:
                reconciler.mark_completed(result)

        self.stats.record_batch(partial=result.status is SubmissionStatus.PARTIAL)

        log = self.logger.info if not failures else self.logger.warning
        log(f"""RECURRING SUBMISSION {result.status.value.upper()}
        Created: {result.success_count}
        Failed: {result.error_count}
        Failed dates: {', '.join(day.isoformat() for day in result.failed_dates) or '-'}
        """)
        return result

    async def _create_occurrence(
        self,
        draft: RecurringBookingDraft,
        occurrence: ResolvedOccurrence,
        failures: List[OccurrenceFailure],
    ) -> Optional[Reservation]:
        base = draft.base
        price = occurrence_price(self.resources, occurrence.resource_id, base.duration, base.total_price)
        payload = compose_booking_payload(
            base,
            target_date=occurrence.date,
            resource_id=occurrence.resource_id,
            start_time=occurrence.time,
            total_amount=price,
        )
        begin = time.monotonic()
        try:
            reservation = await asyncio.shield(self._create_and_store(payload))
        except Exception as exc:
            self.stats.record_failure(time.monotonic() - begin)
            self.logger.error("Error creating reservation for %s: %s", occurrence.date, exc)
            failures.append(
                OccurrenceFailure(
                    date=occurrence.date,
                    resource_id=occurrence.resource_id,
                    time=occurrence.time,
                    error=str(exc),
                )
            )
            return None
        self.stats.record_success(time.monotonic() - begin)
        return reservation

    def _group_path_applies(
        self,
        draft: RecurringBookingDraft,
        occurrences: List[ResolvedOccurrence],
    ) -> bool:
        if not self.use_group_endpoint or not self.establishment_id:
            return False
        if draft.base.resource_kind is not ResourceKind.COURT:
            return False
        # Group requests carry one start time for the whole series.
        return all(item.time == draft.base.start_time for item in occurrences)

    async def _try_group_create(
        self,
        draft: RecurringBookingDraft,
        occurrences: List[ResolvedOccurrence],
        failures: List[OccurrenceFailure],
    ) -> Optional[List[Reservation]]:
        """Create the series in one call; ``None`` means use per-occurrence creates."""

        payload = self._group_payload(draft, occurrences)
        try:
            reservations = await asyncio.shield(
                self.api.create_recurring_booking_group(payload)
            )
        except NotFoundError:
            self.logger.info("Recurring group endpoint unavailable; creating occurrences one by one")
            return None
        except Exception as exc:
            self.logger.error("Recurring booking group rejected: %s", exc)
            for item in occurrences:
                self.stats.record_failure()
                failures.append(
                    OccurrenceFailure(
                        date=item.date,
                        resource_id=item.resource_id,
                        time=item.time,
                        error=str(exc),
                    )
                )
            return []

        for reservation in reservations:
            self.store.insert(reservation)
        for _ in reservations:
            self.stats.record_success()
        return list(reservations)

    def _group_payload(
        self,
        draft: RecurringBookingDraft,
        occurrences: List[ResolvedOccurrence],
    ) -> Mapping[str, Any]:
        base = draft.base
        anchor = self.resources.get(base.resource_id)
        payload: Dict[str, Any] = {
            "establishmentId": self.establishment_id,
            "courtId": base.resource_id,
            "clientName": base.client.name,
            "clientPhone": base.client.phone,
            "startDate": occurrences[0].date.isoformat(),
            "startTime": base.start_time,
            "duration": base.duration,
            "bookingType": "normal",
            "recurrenceType": draft.rule.value,
            "totalWeeks": len(occurrences),
            "pricePerBooking": base.total_price,
            "notes": base.notes or f"Payment method: {base.payment_method}",
            "dateConfigurations": [
                {"date": item.date.isoformat(), "courtId": item.resource_id, "skip": False}
                for item in occurrences
            ],
        }
        if anchor is not None and anchor.sport:
            payload["sport"] = anchor.sport
        if base.client.client_id:
            payload["clientId"] = base.client.client_id
        if base.client.email:
            payload["clientEmail"] = base.client.email
        if base.deposit_amount > 0:
            payload["initialPayment"] = {"amount": base.deposit_amount, "method": base.payment_method}
        return payload

    async def _create_and_store(self, payload: Mapping[str, Any]) -> Reservation:
        reservation = await self.api.create_booking(payload)
        self.store.insert(reservation)
        return reservation
