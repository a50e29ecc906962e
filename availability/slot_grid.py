"""Unified slot grid built from per-resource availability queries."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from infrastructure.constants import ALL_RESOURCES_FAILED_WARNING
from infrastructure.settings import AppSettings, current_local_time, get_settings
from reservations.models.resource import Resource
from reservations.models.time_slot import TimeSlot
from .opening_hours import fits_business_hours, hours_for_date
from .time_utils import DateLike, canonical_slot_keys, normalise_time, parse_iso_date
from .window_policy import BookingPolicy, is_bookable

AvailabilityFetcher = Callable[[Resource, date, int], Awaitable[List[Mapping[str, Any]]]]
Clock = Callable[[], datetime]


@dataclass(frozen=True)
class SlotGrid:
    """Merged availability for one ``(date, duration, sport)`` selection."""

    date: date
    duration: int
    slots: Tuple[TimeSlot, ...] = field(default_factory=tuple)
    degraded: bool = False
    warning: Optional[str] = None
    failed_resource_ids: Tuple[str, ...] = field(default_factory=tuple)
    abandoned: bool = False

    def __iter__(self) -> Iterator[TimeSlot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def slot(self, time_str: str) -> Optional[TimeSlot]:
        for item in self.slots:
            if item.time == time_str:
                return item
        return None

    def resources_at(self, time_str: str) -> FrozenSet[str]:
        item = self.slot(time_str)
        return item.resource_ids if item else frozenset()

    def available_times(self) -> List[str]:
        return [item.time for item in self.slots if item.available]


class SlotGridBuilder:
    """Fan out one availability query per resource and merge the answers.

    Queries run concurrently; a failing resource is logged and contributes no
    slots. Only when every resource fails does the builder fall back to an
    estimated grid derived from business hours.
    """

    def __init__(
        self,
        fetch_availability: AvailabilityFetcher,
        *,
        policy: Optional[BookingPolicy] = None,
        clock: Optional[Clock] = None,
        max_concurrent: Optional[int] = None,
        timeout_per_resource: Optional[float] = None,
        settings: Optional[AppSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        settings = settings or get_settings()
        self.logger = logger or logging.getLogger('SlotGridBuilder')
        self._fetch_availability = fetch_availability
        self.policy = policy or BookingPolicy(
            min_advance_hours=settings.default_min_advance_hours,
            max_advance_days=settings.default_max_advance_days,
            allow_same_day=settings.default_allow_same_day,
        )
        self._clock = clock or (lambda: current_local_time(settings))
        if max_concurrent is None:
            max_concurrent = settings.availability_max_concurrent
        self._max_concurrent = max_concurrent if max_concurrent and max_concurrent > 0 else None
        self._timeout = (
            timeout_per_resource
            if timeout_per_resource is not None
            else settings.availability_timeout_seconds
        )
        self._pending: Set[asyncio.Future] = set()
        self._abandoned: Set[asyncio.Future] = set()

    async def build_grid(
        self,
        resources: Sequence[Resource],
        day: DateLike,
        duration_minutes: int,
        *,
        sport: Optional[str] = None,
    ) -> SlotGrid:
        target_date = parse_iso_date(day)
        targets = self._select_resources(resources, sport)
        if not targets:
            self.logger.info("No resources to check for %s (sport=%s)", target_date, sport)
            return SlotGrid(date=target_date, duration=duration_minutes)

        semaphore = asyncio.Semaphore(self._max_concurrent) if self._max_concurrent else None
        gathered = asyncio.gather(
            *(self._fetch_one(resource, target_date, duration_minutes, semaphore) for resource in targets),
            return_exceptions=True,
        )
        self._pending.add(gathered)
        try:
            results = await gathered
        except asyncio.CancelledError:
            if gathered in self._abandoned:
                self.logger.debug("Availability check for %s abandoned", target_date)
                return SlotGrid(date=target_date, duration=duration_minutes, abandoned=True)
            raise
        finally:
            self._pending.discard(gathered)
            self._abandoned.discard(gathered)

        merged = {key: set() for key in canonical_slot_keys()}
        failed: List[str] = []
        for resource, result in zip(targets, results):
            if isinstance(result, BaseException):
                failed.append(resource.id)
                self._log_failure(resource, result)
                continue
            self._merge_resource_slots(merged, resource, result)

        if len(failed) == len(targets):
            self.logger.warning(
                "All %s availability queries failed for %s; using estimated grid",
                len(targets),
                target_date,
            )
            return SlotGrid(
                date=target_date,
                duration=duration_minutes,
                slots=self._fallback_slots(targets, target_date, duration_minutes),
                degraded=True,
                warning=ALL_RESOURCES_FAILED_WARNING,
                failed_resource_ids=tuple(failed),
            )

        slots = self._finalise(merged, target_date, duration_minutes)
        self.logger.info(
            "Grid for %s (%s min): %s/%s slots available across %s resources",
            target_date,
            duration_minutes,
            sum(1 for item in slots if item.available),
            len(slots),
            len(targets),
        )
        return SlotGrid(
            date=target_date,
            duration=duration_minutes,
            slots=slots,
            failed_resource_ids=tuple(failed),
        )

    def abandon(self) -> None:
        """Cancel every in-flight build; abandoned builds return an empty grid."""

        for gathered in list(self._pending):
            if not gathered.done():
                self._abandoned.add(gathered)
                gathered.cancel()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _select_resources(resources: Iterable[Resource], sport: Optional[str]) -> List[Resource]:
        selected = [resource for resource in resources if resource.is_active]
        if sport and sport != "all":
            selected = [resource for resource in selected if resource.sport == sport]
        return selected

    async def _fetch_one(
        self,
        resource: Resource,
        target_date: date,
        duration_minutes: int,
        semaphore: Optional[asyncio.Semaphore],
    ) -> List[Mapping[str, Any]]:
        if semaphore is None:
            return await self._fetch_with_timeout(resource, target_date, duration_minutes)
        async with semaphore:
            return await self._fetch_with_timeout(resource, target_date, duration_minutes)

    async def _fetch_with_timeout(
        self,
        resource: Resource,
        target_date: date,
        duration_minutes: int,
    ) -> List[Mapping[str, Any]]:
        call = self._fetch_availability(resource, target_date, duration_minutes)
        if not self._timeout:
            return await call
        return await asyncio.wait_for(call, timeout=self._timeout)

    def _log_failure(self, resource: Resource, error: BaseException) -> None:
        if isinstance(error, asyncio.TimeoutError):
            self.logger.error(
                "Resource %s availability timed out after %.1fs",
                resource.id,
                self._timeout,
            )
        elif isinstance(error, asyncio.CancelledError):
            self.logger.debug("Resource %s availability query cancelled", resource.id)
        else:
            self.logger.error("Resource %s availability check failed: %s", resource.id, error)

    def _merge_resource_slots(
        self,
        merged: Dict[str, Set[str]],
        resource: Resource,
        reported: Iterable[Mapping[str, Any]],
    ) -> None:
        for entry in reported or []:
            if entry.get("available") is False:
                continue
            raw_time = entry.get("startTime") or entry.get("time")
            try:
                key = normalise_time(raw_time)
            except (TypeError, ValueError):
                self.logger.debug("Resource %s reported unparseable time %r", resource.id, raw_time)
                continue
            if key in merged:
                merged[key].add(resource.id)

    def _finalise(
        self,
        merged: Mapping[str, Set[str]],
        target_date: date,
        duration_minutes: int,
    ) -> Tuple[TimeSlot, ...]:
        now = self._clock()
        hours = hours_for_date(self.policy.opening_hours, target_date)
        slots = []
        for time_key in sorted(merged):
            resource_ids = frozenset(merged[time_key])
            available = (
                bool(resource_ids)
                and is_bookable(time_key, target_date, now, self.policy.min_advance_hours)
                and fits_business_hours(time_key, duration_minutes, hours)
            )
            slots.append(TimeSlot(time=time_key, available=available, resource_ids=resource_ids))
        return tuple(slots)

    def _fallback_slots(
        self,
        targets: Sequence[Resource],
        target_date: date,
        duration_minutes: int,
    ) -> Tuple[TimeSlot, ...]:
        hours = hours_for_date(self.policy.opening_hours, target_date)
        every_resource = {resource.id for resource in targets}
        merged = {
            key: set(every_resource) if fits_business_hours(key, duration_minutes, hours) else set()
            for key in canonical_slot_keys()
        }
        return self._finalise(merged, target_date, duration_minutes)
