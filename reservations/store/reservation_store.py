"""
Optimistic Reservation Store

Holds the reservations of the visible date range for one admin or booking
session. Mutations are applied locally as soon as the backend accepts them;
an authoritative reload later replaces the whole collection.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
)

from availability.time_utils import DateLike, parse_iso_date
from infrastructure.constants import DEFAULT_RELOAD_LIMIT, DEFAULT_RELOAD_PAGE
from reservations.models import Reservation, ReservationStatus
from .reservation_transitions import apply_status_update
from .reservation_validation import find_overlaps


@dataclass(frozen=True)
class ReservationFilter:
    """Query used for authoritative reloads."""

    date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    future_only: Optional[bool] = None
    page: int = DEFAULT_RELOAD_PAGE
    limit: int = DEFAULT_RELOAD_LIMIT

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.date is not None:
            params["date"] = self.date.isoformat()
        if self.start_date is not None:
            params["startDate"] = self.start_date.isoformat()
        if self.end_date is not None:
            params["endDate"] = self.end_date.isoformat()
        if self.status:
            params["status"] = self.status
        if self.future_only is not None:
            params["futureOnly"] = "true" if self.future_only else "false"
        return params


ReservationLoader = Callable[[ReservationFilter], Awaitable[List[Reservation]]]
StoreListener = Callable[[List[Reservation]], None]


class ReservationStore:
    """
    In-memory reservation collection keyed by id and ordered by (date, time).

    Attributes:
        loader: Coroutine returning the authoritative reservations for a filter
        last_filter: Filter used by the most recent reload
        logger: Logger instance for this class
    """

    def __init__(
        self,
        loader: Optional[ReservationLoader] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger('ReservationStore')
        self.loader = loader
        self.last_filter = ReservationFilter()
        self._items: Dict[str, Reservation] = {}
        self._listeners: List[StoreListener] = []
        self._reload_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Reservation]:
        return iter(self.snapshot())

    def __contains__(self, reservation_id: object) -> bool:
        return reservation_id in self._items

    def get(self, reservation_id: str) -> Optional[Reservation]:
        return self._items.get(reservation_id)

    def snapshot(self) -> List[Reservation]:
        """All reservations ordered by (date, time)."""

        return sorted(self._items.values(), key=lambda item: item.sort_key)

    def list(
        self,
        day: Optional[DateLike] = None,
        resource_id: Optional[str] = None,
        *,
        include_cancelled: bool = True,
    ) -> List[Reservation]:
        target_date = parse_iso_date(day) if day is not None else None
        selected = []
        for reservation in self.snapshot():
            if target_date is not None and reservation.date != target_date:
                continue
            if resource_id is not None and reservation.resource_id != resource_id:
                continue
            if not include_cancelled and not reservation.is_active:
                continue
            selected.append(reservation)
        return selected

    def predict_conflicts(
        self,
        resource_id: str,
        day: DateLike,
        start_time: str,
        duration: int,
        *,
        ignore_id: Optional[str] = None,
    ) -> List[Reservation]:
        """Reservations that look like they overlap a candidate booking."""

        return find_overlaps(
            self._items.values(),
            resource_id=resource_id,
            day=day,
            start_time=start_time,
            duration=duration,
            ignore_id=ignore_id,
        )

    # ------------------------------------------------------------------
    # Optimistic mutations
    # ------------------------------------------------------------------
    def insert(self, reservation: Reservation) -> None:
        """Upsert by id; a later reload of the same id replaces this copy."""

        replaced = reservation.id in self._items
        self._items[reservation.id] = reservation
        self.logger.debug(
            "%s reservation %s (%s %s on %s)",
            "Replaced" if replaced else "Inserted",
            reservation.id,
            reservation.date,
            reservation.time,
            reservation.resource_id,
        )
        self._notify()

    def patch_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        **extra_fields: Any,
    ) -> Optional[Reservation]:
        """Set a new status; unknown ids are ignored (stale view)."""

        current = self._items.get(reservation_id)
        if current is None:
            self.logger.debug("Status patch for unknown reservation %s ignored", reservation_id)
            return None
        updated = apply_status_update(current, ReservationStatus(new_status), **extra_fields)
        self._items[reservation_id] = updated
        self.logger.info(
            "Reservation %s status %s -> %s",
            reservation_id,
            current.status.value,
            updated.status.value,
        )
        self._notify()
        return updated

    def patch(self, reservation_id: str, **fields: Any) -> Optional[Reservation]:
        """Replace arbitrary fields on a reservation; no-op for unknown ids."""

        current = self._items.get(reservation_id)
        if current is None:
            return None
        updated = current.with_updates(**fields)
        self._items[reservation_id] = updated
        self._notify()
        return updated

    def remove(self, reservation_id: str) -> Optional[Reservation]:
        removed = self._items.pop(reservation_id, None)
        if removed is not None:
            self.logger.info("Removed reservation %s", reservation_id)
            self._notify()
        return removed

    # ------------------------------------------------------------------
    # Authoritative refresh
    # ------------------------------------------------------------------
    def replace_all(self, reservations: Iterable[Reservation]) -> None:
        """Server state wins: drop every local copy and take the given list."""

        self._items = {reservation.id: reservation for reservation in reservations}
        self._notify()

    async def reload(self, reservation_filter: Optional[ReservationFilter] = None) -> List[Reservation]:
        if self.loader is None:
            raise RuntimeError("ReservationStore has no loader configured")

        reservation_filter = reservation_filter or self.last_filter
        self.last_filter = reservation_filter
        reservations = await self.loader(reservation_filter)
        self.replace_all(reservations)
        self.logger.info(f"""RESERVATIONS RELOADED
        Filter: {reservation_filter.to_params()}
        Count: {len(self._items)}
        """)
        return self.snapshot()

    def schedule_reload(self, reservation_filter: Optional[ReservationFilter] = None) -> asyncio.Task:
        """Start a reload in the background and return immediately.

        Overlapping reloads are not sequenced: whichever resolves last wins.
        """

        task = asyncio.get_running_loop().create_task(self.reload(reservation_filter))
        self._reload_tasks.add(task)
        task.add_done_callback(self._on_reload_done)
        return task

    async def wait_for_reloads(self) -> None:
        if self._reload_tasks:
            await asyncio.gather(*list(self._reload_tasks), return_exceptions=True)

    def _on_reload_done(self, task: asyncio.Task) -> None:
        self._reload_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error("Background reservation reload failed: %s", error)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register ``listener`` for change notifications; returns unsubscribe."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:  # pragma: no cover - listener bug
                self.logger.error("Reservation store listener failed: %s", exc, exc_info=True)
