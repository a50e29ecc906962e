"""Admin-side reservation actions on top of the backend and the local store."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from availability.time_utils import calculate_end_time, normalise_time
from infrastructure.errors import BookingApiError, ConflictError
from reservations.models import Reservation, Resource, ResourceKind, ReservationStatus
from reservations.store import ReservationFilter, ReservationStore, can_apply_action, status_for_action


class ReservationService:
    """High-level API for the admin reservation list.

    Every action calls the backend first and then patches the store in place;
    only ``move`` patches optimistically before the call.
    """

    def __init__(
        self,
        api: Any,
        store: ReservationStore,
        *,
        establishment_id: Optional[str] = None,
        resources: Optional[Iterable[Resource]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger('ReservationService')
        self.api = api
        self.store = store
        self.establishment_id = establishment_id
        self.resources: Dict[str, Resource] = {resource.id: resource for resource in resources or []}
        if store.loader is None and establishment_id:
            store.loader = self.fetch_reservations

    async def fetch_reservations(self, reservation_filter: ReservationFilter) -> List[Reservation]:
        """Loader used by the store for authoritative reloads."""

        if not self.establishment_id:
            raise ValueError("An establishment id is required to list reservations")
        return await self.api.list_establishment_bookings(
            self.establishment_id,
            reservation_filter.to_params(),
        )

    async def load(self, reservation_filter: Optional[ReservationFilter] = None) -> List[Reservation]:
        return await self.store.reload(reservation_filter)

    def add_created(self, reservation: Reservation) -> None:
        """Show a reservation created elsewhere without waiting for a reload."""

        self.store.insert(reservation)

    # ------------------------------------------------------------------
    # Status actions
    # ------------------------------------------------------------------
    async def apply_action(
        self,
        reservation_id: str,
        action: str,
        *,
        reason: Optional[str] = None,
    ) -> Optional[Reservation]:
        """Run an admin action (confirm, cancel, start, complete, no_show)."""

        new_status = status_for_action(action)
        current = self.store.get(reservation_id)
        if current is not None and not can_apply_action(current, action):
            raise ConflictError(
                f"Cannot {action} reservation {reservation_id} in status {current.status.value}"
            )

        try:
            response = await self.api.update_booking_status(reservation_id, action, reason=reason)
        except BookingApiError as exc:
            self.logger.error("Failed to %s reservation %s: %s", action, reservation_id, exc)
            raise

        extra: Dict[str, Any] = {}
        if new_status is ReservationStatus.IN_PROGRESS:
            booking = (response or {}).get("booking") or {}
            extra["orders"] = list(booking.get("orders") or [])
        elif new_status is ReservationStatus.CANCELLED and reason:
            extra["cancellation_reason"] = reason

        self.logger.info("Reservation %s -> %s", reservation_id, new_status.value)
        return self.store.patch_status(reservation_id, new_status, **extra)

    async def confirm(self, reservation_id: str) -> Optional[Reservation]:
        return await self.apply_action(reservation_id, "confirm")

    async def cancel(self, reservation_id: str, reason: Optional[str] = None) -> Optional[Reservation]:
        return await self.apply_action(reservation_id, "cancel", reason=reason)

    async def start(self, reservation_id: str) -> Optional[Reservation]:
        return await self.apply_action(reservation_id, "start")

    async def complete(self, reservation_id: str) -> Optional[Reservation]:
        return await self.apply_action(reservation_id, "complete")

    async def no_show(self, reservation_id: str) -> Optional[Reservation]:
        return await self.apply_action(reservation_id, "no_show")

    # ------------------------------------------------------------------
    # Move / delete
    # ------------------------------------------------------------------
    async def move(self, reservation_id: str, resource_id: str, start_time: str) -> Reservation:
        """Move a reservation to another resource or start time on the same day.

        The store is patched before the backend call. If the backend refuses,
        the change is reverted by a background reload and the error re-raised.
        """

        current = self.store.get(reservation_id)
        if current is None:
            raise KeyError(f"Reservation {reservation_id} is not loaded")

        start_time = normalise_time(start_time)
        end_time = calculate_end_time(start_time, current.duration)
        target = self.resources.get(resource_id)
        moved = self.store.patch(
            reservation_id,
            resource_id=resource_id,
            resource_name=target.name if target else current.resource_name,
            time=start_time,
            end_time=end_time,
        )

        key = "amenityId" if current.resource_kind is ResourceKind.AMENITY else "courtId"
        try:
            await self.api.update_booking(
                reservation_id,
                {key: resource_id, "startTime": start_time, "endTime": end_time},
            )
        except BookingApiError as exc:
            self.logger.error("Error moving reservation %s: %s", reservation_id, exc)
            if self.store.loader is not None:
                self.store.schedule_reload()
            else:
                self.store.insert(current)
            raise

        self.logger.info(
            "Moved reservation %s to %s at %s",
            reservation_id,
            resource_id,
            start_time,
        )
        return moved

    async def delete(self, reservation_id: str) -> None:
        await self.api.delete_booking(reservation_id)
        self.store.remove(reservation_id)


__all__ = ["ReservationService"]
