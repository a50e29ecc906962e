"""Shared fakes and utilities for unit tests."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from availability.time_utils import calculate_end_time
from infrastructure.errors import NotFoundError
from infrastructure.settings import load_settings
from reservations.models import Reservation, ReservationStatus, Resource, ResourceKind


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    def critical(self, *args: Any, **kwargs: Any) -> None:
        self._record("critical", *args, **kwargs)

    def exception(self, *args: Any, **kwargs: Any) -> None:
        self._record("exception", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""

        formatted: List[Tuple[str, Any]] = []
        for level, args, kwargs in self.records:
            message: Any = kwargs.get("msg")
            if args:
                template = args[0]
                if isinstance(template, str) and len(args) > 1:
                    try:
                        message = template % args[1:]
                    except (TypeError, ValueError):
                        message = template
                else:
                    message = template
            formatted.append((level, message))
        return formatted

    def levels(self) -> List[str]:
        return [level for level, _, _ in self.records]


def make_settings(**overrides: str):
    """Settings built from an explicit mapping so tests never read ``.env``."""

    env = {"PRODUCTION_MODE": "false", "LOG_DIRECTORY": "logs"}
    env.update(overrides)
    return load_settings(env)


def fixed_clock(moment: datetime) -> Callable[[], datetime]:
    return lambda: moment


def court(resource_id: str, price: float = 2000.0, sport: str = "padel", **kwargs: Any) -> Resource:
    return Resource(id=resource_id, name=f"Court {resource_id}", sport=sport, price_per_hour=price, **kwargs)


def amenity(resource_id: str, price: float = 1000.0) -> Resource:
    return Resource(
        id=resource_id,
        name=f"Amenity {resource_id}",
        kind=ResourceKind.AMENITY,
        sport="amenity",
        price_per_hour=price,
    )


def make_reservation(
    reservation_id: str,
    *,
    resource_id: str = "A",
    day: date = date(2024, 6, 10),
    time: str = "10:00",
    duration: int = 60,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    **kwargs: Any,
) -> Reservation:
    return Reservation(
        id=reservation_id,
        resource_id=resource_id,
        date=day,
        time=time,
        end_time=calculate_end_time(time, duration),
        duration=duration,
        status=status,
        **kwargs,
    )


class StubAvailabilityFetcher:
    """Per-resource availability answers: a slot list, an exception, or a delay."""

    def __init__(self, answers: Mapping[str, Any], delay: float = 0.0) -> None:
        self.answers = dict(answers)
        self.delay = delay
        self.calls: List[Tuple[str, date, int]] = []

    async def __call__(self, resource: Resource, day: date, duration: int) -> List[Mapping[str, Any]]:
        self.calls.append((resource.id, day, duration))
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        answer = self.answers.get(resource.id, [])
        if isinstance(answer, BaseException):
            raise answer
        return [{"startTime": value, "available": True} for value in answer]


class FakeBookingApi:
    """In-memory backend collaborator recording every call."""

    def __init__(self) -> None:
        self.created_payloads: List[Dict[str, Any]] = []
        self.group_payloads: List[Dict[str, Any]] = []
        self.status_calls: List[Tuple[str, str, Optional[str]]] = []
        self.update_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.deleted: List[str] = []
        self.check_payloads: List[Dict[str, Any]] = []
        self.create_errors: Dict[str, Exception] = {}
        self.group_error: Optional[Exception] = NotFoundError("Not found", status_code=404)
        self.update_error: Optional[Exception] = None
        self.check_response: Dict[str, Any] = {"availability": [], "summary": {}}
        self.check_delay = 0.0
        self.listing: List[Reservation] = []
        self.status_response: Dict[str, Any] = {}
        self._next_id = 1

    async def create_booking(self, payload: Mapping[str, Any]) -> Reservation:
        await asyncio.sleep(0)
        self.created_payloads.append(dict(payload))
        error = self.create_errors.get(payload["date"])
        if error is not None:
            raise error
        return self._reservation_from(payload)

    async def create_recurring_booking_group(self, payload: Mapping[str, Any]) -> List[Reservation]:
        await asyncio.sleep(0)
        self.group_payloads.append(dict(payload))
        if self.group_error is not None:
            raise self.group_error
        created = []
        for config in payload["dateConfigurations"]:
            created.append(
                self._reservation_from(
                    {
                        "date": config["date"],
                        "courtId": config["courtId"],
                        "startTime": payload["startTime"],
                        "duration": payload["duration"],
                        "totalAmount": payload["pricePerBooking"],
                    }
                )
            )
        return created

    async def check_recurring_availability(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        self.check_payloads.append(dict(payload))
        await asyncio.sleep(self.check_delay)
        return self.check_response

    async def update_booking_status(
        self,
        booking_id: str,
        action: str,
        *,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        await asyncio.sleep(0)
        self.status_calls.append((booking_id, action, reason))
        if self.update_error is not None:
            raise self.update_error
        return self.status_response

    async def update_booking(self, booking_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        await asyncio.sleep(0)
        self.update_calls.append((booking_id, dict(fields)))
        if self.update_error is not None:
            raise self.update_error
        return {"booking": {"id": booking_id, **fields}}

    async def delete_booking(self, booking_id: str) -> None:
        await asyncio.sleep(0)
        self.deleted.append(booking_id)

    async def list_establishment_bookings(
        self,
        establishment_id: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Reservation]:
        await asyncio.sleep(0)
        return list(self.listing)

    def _reservation_from(self, payload: Mapping[str, Any]) -> Reservation:
        booking = {"id": f"bk-{self._next_id}", "status": "pending", **payload}
        self._next_id += 1
        return Reservation.from_payload(booking)
