"""Async REST client for the booking backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from availability.time_utils import DateLike, parse_iso_date
from reservations.models import Reservation, Resource, ResourceKind
from . import constants as api_paths
from .errors import (
    BookingApiError,
    ConflictError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from .settings import AppSettings, get_settings


class BookingApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` speaking the backend's JSON API.

    The bearer token is injected by the caller; the client never looks it up
    on its own.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[AppSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        settings = settings or get_settings()
        self.logger = logger or logging.getLogger('BookingApiClient')
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "BookingApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------
    async def get_resource_availability(
        self,
        resource: Resource,
        day: DateLike,
        duration_minutes: int,
    ) -> List[Dict[str, Any]]:
        """Return the ``availableSlots`` list for one court or amenity."""

        template = (
            api_paths.API_AMENITY_AVAILABILITY
            if resource.kind is ResourceKind.AMENITY
            else api_paths.API_COURT_AVAILABILITY
        )
        payload = await self._request(
            "GET",
            template.format(resource_id=resource.id),
            params={"date": parse_iso_date(day).isoformat(), "duration": duration_minutes},
        )
        return list(payload.get("availableSlots") or [])

    async def check_recurring_availability(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", api_paths.API_RECURRING_CHECK, json=dict(request))

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------
    async def create_booking(self, payload: Mapping[str, Any]) -> Reservation:
        response = await self._request("POST", api_paths.API_BOOKINGS, json=dict(payload))
        booking = response.get("booking") or response.get("data") or response
        return Reservation.from_payload(booking)

    async def create_recurring_booking_group(self, payload: Mapping[str, Any]) -> List[Reservation]:
        response = await self._request("POST", api_paths.API_RECURRING_BOOKINGS, json=dict(payload))
        if response.get("success") is False:
            raise ValidationError(
                response.get("error") or "Recurring booking group was rejected",
                details=response,
            )
        return [Reservation.from_payload(item) for item in response.get("bookings") or []]

    async def update_booking(self, booking_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            api_paths.API_BOOKING.format(booking_id=booking_id),
            json=dict(fields),
        )

    async def update_booking_status(
        self,
        booking_id: str,
        action: str,
        *,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Apply an admin action (confirm, cancel, start, complete, no_show)."""

        try:
            status = api_paths.STATUS_ACTIONS[action]
        except KeyError:
            raise ValueError(f"Unknown booking action: {action}") from None

        body: Dict[str, Any] = {"status": status}
        if status == "cancelled":
            body["cancellationReason"] = reason or api_paths.DEFAULT_CANCELLATION_REASON
        return await self.update_booking(booking_id, body)

    async def delete_booking(self, booking_id: str) -> None:
        await self._request("DELETE", api_paths.API_BOOKING.format(booking_id=booking_id))

    async def list_establishment_bookings(
        self,
        establishment_id: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Reservation]:
        response = await self._request(
            "GET",
            api_paths.API_ESTABLISHMENT_BOOKINGS.format(establishment_id=establishment_id),
            params={key: value for key, value in (params or {}).items() if value is not None},
        )
        bookings = response.get("data") or response.get("bookings") or []
        return [Reservation.from_payload(item) for item in bookings]

    async def get_establishment(self, establishment_id: str) -> Dict[str, Any]:
        response = await self._request(
            "GET",
            api_paths.API_ESTABLISHMENT.format(establishment_id=establishment_id),
        )
        return response.get("data") or response

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            self.logger.warning("%s %s timed out: %s", method, path, exc)
            raise NetworkError(f"Request to {path} timed out") from exc
        except httpx.TransportError as exc:
            self.logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(f"Request to {path} failed: {exc}") from exc

        if response.is_success:
            if not response.content:
                return {}
            try:
                data = response.json()
            except ValueError as exc:
                raise BookingApiError(
                    f"Invalid JSON from {path}",
                    status_code=response.status_code,
                ) from exc
            return data if isinstance(data, dict) else {"data": data}

        raise self._error_for(response, path)

    def _error_for(self, response: httpx.Response, path: str) -> BookingApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        status = response.status_code
        message = body.get("message") or body.get("error") or f"HTTP error! status: {status}"
        self.logger.error("Request to %s rejected with %s: %s", path, status, message)

        if status == 404:
            return NotFoundError(message, status_code=status, details=body)
        if status == 409:
            return ConflictError(message, status_code=status, details=body)
        if status in (400, 422):
            return ValidationError(message, status_code=status, details=body.get("details", body))
        if status >= 500:
            return NetworkError(message, status_code=status, details=body)
        return BookingApiError(message, status_code=status, details=body)

