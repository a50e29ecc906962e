"""Exception hierarchy for failures reported by the booking API."""

from __future__ import annotations

from typing import Any, Optional


class BookingApiError(Exception):
    """Base class for errors raised while talking to the booking backend."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class NetworkError(BookingApiError):
    """The request never produced a usable response (transport, timeout, 5xx)."""


class NotFoundError(BookingApiError):
    """The addressed resource or booking does not exist."""


class ValidationError(BookingApiError):
    """The backend rejected the payload, e.g. the slot was already taken."""


class ConflictError(BookingApiError):
    """The requested change conflicts with current server state."""
