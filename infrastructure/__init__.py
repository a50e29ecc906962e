"""Infrastructure helpers: settings, constants, errors and the REST client."""

from .settings import AppSettings, current_local_time, get_settings, load_settings
from .errors import (
    BookingApiError,
    ConflictError,
    NetworkError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "AppSettings",
    "current_local_time",
    "get_settings",
    "load_settings",
    "BookingApiError",
    "ConflictError",
    "NetworkError",
    "NotFoundError",
    "ValidationError",
]
