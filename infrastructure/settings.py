"""Centralized application settings.

Runtime configuration for the booking core is loaded in one place. Components
receive the values they need explicitly; nothing below reads ambient storage
for credentials, the API token is handed to :class:`BookingApiClient` by the
embedding application.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Mapping, Optional

import pytz
from dotenv import load_dotenv

from . import constants as core_constants


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _to_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    api_base_url: str
    api_timeout_seconds: float
    production_mode: bool
    timezone: str
    availability_max_concurrent: int
    availability_timeout_seconds: float
    default_min_advance_hours: int
    default_max_advance_days: int
    default_allow_same_day: bool
    recurring_group_endpoint: bool
    log_directory: str


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    return AppSettings(
        api_base_url=env.get("API_BASE_URL", "http://localhost:3001").rstrip("/"),
        api_timeout_seconds=_to_float(env.get("API_TIMEOUT_SECONDS"), 30.0),
        production_mode=_to_bool(env.get("PRODUCTION_MODE", "false")),
        timezone=env.get("BOOKING_TIMEZONE", "America/Argentina/Buenos_Aires"),
        availability_max_concurrent=_to_int(env.get("AVAILABILITY_MAX_CONCURRENT"), 0),
        availability_timeout_seconds=_to_float(env.get("AVAILABILITY_TIMEOUT_SECONDS"), 15.0),
        default_min_advance_hours=_to_int(
            env.get("DEFAULT_MIN_ADVANCE_HOURS"),
            core_constants.DEFAULT_MIN_ADVANCE_HOURS,
        ),
        default_max_advance_days=_to_int(
            env.get("DEFAULT_MAX_ADVANCE_DAYS"),
            core_constants.DEFAULT_MAX_ADVANCE_DAYS,
        ),
        default_allow_same_day=_to_bool(
            env.get("DEFAULT_ALLOW_SAME_DAY"),
            default=core_constants.DEFAULT_ALLOW_SAME_DAY,
        ),
        recurring_group_endpoint=_to_bool(env.get("RECURRING_GROUP_ENDPOINT", "false")),
        log_directory=env.get("LOG_DIRECTORY", "logs"),
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""

    return load_settings()


def current_local_time(settings: Optional[AppSettings] = None) -> datetime:
    """Return "now" as a naive datetime in the configured booking timezone.

    Slot times are wall-clock values of the establishment, so comparisons are
    made between naive local datetimes.
    """

    settings = settings or get_settings()
    tz = pytz.timezone(settings.timezone)
    return datetime.now(tz).replace(tzinfo=None)
