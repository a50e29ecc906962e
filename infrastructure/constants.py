"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for the booking core's fixed values
PATTERN: Modular constants organized by category
SCOPE: Slot grid bounds, durations, statuses and API paths
"""

# Slot Grid Configuration
SLOT_GRID_START = "08:00"
SLOT_GRID_END = "23:00"  # Last bookable start; there is no 23:30 start
SLOT_INTERVAL_MINUTES = 30

# Durations (minutes)
MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 480
DEFAULT_DURATION_MINUTES = 60

# Duration-specific price multipliers used when a resource has no explicit rate
DURATION_PRICE_MULTIPLIERS = {
    90: 1.5,
    120: 2.0,
}

# Booking window defaults (used when an establishment omits its settings)
DEFAULT_MIN_ADVANCE_HOURS = 1
DEFAULT_MAX_ADVANCE_DAYS = 14
DEFAULT_ALLOW_SAME_DAY = True

# Business hours used when an establishment has no schedule for a weekday
DEFAULT_OPENING_TIME = "08:00"
DEFAULT_CLOSING_TIME = "24:00"

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Reservation lifecycle
TERMINAL_STATUSES = frozenset({"completed", "cancelled", "no_show"})

# Admin actions mapped to the status the backend records for them
STATUS_ACTIONS = {
    "confirm": "confirmed",
    "cancel": "cancelled",
    "start": "in_progress",
    "complete": "completed",
    "no_show": "no_show",
}

DEFAULT_CANCELLATION_REASON = "Cancelled by administrator"

# Recurrence rules
RECURRENCE_STEP_DAYS = {
    "weekly": 7,
    "biweekly": 14,
}

# Reload paging defaults
DEFAULT_RELOAD_PAGE = 1
DEFAULT_RELOAD_LIMIT = 100

# REST API paths
API_COURT_AVAILABILITY = "/api/courts/{resource_id}/availability"
API_AMENITY_AVAILABILITY = "/api/amenities/{resource_id}/availability"
API_BOOKINGS = "/api/bookings"
API_BOOKING = "/api/bookings/{booking_id}"
API_ESTABLISHMENT = "/api/establishments/{establishment_id}"
API_ESTABLISHMENT_BOOKINGS = "/api/establishments/{establishment_id}/bookings"
API_RECURRING_CHECK = "/api/recurring-bookings/check-availability"
API_RECURRING_BOOKINGS = "/api/recurring-bookings"

ALL_RESOURCES_FAILED_WARNING = (
    "Live availability could not be loaded; showing estimated slots. "
    "Final availability is confirmed when booking."
)
