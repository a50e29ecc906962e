"""Reservation mirror of a backend booking."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from availability.time_utils import calculate_end_time, normalise_time, parse_iso_date
from infrastructure.constants import DEFAULT_DURATION_MINUTES, TERMINAL_STATUSES
from .resource import ResourceKind

logger = logging.getLogger('ReservationModels')

# Backend spellings that mean the same as one of ours
PAYMENT_STATUS_ALIASES = {"completed": "paid"}


class ReservationStatus(Enum):
    """Reservation lifecycle states"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"         # terminal
    CANCELLED = "cancelled"         # terminal
    NO_SHOW = "no_show"             # terminal

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_STATUSES


class PaymentStatus(Enum):
    PAID = "paid"
    PENDING = "pending"
    PARTIAL = "partial"
    REFUNDED = "refunded"
    FAILED = "failed"

    @classmethod
    def from_backend(cls, value: Optional[str]) -> "PaymentStatus":
        """Map a backend ``paymentStatus``; unknown values read as pending."""

        if not value:
            return cls.PENDING
        value = PAYMENT_STATUS_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            logger.debug("Unknown payment status %r treated as pending", value)
            return cls.PENDING


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class Reservation:
    """Client-side copy of a booking; the backend owns the real record."""

    id: str
    resource_id: str
    date: date
    time: str
    end_time: str
    duration: int
    price: float = 0.0
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    resource_kind: ResourceKind = ResourceKind.COURT
    resource_name: str = ""
    notes: Optional[str] = None
    deposit_amount: Optional[float] = None
    is_recurring: bool = False
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def sort_key(self):
        return (self.date, self.time, self.id)

    @property
    def is_active(self) -> bool:
        return self.status is not ReservationStatus.CANCELLED

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Reservation":
        """Normalise a backend booking record.

        ``courtId``/``amenityId`` collapse into ``resource_id`` and times such
        as ``"09:00:00"`` are trimmed to ``"09:00"``.
        """

        amenity_id = payload.get("amenityId")
        kind = ResourceKind.AMENITY if amenity_id else ResourceKind.COURT
        resource_id = amenity_id or payload.get("courtId") or payload.get("resourceId") or ""

        start_time = normalise_time(payload.get("startTime") or payload.get("time") or "")
        duration = int(payload.get("duration") or DEFAULT_DURATION_MINUTES)
        end_time = normalise_time(payload.get("endTime") or "")
        if not end_time and start_time:
            end_time = calculate_end_time(start_time, duration)

        resource_payload = payload.get("amenity") if amenity_id else payload.get("court")
        user = payload.get("user") or {}
        client_name = payload.get("clientName") or " ".join(
            part for part in (user.get("firstName"), user.get("lastName")) if part
        )

        deposit = payload.get("depositAmount")
        return cls(
            id=str(payload["id"]),
            resource_id=str(resource_id),
            date=parse_iso_date(payload["date"]),
            time=start_time,
            end_time=end_time,
            duration=duration,
            price=_to_float(payload.get("totalAmount", payload.get("price"))),
            status=ReservationStatus(payload.get("status") or ReservationStatus.PENDING.value),
            payment_status=PaymentStatus.from_backend(payload.get("paymentStatus")),
            client_name=client_name,
            client_email=payload.get("clientEmail") or user.get("email") or "",
            client_phone=payload.get("clientPhone") or user.get("phone") or "",
            resource_kind=kind,
            resource_name=(resource_payload or {}).get("name", ""),
            notes=payload.get("notes"),
            deposit_amount=_to_float(deposit) if deposit is not None else None,
            is_recurring=bool(payload.get("isRecurring", False)),
        )

    def with_updates(self, **updates: Any) -> "Reservation":
        """Return a copy with known fields replaced; unknown keys go to ``extra``."""

        known = {item.name for item in fields(self)}
        direct = {key: value for key, value in updates.items() if key in known and key != "extra"}
        unknown = {key: value for key, value in updates.items() if key not in known}
        if unknown:
            direct["extra"] = {**self.extra, **unknown}
        return replace(self, **direct)
