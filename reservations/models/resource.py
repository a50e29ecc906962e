"""Bookable resources: courts and amenities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class ResourceKind(Enum):
    """Whether a resource is a court or a bookable amenity."""

    COURT = "court"
    AMENITY = "amenity"


def _to_price(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Resource:
    """Read-only view of a court or amenity owned by the backend."""

    id: str
    name: str
    kind: ResourceKind = ResourceKind.COURT
    sport: Optional[str] = None
    price_per_hour: float = 0.0
    price_per_hour_90: Optional[float] = None
    price_per_hour_120: Optional[float] = None
    is_active: bool = True

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        kind: ResourceKind = ResourceKind.COURT,
    ) -> "Resource":
        """Hydrate from a backend court/amenity record."""

        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or "",
            kind=kind,
            sport=payload.get("sport") if kind is ResourceKind.COURT else "amenity",
            price_per_hour=_to_price(payload.get("pricePerHour")) or 0.0,
            price_per_hour_90=_to_price(payload.get("pricePerHour90")),
            price_per_hour_120=_to_price(payload.get("pricePerHour120")),
            is_active=payload.get("isActive") is not False,
        )

    @property
    def is_amenity(self) -> bool:
        return self.kind is ResourceKind.AMENITY
