"""Duration-based booking prices."""

from __future__ import annotations

from typing import Mapping, Optional

from infrastructure.constants import DURATION_PRICE_MULTIPLIERS
from reservations.models import Resource


def price_for_duration(resource: Resource, duration: int) -> float:
    """Price of ``duration`` minutes on ``resource``.

    90 and 120 minute bookings use the resource's explicit tier price when it
    has one, otherwise a fixed multiple of the hourly rate.
    """

    if duration == 90 and resource.price_per_hour_90:
        return resource.price_per_hour_90
    if duration == 120 and resource.price_per_hour_120:
        return resource.price_per_hour_120
    multiplier = DURATION_PRICE_MULTIPLIERS.get(duration)
    if multiplier is not None:
        return round(resource.price_per_hour * multiplier, 2)
    return round(resource.price_per_hour * duration / 60, 2)


def occurrence_price(
    resources: Mapping[str, Resource],
    resource_id: str,
    duration: int,
    fallback: float,
) -> float:
    """Price for one recurring occurrence; unknown or free resources use ``fallback``."""

    resource: Optional[Resource] = resources.get(resource_id)
    if resource is None:
        return fallback
    price = price_for_duration(resource, duration)
    return price if price else fallback
