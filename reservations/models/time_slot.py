"""
TimeSlot model for representing merged availability in the slot grid
"""

from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class TimeSlot:
    """
    A single half-hour start in the slot grid

    Attributes:
        time: Start time, zero-padded "HH:MM"
        available: Whether the slot can be picked right now
        resource_ids: Resources reporting this start as free
    """
    time: str
    available: bool = False
    resource_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __str__(self) -> str:
        state = "available" if self.available else "unavailable"
        return f"{self.time} ({state}, {len(self.resource_ids)} resources)"
