"""Discrete lane-mutation events and the input-source contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

from .lane import UnknownLaneError, normalize_lane_name

__all__ = [
    "AddCrowd",
    "AddEmergencyVehicle",
    "AddVehicle",
    "InputSource",
    "LaneEvent",
    "ResetCounts",
    "UnknownLaneError",
]


@dataclass(frozen=True, slots=True)
class AddVehicle:
    lane: str


@dataclass(frozen=True, slots=True)
class AddCrowd:
    lane: str
    count: int = 5


@dataclass(frozen=True, slots=True)
class AddEmergencyVehicle:
    lane: str


@dataclass(frozen=True, slots=True)
class ResetCounts:
    """Clear counters and emergency flags; ``lane=None`` resets every lane."""

    lane: Optional[str] = None


LaneEvent = Union[AddVehicle, AddCrowd, AddEmergencyVehicle, ResetCounts]


def event_lane(event: LaneEvent) -> Optional[str]:
    """Return the canonical lane name targeted by ``event`` (``None`` for all lanes)."""

    if event.lane is None:
        return None
    return normalize_lane_name(event.lane)


class InputSource(ABC):
    """Anything that reports lane-mutation events to the controller."""

    @abstractmethod
    def poll(self) -> List[LaneEvent]:
        """Return the events that became available since the last call."""

    def close(self) -> None:
        """Release any resources held by the source."""
