"""Lane and signal primitives shared by the controller and input surfaces."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import threading
from typing import List, Tuple


class Direction(str, Enum):
    """The four fixed approaches of the intersection."""

    NORTH = "NORTH"
    EAST = "EAST"
    SOUTH = "SOUTH"
    WEST = "WEST"


LANE_ORDER: Tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
)


class LightState(str, Enum):
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"


class UnknownLaneError(ValueError):
    """Raised when a lane name does not match one of :data:`LANE_ORDER`."""


class InvalidCountError(ValueError):
    """Raised when a negative vehicle or crowd delta is requested."""


def normalize_lane_name(name: str | Direction) -> str:
    """Return the canonical upper-case lane name or raise :class:`UnknownLaneError`."""

    if isinstance(name, Direction):
        return name.value
    candidate = str(name).strip().upper()
    try:
        return Direction(candidate).value
    except ValueError:
        raise UnknownLaneError(
            f"Unknown lane {name!r}; expected one of "
            f"{', '.join(d.value for d in LANE_ORDER)}"
        ) from None


class TrafficLight:
    """Three-state signal head owned by a single :class:`Lane`.

    Only the controller changes the state; every other component reads it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = LightState.RED

    def set(self, state: LightState) -> None:
        with self._lock:
            self._state = LightState(state)

    def get(self) -> LightState:
        with self._lock:
            return self._state


@dataclass(frozen=True, slots=True)
class LaneSnapshot:
    """Consistent view of a lane captured under a single lock acquisition."""

    name: str
    vehicle_count: int
    crowd_count: int
    emergency: bool
    light: LightState

    @property
    def load(self) -> int:
        return self.vehicle_count + self.crowd_count


class Lane:
    """Congestion counters and signal for one approach.

    All mutators and accessors take the lane lock for their whole body, so
    readers never observe a partially applied update. The lock is never held
    across a timed wait.
    """

    CROWD_RELEASE_PER_GREEN = 5

    def __init__(self, name: str | Direction) -> None:
        self._name = normalize_lane_name(name)
        self._lock = threading.Lock()
        self._vehicle_count = 0
        self._crowd_count = 0
        self._emergency = False
        self._light = TrafficLight()

    def __repr__(self) -> str:
        snap = self.snapshot()
        return (
            f"Lane({snap.name}, vehicles={snap.vehicle_count}, "
            f"crowd={snap.crowd_count}, emergency={snap.emergency}, light={snap.light.value})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def light(self) -> TrafficLight:
        return self._light

    @property
    def vehicle_count(self) -> int:
        with self._lock:
            return self._vehicle_count

    @property
    def crowd_count(self) -> int:
        with self._lock:
            return self._crowd_count

    @property
    def load(self) -> int:
        with self._lock:
            return self._vehicle_count + self._crowd_count

    @property
    def has_emergency(self) -> bool:
        with self._lock:
            return self._emergency

    def snapshot(self) -> LaneSnapshot:
        with self._lock:
            return LaneSnapshot(
                name=self._name,
                vehicle_count=self._vehicle_count,
                crowd_count=self._crowd_count,
                emergency=self._emergency,
                light=self._light.get(),
            )

    def add_vehicle(self, emergency: bool = False) -> None:
        """Queue one vehicle; an emergency vehicle also raises the lane flag."""

        with self._lock:
            self._vehicle_count += 1
            if emergency:
                self._emergency = True

    def add_vehicles(self, count: int) -> None:
        count = _validated_delta(count, "vehicle")
        with self._lock:
            self._vehicle_count += count

    def add_crowd(self, count: int) -> None:
        count = _validated_delta(count, "crowd")
        with self._lock:
            self._crowd_count += count

    def clear_counts(self) -> None:
        """Reset counters and the emergency flag (explicit reset action only)."""

        with self._lock:
            self._vehicle_count = 0
            self._crowd_count = 0
            self._emergency = False

    def reduce_counts_after_green(self) -> None:
        """Release traffic at the end of a green phase.

        A third of the queued vehicles (at least one) and up to five pedestrians
        leave. The emergency flag stays set until :meth:`clear_counts`.
        """

        with self._lock:
            released = max(1, self._vehicle_count // 3)
            self._vehicle_count = max(0, self._vehicle_count - released)
            crossing = min(self.CROWD_RELEASE_PER_GREEN, self._crowd_count)
            self._crowd_count = max(0, self._crowd_count - crossing)


def _validated_delta(count: int, label: str) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidCountError(f"{label.capitalize()} count must be an integer, got {count!r}")
    if count < 0:
        raise InvalidCountError(f"Cannot add a negative {label} count: {count}")
    return count


def create_lanes() -> List[Lane]:
    """Return the four intersection lanes in scan order."""

    return [Lane(direction) for direction in LANE_ORDER]
