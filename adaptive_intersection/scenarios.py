"""Predefined traffic scenarios for the four-way intersection simulation."""
from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .events import AddCrowd, AddEmergencyVehicle, AddVehicle, InputSource, LaneEvent, ResetCounts
from .lane import Lane, normalize_lane_name


@dataclass(frozen=True)
class ScheduledEvent:
    """An input event due ``at`` time units after the scenario starts."""

    at: float
    event: LaneEvent


@dataclass(frozen=True)
class TrafficScenario:
    """Describes a repeatable traffic scenario for the intersection."""

    name: str
    description: str
    initial_counts: Mapping[str, Tuple[int, int]]
    events: Tuple[ScheduledEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:  # type: ignore[override]
        counts: Dict[str, Tuple[int, int]] = {}
        for lane_name, (vehicles, crowd) in self.initial_counts.items():
            if vehicles < 0 or crowd < 0:
                raise ValueError(f"Initial counts for {lane_name} cannot be negative")
            counts[normalize_lane_name(lane_name)] = (vehicles, crowd)
        object.__setattr__(self, "initial_counts", counts)

        events = tuple(self.events)
        previous = 0.0
        for scheduled in events:
            if scheduled.at < 0:
                raise ValueError("Scheduled events cannot occur before the start")
            if scheduled.at < previous:
                raise ValueError("Scheduled events must be sorted by time")
            if scheduled.event.lane is not None:
                normalize_lane_name(scheduled.event.lane)
            previous = scheduled.at
        object.__setattr__(self, "events", events)

    def seed(self, lanes: Iterable[Lane]) -> None:
        """Apply the initial vehicle and crowd counts to ``lanes``."""

        for lane in lanes:
            vehicles, crowd = self.initial_counts.get(lane.name, (0, 0))
            lane.add_vehicles(vehicles)
            lane.add_crowd(crowd)

    def steps(self) -> Iterator[ScheduledEvent]:
        """Yield the scripted events in chronological order."""

        yield from self.events


def load_predefined_scenarios() -> List[TrafficScenario]:
    """Return curated scenarios that cover common intersection patterns."""

    baseline_counts = {
        "NORTH": (8, 10),
        "EAST": (3, 4),
        "SOUTH": (6, 12),
        "WEST": (2, 1),
    }

    baseline = TrafficScenario(
        name="baseline",
        description="Moderate demand on every approach with no scripted events.",
        initial_counts=baseline_counts,
    )

    ambulance_east = TrafficScenario(
        name="ambulance-east",
        description=(
            "Baseline demand with an ambulance arriving on the east approach while "
            "north is being served. East should jump the rotation."
        ),
        initial_counts=baseline_counts,
        events=(
            ScheduledEvent(3.0, AddEmergencyVehicle("EAST")),
            ScheduledEvent(40.0, ResetCounts("EAST")),
        ),
    )

    rush_hour = TrafficScenario(
        name="rush-hour",
        description=(
            "Heavy north/south commuter flow with pedestrians building up on the "
            "cross street, exercising the longer green buckets."
        ),
        initial_counts={
            "NORTH": (45, 20),
            "EAST": (4, 12),
            "SOUTH": (38, 10),
            "WEST": (2, 3),
        },
        events=(
            ScheduledEvent(5.0, AddCrowd("EAST", 5)),
            ScheduledEvent(10.0, AddVehicle("WEST")),
            ScheduledEvent(15.0, AddCrowd("WEST", 5)),
            ScheduledEvent(20.0, AddCrowd("EAST", 5)),
        ),
    )

    double_emergency = TrafficScenario(
        name="double-emergency",
        description=(
            "Two emergency vehicles reported close together on south and west; "
            "the fixed scan order decides which is served first."
        ),
        initial_counts=baseline_counts,
        events=(
            ScheduledEvent(2.0, AddEmergencyVehicle("WEST")),
            ScheduledEvent(2.5, AddEmergencyVehicle("SOUTH")),
            ScheduledEvent(60.0, ResetCounts()),
        ),
    )

    return [baseline, ambulance_east, rush_hour, double_emergency]


def find_scenario(name: str) -> TrafficScenario:
    """Return the predefined scenario called ``name``."""

    for scenario in load_predefined_scenarios():
        if scenario.name == name:
            return scenario
    raise KeyError(f"Unknown scenario: {name}")


class ScenarioPlayer(InputSource):
    """Replay a scenario's scripted events against wall-clock time."""

    def __init__(
        self,
        scenario: TrafficScenario,
        time_unit: float = 1.0,
        time_func: Callable[[], float] | None = None,
    ) -> None:
        self.scenario = scenario
        self.time_unit = time_unit
        self.time_func = time_func or time.monotonic
        self._pending = list(scenario.steps())
        self._started_at: Optional[float] = None

    def start(self) -> None:
        self._started_at = self.time_func()

    @property
    def finished(self) -> bool:
        return not self._pending

    def poll(self) -> List[LaneEvent]:
        if self._started_at is None:
            self.start()
        elapsed_units = (self.time_func() - self._started_at) / self.time_unit
        due: List[LaneEvent] = []
        while self._pending and self._pending[0].at <= elapsed_units:
            due.append(self._pending.pop(0).event)
        return due
