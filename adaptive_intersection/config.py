"""Configuration dataclasses for the adaptive intersection simulator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional


ModeLiteral = Literal["headless", "visual"]
SelectionLiteral = Literal["scan", "priority"]

_MODES = ("headless", "visual")
_SELECTIONS = ("scan", "priority")


@dataclass(slots=True)
class IntersectionConfig:
    """Runtime configuration for :class:`adaptive_intersection.system.IntersectionSystem`.

    Parameters
    ----------
    mode:
        Operating mode. ``"headless"`` replays a scenario and reports through
        the logging module while ``"visual"`` opens a pygame dashboard that
        also accepts keyboard input.
    time_unit:
        Wall-clock seconds per simulation time unit. Green durations and phase
        holds are expressed in units, so ``0.1`` runs the simulation ten times
        faster than real time.
    release_red_hold, pre_green_yellow, post_green_yellow:
        Fixed phase holds (in time units) around the green phase of a served
        lane. They only govern how the simulation looks, not real signal
        engineering values.
    iteration_pause:
        Pause (in time units) between two round-robin services.
    green_tick:
        Granularity (in time units) at which a green phase re-checks the
        emergency preemption signal.
    emergency_selection:
        ``"scan"`` serves the first emergency lane in NORTH, EAST, SOUTH, WEST
        order; ``"priority"`` serves the emergency lane with the highest
        priority score, falling back to scan order on ties.
    scenario:
        Name of the predefined scenario used to seed lanes and script events.
    duration:
        Seconds to run before stopping automatically; ``None`` runs until
        interrupted.
    """

    mode: ModeLiteral = "headless"
    time_unit: float = 1.0
    release_red_hold: float = 0.6
    pre_green_yellow: float = 0.6
    post_green_yellow: float = 1.5
    iteration_pause: float = 0.2
    green_tick: float = 1.0
    emergency_selection: SelectionLiteral = "scan"
    scenario: str = "baseline"
    duration: Optional[float] = None

    def validate(self) -> None:
        """Raise :class:`ValueError` when a setting cannot drive the controller."""

        if self.mode not in _MODES:
            raise ValueError(f"mode must be one of {_MODES}, got {self.mode!r}")
        if self.emergency_selection not in _SELECTIONS:
            raise ValueError(
                f"emergency_selection must be one of {_SELECTIONS}, got {self.emergency_selection!r}"
            )
        if self.time_unit <= 0:
            raise ValueError("time_unit must be positive")
        if self.green_tick <= 0:
            raise ValueError("green_tick must be positive")
        for name in ("release_red_hold", "pre_green_yellow", "post_green_yellow", "iteration_pause"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.duration is not None and self.duration <= 0:
            raise ValueError("duration must be positive when provided")

    def seconds(self, units: float) -> float:
        """Convert simulation time units to wall-clock seconds."""

        return units * self.time_unit
