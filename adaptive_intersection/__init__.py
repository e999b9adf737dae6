"""Adaptive four-way intersection simulator package."""

from .config import IntersectionConfig
from .controller import GreenOutcome, IntersectionController
from .lane import Direction, Lane, LaneSnapshot, LightState, create_lanes
from .system import IntersectionSystem
from .timing import SmartTiming

__all__ = [
    "Direction",
    "GreenOutcome",
    "IntersectionConfig",
    "IntersectionController",
    "IntersectionSystem",
    "Lane",
    "LaneSnapshot",
    "LightState",
    "SmartTiming",
    "create_lanes",
]
