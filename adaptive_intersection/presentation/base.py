"""Presentation sink abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..lane import LaneSnapshot


class PresentationSink(ABC):
    """Receive lane snapshots and status text from the controller.

    Calls arrive from the controller thread and from whichever thread submits
    input events, so implementations must be thread-safe and must not block.
    """

    @abstractmethod
    def publish(self, snapshot: LaneSnapshot) -> None:
        """Record the latest state of one lane."""

    @abstractmethod
    def publish_status(self, text: str) -> None:
        """Record a free-form status line."""

    def close(self) -> None:
        """Dispose of any resources such as windows or surfaces."""
