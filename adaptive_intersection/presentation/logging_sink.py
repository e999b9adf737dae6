"""Headless presentation sink that reports through :mod:`logging`."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from .base import PresentationSink
from ..lane import LaneSnapshot

logger = logging.getLogger(__name__)


class LoggingSink(PresentationSink):
    """Log status changes at INFO and lane snapshots at DEBUG.

    Repeated identical status lines and unchanged snapshots are suppressed so
    the once-per-tick green updates do not flood the log.
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger
        self._lock = threading.Lock()
        self._last_status: Optional[str] = None
        self._last_snapshots: Dict[str, LaneSnapshot] = {}

    def publish(self, snapshot: LaneSnapshot) -> None:
        with self._lock:
            if self._last_snapshots.get(snapshot.name) == snapshot:
                return
            self._last_snapshots[snapshot.name] = snapshot
        self._log.debug(
            "%-5s light=%-6s vehicles=%d crowd=%d emergency=%s",
            snapshot.name,
            snapshot.light.value,
            snapshot.vehicle_count,
            snapshot.crowd_count,
            "YES" if snapshot.emergency else "NO",
        )

    def publish_status(self, text: str) -> None:
        with self._lock:
            if text == self._last_status:
                return
            self._last_status = text
        self._log.info("Status: %s", text)

    def latest(self, lane_name: str) -> Optional[LaneSnapshot]:
        """Return the most recent snapshot published for ``lane_name``."""

        with self._lock:
            return self._last_snapshots.get(lane_name)
