"""Adaptive green-time policy."""

from __future__ import annotations

from typing import Tuple, Union

from .lane import Lane, LaneSnapshot

LaneLike = Union[Lane, LaneSnapshot]


class SmartTiming:
    """Stateless mapping from a lane's load to green time and priority.

    Durations are expressed in simulation time units; the controller scales
    them to seconds.
    """

    MIN_GREEN_TIME = 5
    EMERGENCY_GREEN_TIME = 8
    EMERGENCY_PRIORITY_BONUS = 1000
    # (inclusive load threshold, green time), evaluated highest first
    GREEN_TIME_BUCKETS: Tuple[Tuple[int, int], ...] = (
        (60, 30),
        (40, 20),
        (15, 12),
        (5, 8),
    )

    @staticmethod
    def _snapshot(lane: LaneLike) -> LaneSnapshot:
        return lane.snapshot() if isinstance(lane, Lane) else lane

    def green_duration(self, lane: LaneLike) -> int:
        """Return the green phase length for ``lane``.

        Emergencies get a short fixed phase regardless of how congested the
        lane is; otherwise the load is bucketed with no interpolation.
        """

        snap = self._snapshot(lane)
        if snap.emergency:
            return self.EMERGENCY_GREEN_TIME
        for threshold, green_time in self.GREEN_TIME_BUCKETS:
            if snap.load >= threshold:
                return green_time
        return self.MIN_GREEN_TIME

    def priority_score(self, lane: LaneLike) -> int:
        snap = self._snapshot(lane)
        score = snap.load
        if snap.emergency:
            score += self.EMERGENCY_PRIORITY_BONUS
        return score
