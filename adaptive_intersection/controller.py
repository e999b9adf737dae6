"""Round-robin signal controller with emergency preemption."""

from __future__ import annotations

from enum import Enum
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import IntersectionConfig
from .events import (
    AddCrowd,
    AddEmergencyVehicle,
    AddVehicle,
    LaneEvent,
    ResetCounts,
    event_lane,
)
from .lane import LANE_ORDER, Lane, LightState, normalize_lane_name
from .presentation.base import PresentationSink
from .timing import SmartTiming

logger = logging.getLogger(__name__)


class GreenOutcome(str, Enum):
    """How the service of a lane ended."""

    COMPLETED = "completed"
    PREEMPTED = "preempted"
    STOPPED = "stopped"


class IntersectionController:
    """Serve four lanes in rotation, jumping the queue for emergencies.

    The scheduling loop runs on a single background thread. Input events may
    be submitted from any other thread at any time; they only touch lane
    counters (each guarded by its lane lock) and the preemption signal.

    Serving a lane runs ALL_RED, RED, YELLOW, GREEN, YELLOW, RED in that
    order, publishing a snapshot after every light change. All lights are
    forced red before the served lane is released, so at most one light is
    ever non-red.
    """

    def __init__(
        self,
        lanes: Sequence[Lane],
        sink: PresentationSink,
        policy: Optional[SmartTiming] = None,
        config: Optional[IntersectionConfig] = None,
        time_func: Callable[[], float] | None = None,
    ) -> None:
        names = [lane.name for lane in lanes]
        expected = [direction.value for direction in LANE_ORDER]
        if names != expected:
            raise ValueError(f"Controller requires lanes in order {expected}, got {names}")

        self.config = config or IntersectionConfig()
        self.config.validate()
        self.policy = policy or SmartTiming()
        self.sink = sink
        self.time_func = time_func or time.monotonic

        self._lanes: Tuple[Lane, ...] = tuple(lanes)
        self._by_name: Dict[str, Lane] = {lane.name: lane for lane in self._lanes}
        self._stop_event = threading.Event()
        self._preempt = threading.Event()
        # serialises emergency flag changes with the preemption signal
        self._input_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None

    @property
    def lanes(self) -> Tuple[Lane, ...]:
        return self._lanes

    def lane(self, name: str) -> Lane:
        """Return the lane called ``name`` or raise :class:`UnknownLaneError`."""

        return self._by_name[normalize_lane_name(name)]

    @property
    def preemption_requested(self) -> bool:
        return self._preempt.is_set()

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Spawn the scheduling thread."""

        if self._worker is not None:
            raise RuntimeError("Controller can only be started once")
        for lane in self._lanes:
            self._publish(lane)
        self._worker = threading.Thread(
            target=self._control_loop, name="TrafficControllerThread", daemon=True
        )
        self._worker.start()
        logger.info("Traffic controller started")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Request the loop to exit and wait for the worker to finish.

        Any timed phase hold is woken immediately; the lane being served is
        left red.
        """

        self._stop_event.set()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning("Traffic controller did not stop within %.1fs", timeout)
        logger.info("Traffic controller stopped")

    # ------------------------------------------------------------------
    # input events
    # ------------------------------------------------------------------
    def submit(self, event: LaneEvent) -> None:
        """Apply an input event to its lane and publish the result.

        Raises :class:`UnknownLaneError` for an unknown lane and
        :class:`InvalidCountError` for a negative crowd size; in both cases no
        lane is modified.
        """

        name = event_lane(event)
        if isinstance(event, ResetCounts):
            targets = self._lanes if name is None else (self._by_name[name],)
            with self._input_lock:
                for lane in targets:
                    lane.clear_counts()
                if self._preempt.is_set() and not any(lane.has_emergency for lane in self._lanes):
                    # nothing left to preempt for
                    self._preempt.clear()
                    logger.info("Pending emergency preemption withdrawn by reset")
            for lane in targets:
                self._publish(lane)
            self._status(f"Counts reset for {'all lanes' if name is None else name}")
            return

        if name is None:
            raise ValueError(f"{type(event).__name__} requires a lane")
        lane = self._by_name[name]
        if isinstance(event, AddVehicle):
            lane.add_vehicle()
            message = f"Added vehicle to {name}"
        elif isinstance(event, AddCrowd):
            lane.add_crowd(event.count)
            message = f"Added crowd({event.count}) to {name}"
        elif isinstance(event, AddEmergencyVehicle):
            with self._input_lock:
                lane.add_vehicle(emergency=True)
                self._preempt.set()
            logger.info("Emergency vehicle reported on %s", name)
            message = f"Emergency vehicle added to {name}"
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")
        self._publish(lane)
        self._status(message)

    # ------------------------------------------------------------------
    # scheduling
    # ------------------------------------------------------------------
    def _emergency_candidate(self) -> Optional[int]:
        flagged: List[Tuple[int, int]] = []
        for position, lane in enumerate(self._lanes):
            snap = lane.snapshot()
            if not snap.emergency:
                continue
            if self.config.emergency_selection == "scan":
                return position
            flagged.append((position, self.policy.priority_score(snap)))
        if not flagged:
            return None
        # highest score wins, scan order breaks ties
        return min(flagged, key=lambda item: (-item[1], item[0]))[0]

    def select_next(self, index: int) -> Tuple[Lane, int, bool]:
        """Pick the lane to serve given the rotation ``index``.

        Returns ``(lane, next_index, preempted)``. An emergency lane other than
        the rotation lane is served out of order and the rotation resumes right
        after it.
        """

        count = len(self._lanes)
        index %= count
        emergency = self._emergency_candidate()
        if emergency is not None and emergency != index:
            return self._lanes[emergency], (emergency + 1) % count, True
        return self._lanes[index], (index + 1) % count, False

    def _control_loop(self) -> None:
        index = 0
        self._status("Controller started. Round-robin mode.")
        try:
            while not self._stop_event.is_set():
                lane, index, preempted = self.select_next(index)
                if lane.has_emergency:
                    # the pending emergency is honoured by this service
                    self._preempt.clear()
                if preempted:
                    logger.info("Emergency preemption: serving %s out of turn", lane.name)
                outcome = self.serve_lane(lane)
                if outcome is GreenOutcome.STOPPED:
                    break
                if preempted:
                    continue
                if self._wait(self.config.iteration_pause):
                    break
        except Exception:
            logger.exception("Traffic controller loop failed; forcing all lanes red")
            self._all_red()
            raise
        finally:
            self._status("Controller stopped.")

    def serve_lane(self, lane: Lane) -> GreenOutcome:
        """Run one full service cycle for ``lane`` and release its traffic."""

        self._all_red()
        self._status(f"Preparing to release: {lane.name}")
        self._set_light(lane, LightState.RED)
        if self._wait(self.config.release_red_hold):
            return self._abort(lane, green_shown=False)
        self._set_light(lane, LightState.YELLOW)
        if self._wait(self.config.pre_green_yellow):
            return self._abort(lane, green_shown=False)

        self._set_light(lane, LightState.GREEN)
        outcome = self._run_green(lane, self.policy.green_duration(lane))
        if outcome is GreenOutcome.STOPPED:
            return self._abort(lane, green_shown=True)

        self._set_light(lane, LightState.YELLOW)
        if self._wait(self.config.post_green_yellow):
            return self._abort(lane, green_shown=True)
        self._set_light(lane, LightState.RED)
        lane.reduce_counts_after_green()
        self._publish(lane)
        return outcome

    def _run_green(self, lane: Lane, green_units: int) -> GreenOutcome:
        deadline = self.time_func() + self.config.seconds(green_units)
        tick = self.config.seconds(self.config.green_tick)
        logger.debug("GREEN for %s lasting %d units", lane.name, green_units)
        while True:
            remaining = deadline - self.time_func()
            if remaining <= 0:
                return GreenOutcome.COMPLETED
            snap = lane.snapshot()
            self._status(
                f"GREEN: {snap.name} | remaining(s): {int(remaining / self.config.time_unit)}"
                f" | vehicles: {snap.vehicle_count} crowd: {snap.crowd_count}"
            )
            self.sink.publish(snap)
            if self._preempt.is_set():
                logger.info("Green phase for %s cut short by emergency", lane.name)
                return GreenOutcome.PREEMPTED
            if self._stop_event.wait(min(tick, remaining)):
                return GreenOutcome.STOPPED

    def _abort(self, lane: Lane, green_shown: bool) -> GreenOutcome:
        self._set_light(lane, LightState.RED)
        if green_shown:
            lane.reduce_counts_after_green()
            self._publish(lane)
        logger.debug("Service of %s interrupted by stop request", lane.name)
        return GreenOutcome.STOPPED

    def _wait(self, units: float) -> bool:
        """Sleep for ``units`` time units; return ``True`` when stop was requested."""

        return self._stop_event.wait(self.config.seconds(units))

    # ------------------------------------------------------------------
    # presentation helpers
    # ------------------------------------------------------------------
    def _all_red(self) -> None:
        for lane in self._lanes:
            self._set_light(lane, LightState.RED)

    def _set_light(self, lane: Lane, state: LightState) -> None:
        lane.light.set(state)
        self._publish(lane)

    def _publish(self, lane: Lane) -> None:
        self.sink.publish(lane.snapshot())

    def _status(self, text: str) -> None:
        self.sink.publish_status(text)
