"""High level orchestration of the adaptive intersection simulator."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional

from .config import IntersectionConfig
from .controller import IntersectionController
from .events import InputSource, LaneEvent
from .lane import InvalidCountError, UnknownLaneError, create_lanes
from .presentation.base import PresentationSink
from .presentation.dashboard import PygameDashboard
from .presentation.logging_sink import LoggingSink
from .scenarios import ScenarioPlayer, TrafficScenario, find_scenario
from .timing import SmartTiming

logger = logging.getLogger(__name__)


def dispatch_events(controller: IntersectionController, events: Iterable[LaneEvent]) -> int:
    """Submit ``events`` to ``controller``, dropping the ones it rejects.

    Returns the number of events applied.
    """

    applied = 0
    for event in events:
        try:
            controller.submit(event)
        except (UnknownLaneError, InvalidCountError) as exc:
            logger.warning("Dropped input event %s: %s", event, exc)
            controller.sink.publish_status(f"Rejected input: {exc}")
        else:
            applied += 1
    return applied


class ModeStrategy(ABC):
    """Strategy pattern implementation for running different modes."""

    def __init__(self, controller: IntersectionController, config: IntersectionConfig) -> None:
        self.controller = controller
        self.config = config
        self._running = True

    @abstractmethod
    def run(self) -> None:
        """Execute the strategy main loop."""

    def close(self) -> None:
        """Stop the controller and release resources used by the strategy."""

        self._running = False
        self.controller.stop()
        self.controller.sink.close()


class HeadlessModeStrategy(ModeStrategy):
    """Replay a scripted scenario and report through the logging module."""

    POLL_INTERVAL = 0.05

    def __init__(
        self,
        controller: IntersectionController,
        config: IntersectionConfig,
        player: InputSource,
        time_func: Callable[[], float] | None = None,
        sleep_func: Callable[[float], None] | None = None,
    ) -> None:
        super().__init__(controller, config)
        self.player = player
        self.time_func = time_func or time.monotonic
        self.sleep_func = sleep_func or time.sleep

    def run(self) -> None:
        started = self.time_func()
        self.controller.start()
        while self._running:
            dispatch_events(self.controller, self.player.poll())
            if self.config.duration is not None and self.time_func() - started >= self.config.duration:
                logger.info("Configured run duration of %.1fs reached", self.config.duration)
                break
            if not self.controller.is_running:
                break
            self.sleep_func(self.POLL_INTERVAL)

    def close(self) -> None:
        super().close()
        self.player.close()


class VisualModeStrategy(ModeStrategy):
    """Render via pygame and take lane events from the keyboard."""

    def __init__(
        self,
        controller: IntersectionController,
        config: IntersectionConfig,
        dashboard: PygameDashboard,
        player: Optional[InputSource] = None,
    ) -> None:
        super().__init__(controller, config)
        self.dashboard = dashboard
        self.player = player

    def run(self) -> None:  # pragma: no cover - requires pygame event loop
        started = time.monotonic()
        self.controller.start()
        while self._running and not self.dashboard.quit_requested:
            dispatch_events(self.controller, self.dashboard.poll())
            if self.player is not None:
                dispatch_events(self.controller, self.player.poll())
            self.dashboard.render()
            if self.config.duration is not None and time.monotonic() - started >= self.config.duration:
                break


class IntersectionSystem:
    """Main entry point wiring lanes, controller, sink and input sources."""

    def __init__(
        self,
        config: IntersectionConfig,
        sink: Optional[PresentationSink] = None,
        scenario: Optional[TrafficScenario] = None,
    ) -> None:
        config.validate()
        if config.mode == "visual" and sink is not None:
            raise ValueError("Visual mode renders through its own dashboard; a custom sink is not supported")
        self.config = config
        self.scenario = scenario or find_scenario(config.scenario)
        self.lanes = create_lanes()
        self.scenario.seed(self.lanes)
        player = ScenarioPlayer(self.scenario, time_unit=config.time_unit)

        if config.mode == "visual":
            dashboard = PygameDashboard()
            self.controller = IntersectionController(
                self.lanes, dashboard, SmartTiming(), config
            )
            self.strategy: ModeStrategy = VisualModeStrategy(
                self.controller, config, dashboard, player
            )
        else:
            self.controller = IntersectionController(
                self.lanes, sink or LoggingSink(), SmartTiming(), config
            )
            self.strategy = HeadlessModeStrategy(self.controller, config, player)
        logger.info(
            "Intersection initialised in %s mode with scenario '%s'",
            config.mode,
            self.scenario.name,
        )

    def run(self) -> None:
        """Run the configured strategy until interrupted."""

        try:
            self.strategy.run()
        except KeyboardInterrupt:
            logger.info("Intersection simulation interrupted by user")
        finally:
            self.strategy.close()
