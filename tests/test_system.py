from pathlib import Path
import logging
import sys
import threading

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

import main as cli
from adaptive_intersection import IntersectionConfig, IntersectionSystem
from adaptive_intersection.controller import IntersectionController
from adaptive_intersection.events import AddCrowd, AddVehicle
from adaptive_intersection.lane import LaneSnapshot, LightState, create_lanes
from adaptive_intersection.presentation.base import PresentationSink
from adaptive_intersection.presentation.dashboard import key_bindings
from adaptive_intersection.presentation.logging_sink import LoggingSink
from adaptive_intersection.system import dispatch_events


class StatusSink(PresentationSink):
    def __init__(self) -> None:
        self.statuses = []
        self.closed = False
        self._lock = threading.Lock()

    def publish(self, snapshot) -> None:
        pass

    def publish_status(self, text: str) -> None:
        with self._lock:
            self.statuses.append(text)

    def close(self) -> None:
        self.closed = True


def test_config_defaults_validate():
    config = IntersectionConfig()
    config.validate()

    assert config.mode == "headless"
    assert config.seconds(1.5) == pytest.approx(1.5)
    assert IntersectionConfig(time_unit=0.1).seconds(8) == pytest.approx(0.8)


@pytest.mark.parametrize(
    "overrides",
    [
        {"time_unit": 0},
        {"green_tick": -1},
        {"post_green_yellow": -0.5},
        {"mode": "realistic"},
        {"emergency_selection": "random"},
        {"duration": 0},
    ],
)
def test_config_rejects_invalid_values(overrides):
    with pytest.raises(ValueError):
        IntersectionConfig(**overrides).validate()


def test_dispatch_events_drops_rejected_events():
    sink = StatusSink()
    controller = IntersectionController(create_lanes(), sink)

    applied = dispatch_events(
        controller,
        [AddVehicle("NORTH"), AddVehicle("UPTOWN"), AddCrowd("EAST", -1), AddCrowd("EAST", 2)],
    )

    assert applied == 2
    assert controller.lane("north").vehicle_count == 1
    assert controller.lane("EAST").crowd_count == 2
    rejected = [text for text in sink.statuses if text.startswith("Rejected input:")]
    assert len(rejected) == 2


def test_logging_sink_suppresses_repeated_lines(caplog):
    sink = LoggingSink()
    snap = LaneSnapshot("NORTH", 3, 1, False, LightState.GREEN)

    with caplog.at_level(logging.DEBUG, logger="adaptive_intersection.presentation.logging_sink"):
        sink.publish_status("Preparing to release: NORTH")
        sink.publish_status("Preparing to release: NORTH")
        sink.publish(snap)
        sink.publish(snap)

    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("Status: Preparing to release: NORTH") == 1
    assert len([m for m in messages if m.startswith("NORTH")]) == 1
    assert sink.latest("NORTH") == snap
    assert sink.latest("WEST") is None


def test_key_bindings_cover_every_lane():
    bindings = key_bindings()

    assert bindings["1"] == AddVehicle("NORTH")
    assert bindings["r"] == AddCrowd("WEST", 5)
    assert bindings["s"].lane == "EAST"
    assert bindings["space"].lane is None


def test_headless_system_replays_scenario_and_stops():
    sink = StatusSink()
    config = IntersectionConfig(time_unit=0.005, duration=0.4, scenario="ambulance-east")
    system = IntersectionSystem(config, sink=sink)

    assert system.lanes[0].vehicle_count == 8

    system.run()

    assert not system.controller.is_running
    assert sink.closed
    assert "Emergency vehicle added to EAST" in sink.statuses
    assert "Preparing to release: EAST" in sink.statuses
    assert sink.statuses[-1] == "Controller stopped."
    assert all(lane.light.get() is LightState.RED for lane in system.lanes)


def test_cli_lists_scenarios(capsys):
    cli.main(["--list-scenarios"])
    out = capsys.readouterr().out
    assert "baseline" in out
    assert "ambulance-east" in out


def test_cli_rejects_unknown_scenario():
    with pytest.raises(SystemExit):
        cli.main(["--scenario", "gridlock"])


def test_cli_rejects_invalid_time_unit():
    with pytest.raises(SystemExit):
        cli.main(["--time-unit", "0"])


def test_visual_mode_rejects_custom_sink():
    config = IntersectionConfig(mode="visual")

    with pytest.raises(ValueError):
        IntersectionSystem(config, sink=StatusSink())
