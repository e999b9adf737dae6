from pathlib import Path
import sys
import threading

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from adaptive_intersection.lane import (
    LANE_ORDER,
    InvalidCountError,
    Lane,
    LightState,
    TrafficLight,
    UnknownLaneError,
    create_lanes,
)


def test_light_starts_red_and_holds_single_state():
    light = TrafficLight()
    assert light.get() is LightState.RED

    light.set(LightState.GREEN)
    assert light.get() is LightState.GREEN


def test_lane_name_is_normalised_and_validated():
    assert Lane("north").name == "NORTH"
    with pytest.raises(UnknownLaneError):
        Lane("UP")


def test_create_lanes_uses_fixed_scan_order():
    lanes = create_lanes()
    assert [lane.name for lane in lanes] == [d.value for d in LANE_ORDER]
    assert [lane.name for lane in lanes] == ["NORTH", "EAST", "SOUTH", "WEST"]


def test_add_operations_update_counts_and_load():
    lane = Lane("EAST")
    lane.add_vehicle()
    lane.add_vehicles(4)
    lane.add_crowd(7)

    assert lane.vehicle_count == 5
    assert lane.crowd_count == 7
    assert lane.load == 12
    assert lane.has_emergency is False


def test_emergency_vehicle_sets_flag_and_counts_as_vehicle():
    lane = Lane("SOUTH")
    lane.add_vehicle(emergency=True)

    assert lane.vehicle_count == 1
    assert lane.has_emergency is True


def test_negative_deltas_are_rejected_without_mutation():
    lane = Lane("WEST")
    lane.add_vehicles(3)
    lane.add_crowd(2)

    with pytest.raises(InvalidCountError):
        lane.add_vehicles(-1)
    with pytest.raises(InvalidCountError):
        lane.add_crowd(-5)

    assert (lane.vehicle_count, lane.crowd_count) == (3, 2)


def test_invalid_count_error_is_a_value_error():
    assert issubclass(InvalidCountError, ValueError)
    assert issubclass(UnknownLaneError, ValueError)


@pytest.mark.parametrize(
    "vehicles, expected",
    [(9, 6), (1, 0), (0, 0), (2, 1), (30, 20)],
)
def test_reduce_counts_after_green_releases_a_third_of_vehicles(vehicles, expected):
    lane = Lane("NORTH")
    lane.add_vehicles(vehicles)
    lane.reduce_counts_after_green()
    assert lane.vehicle_count == expected


@pytest.mark.parametrize("crowd, expected", [(12, 7), (3, 0), (0, 0), (5, 0)])
def test_reduce_counts_after_green_releases_up_to_five_pedestrians(crowd, expected):
    lane = Lane("NORTH")
    lane.add_crowd(crowd)
    lane.reduce_counts_after_green()
    assert lane.crowd_count == expected


def test_reduce_keeps_emergency_flag_until_cleared():
    lane = Lane("EAST")
    lane.add_vehicle(emergency=True)
    lane.reduce_counts_after_green()
    lane.reduce_counts_after_green()

    assert lane.vehicle_count == 0
    assert lane.has_emergency is True

    lane.clear_counts()
    assert lane.has_emergency is False
    assert lane.load == 0


def test_counts_never_negative_over_mixed_operations():
    lane = Lane("SOUTH")
    for step in range(50):
        if step % 7 == 0:
            lane.add_crowd(step % 4)
        if step % 5 == 0:
            lane.add_vehicles(step % 3)
        lane.reduce_counts_after_green()
        if step % 11 == 0:
            lane.clear_counts()
        snap = lane.snapshot()
        assert snap.vehicle_count >= 0
        assert snap.crowd_count >= 0


def test_snapshot_reports_consistent_fields():
    lane = Lane("WEST")
    lane.add_vehicles(4)
    lane.add_crowd(6)
    lane.add_vehicle(emergency=True)
    lane.light.set(LightState.YELLOW)

    snap = lane.snapshot()

    assert snap.name == "WEST"
    assert snap.vehicle_count == 5
    assert snap.crowd_count == 6
    assert snap.load == 11
    assert snap.emergency is True
    assert snap.light is LightState.YELLOW


def test_concurrent_mutation_keeps_snapshots_consistent():
    lane = Lane("NORTH")
    torn = []

    def writer() -> None:
        for _ in range(2000):
            # vehicles and crowd always move together in this test
            with lane._lock:
                lane._vehicle_count += 1
                lane._crowd_count += 1

    def reader() -> None:
        for _ in range(2000):
            snap = lane.snapshot()
            if snap.vehicle_count != snap.crowd_count:
                torn.append(snap)

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert torn == []
    assert lane.vehicle_count == 2000


def test_concurrent_adds_are_not_lost():
    lane = Lane("EAST")

    def add_many() -> None:
        for _ in range(1000):
            lane.add_vehicle()
            lane.add_crowd(1)

    threads = [threading.Thread(target=add_many) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert lane.vehicle_count == 4000
    assert lane.crowd_count == 4000


@pytest.mark.parametrize("count", [2.7, "3", None, True])
def test_non_integer_deltas_are_rejected_without_mutation(count):
    lane = Lane("NORTH")
    lane.add_vehicles(2)

    with pytest.raises(InvalidCountError):
        lane.add_vehicles(count)
    with pytest.raises(InvalidCountError):
        lane.add_crowd(count)

    assert (lane.vehicle_count, lane.crowd_count) == (2, 0)
