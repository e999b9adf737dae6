"""Command line entry point for the adaptive intersection simulator."""

from __future__ import annotations

import argparse
import logging

from adaptive_intersection import IntersectionConfig, IntersectionSystem
from adaptive_intersection.scenarios import load_predefined_scenarios


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--mode", choices=["headless", "visual"], default="headless")
    parser.add_argument(
        "--time-unit",
        type=float,
        default=1.0,
        help="Wall-clock seconds per simulation time unit",
    )
    parser.add_argument("--scenario", default="baseline", help="Predefined scenario name")
    parser.add_argument("--list-scenarios", action="store_true", help="Print scenarios and exit")
    parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    parser.add_argument(
        "--selection",
        dest="emergency_selection",
        choices=["scan", "priority"],
        default="scan",
        help="How to choose between several pending emergencies",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    scenarios = load_predefined_scenarios()
    if args.list_scenarios:
        for scenario in scenarios:
            print(f"{scenario.name:<18} {scenario.description}")
        return
    if args.scenario not in {scenario.name for scenario in scenarios}:
        parser.error(f"unknown scenario {args.scenario!r}; use --list-scenarios")

    config = IntersectionConfig(
        mode=args.mode,
        time_unit=args.time_unit,
        emergency_selection=args.emergency_selection,
        scenario=args.scenario,
        duration=args.duration,
    )
    try:
        config.validate()
    except ValueError as exc:
        parser.error(str(exc))
    system = IntersectionSystem(config)
    system.run()


if __name__ == "__main__":
    main()
