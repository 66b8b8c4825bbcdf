"""Manual simulation against a layout file.

Run from the repository root with:
  PYTHONPATH=src python scripts/lot_simulation.py docs/sample_layout.json

Park a few vehicles, keep them for a while on a simulated clock, then release
them and print the charges:
  PYTHONPATH=src python scripts/lot_simulation.py docs/sample_layout.json \
    --vehicles 4 --vehicle-type EV --prefer VIP --stay-minutes 95

Optional environment variables:
  LAYOUT_FILE
  LAYOUT_URL      (fetch the layout over HTTP instead of reading a file)
  LAYOUT_API_URI

--save writes the final layout back to the source.
--debug enables library debug logging.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import timedelta

import aiohttp

from pyparkedit import (
    HttpLayoutSource,
    JsonFileLayoutSource,
    LayoutIndex,
    ParkingManager,
    SpotType,
    VehicleInfo,
    VehicleType,
)
from pyparkedit.exceptions import PyParkedItError
from pyparkedit.layout.base import BaseLayoutSource
from pyparkedit.models import Availability
from pyparkedit.util import format_utc_timestamp, mask_license_plate, utc_now

_LOGGER = logging.getLogger(__name__)


class _SimulatedClock:
    def __init__(self) -> None:
        self.now = utc_now()

    def __call__(self):
        return self.now

    def advance(self, minutes: int) -> None:
        self.now += timedelta(minutes=minutes)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate entries and exits on a layout.")
    parser.add_argument("layout", nargs="?", default=os.getenv("LAYOUT_FILE"))
    parser.add_argument("--url", default=os.getenv("LAYOUT_URL"))
    parser.add_argument("--api-uri", default=os.getenv("LAYOUT_API_URI"))
    parser.add_argument("--vehicles", type=int, default=3)
    parser.add_argument(
        "--vehicle-type",
        type=VehicleType,
        choices=list(VehicleType),
        default=VehicleType.CAR,
    )
    parser.add_argument("--prefer", type=SpotType, choices=list(SpotType), default=None)
    parser.add_argument("--stay-minutes", type=int, default=60)
    parser.add_argument("--save", action="store_true")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)
    if not args.layout and not args.url:
        parser.error("a layout file or --url is required")
    return args


def _print_availability(label: str, availability: Availability) -> None:
    by_type = ", ".join(
        f"{spot_type}={count}" for spot_type, count in sorted(availability.available_by_type.items())
    )
    print(
        f"{label}: {availability.available}/{availability.total_capacity} available, "
        f"{availability.occupied} occupied ({by_type or 'none free'})"
    )


async def _simulate(args: argparse.Namespace, source: BaseLayoutSource) -> int:
    clock = _SimulatedClock()
    manager = ParkingManager(LayoutIndex(source), clock=clock)
    _print_availability("Before", await manager.availability())

    tickets = []
    for number in range(args.vehicles):
        plate = f"SIM{number:03d}"
        ticket = await manager.enter(VehicleInfo(plate, args.vehicle_type), args.prefer)
        if ticket is None:
            print(f"{mask_license_plate(plate)}: no spot available")
            continue
        print(
            f"{mask_license_plate(plate)}: {ticket.ticket_id} at {ticket.location.display_name} "
            f"({format_utc_timestamp(ticket.entry_time)})"
        )
        tickets.append(ticket)
    _print_availability("Parked", await manager.availability())

    clock.advance(args.stay_minutes)
    for ticket in tickets:
        result = await manager.exit(ticket.ticket_id)
        if result is None:
            print(f"{ticket.ticket_id}: ticket not found")
            continue
        print(f"{ticket.ticket_id}: charged {result.total_charge} for {result.duration}")
    _print_availability("After", await manager.availability())

    if args.save and not await manager.save_layout():
        print("Saving the layout failed.", file=sys.stderr)
        return 1
    return 0


async def _run(args: argparse.Namespace) -> int:
    if args.url:
        async with aiohttp.ClientSession() as session:
            source = HttpLayoutSource(session, base_url=args.url, api_uri=args.api_uri)
            return await _simulate(args, source)
    return await _simulate(args, JsonFileLayoutSource(args.layout))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except PyParkedItError as exc:
        _LOGGER.debug("Simulation failed", exc_info=True)
        print(f"Error ({exc.error_code}): {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
