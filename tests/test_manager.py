from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from pyparkedit.exceptions import (
    DurationExceededError,
    SpotNotFoundError,
    ValidationError,
    VehicleNotAllowedError,
)
from pyparkedit.index import LayoutIndex
from pyparkedit.layout.base import BaseLayoutSource
from pyparkedit.manager import ParkingManager
from pyparkedit.models import AvailabilityStatus, SpotType, VehicleInfo, VehicleType
from pyparkedit.util import generate_ticket_id


def _manager(source, clock, **kwargs) -> ParkingManager:
    return ParkingManager(LayoutIndex(source), clock=clock, **kwargs)


def _car(plate: str = "ab-12-cd") -> VehicleInfo:
    return VehicleInfo(plate, VehicleType.CAR)


class _SlowLayoutSource(BaseLayoutSource):
    def __init__(self, inner: BaseLayoutSource) -> None:
        self._inner = inner

    async def load_layout(self):
        await asyncio.sleep(0.01)
        return await self._inner.load_layout()

    async def save_layout(self, lot) -> None:
        await self._inner.save_layout(lot)


@pytest.mark.asyncio
async def test_enter_issues_ticket(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())

    assert ticket is not None
    assert ticket.ticket_id.startswith("TKT-20240101100000-")
    assert ticket.vehicle.license_plate == "AB12CD"
    assert ticket.entry_time == clock.now
    assert ticket.exit_time is None
    assert (ticket.location.floor_id, ticket.location.section_id, ticket.location.spot_id) == (
        "F0",
        "A",
        "A2",
    )
    assert ticket.location.display_name == "Ground, Section A, Spot A2"
    assert manager.get_ticket(ticket.ticket_id) is ticket

    spot = manager.index.locate(ticket.location).spot
    assert spot.status == AvailabilityStatus.OCCUPIED
    assert spot.ticket_id == ticket.ticket_id


@pytest.mark.asyncio
async def test_enter_rejects_vehicle_type(source, clock) -> None:
    manager = _manager(source, clock)
    with pytest.raises(VehicleNotAllowedError):
        await manager.enter(VehicleInfo("TRUCK1", VehicleType.TRUCK))
    assert manager.active_tickets() == []
    assert (await manager.availability()).occupied == 0


@pytest.mark.asyncio
async def test_enter_validates_input(source, clock) -> None:
    manager = _manager(source, clock)
    with pytest.raises(ValidationError):
        await manager.enter(VehicleInfo("!!", VehicleType.CAR))
    with pytest.raises(ValidationError):
        await manager.enter(VehicleInfo("AB12", "Car"))  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        await manager.enter(_car(), "VIP")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_enter_returns_none_when_full(source, clock) -> None:
    manager = _manager(source, clock)
    for number in range(4):
        assert await manager.enter(_car(f"CAR{number}")) is not None
    assert await manager.enter(_car("CAR9")) is None
    assert len(manager.active_tickets()) == 4


@pytest.mark.asyncio
async def test_enter_preferred_falls_back_to_standard(source, clock) -> None:
    manager = _manager(source, clock)
    first = await manager.enter(_car("VIP1"), SpotType.VIP)
    second = await manager.enter(_car("VIP2"), SpotType.VIP)
    assert first.location.spot_id == "A3"
    assert second.location.spot_id == "A2"


@pytest.mark.asyncio
async def test_enter_then_exit_round_trip(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    clock.advance(minutes=45)

    result = await manager.exit(ticket.ticket_id)

    assert result is not None
    assert result.total_charge == Decimal("15.00")
    assert result.duration == timedelta(minutes=45)
    assert result.ticket is ticket
    assert ticket.exit_time == clock.now
    assert ticket.total_charge == Decimal("15.00")
    assert ticket.is_paid is False
    assert manager.get_ticket(ticket.ticket_id) is None

    spot = manager.index.locate(ticket.location).spot
    assert spot.status == AvailabilityStatus.AVAILABLE
    assert spot.ticket_id is None
    availability = await manager.availability()
    assert availability.occupied == 0
    assert availability.available == availability.total_capacity


@pytest.mark.asyncio
async def test_exit_applies_spot_multiplier(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car(), SpotType.VIP)
    clock.advance(minutes=45)
    result = await manager.exit(ticket.ticket_id)
    assert result.total_charge == Decimal("22.50")


@pytest.mark.asyncio
async def test_exit_unknown_ticket_returns_none(source, clock) -> None:
    manager = _manager(source, clock)
    assert await manager.exit("TKT-missing") is None


@pytest.mark.asyncio
async def test_exit_twice_returns_none(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    assert await manager.exit(ticket.ticket_id) is not None
    assert await manager.exit(ticket.ticket_id) is None


@pytest.mark.asyncio
async def test_exit_free_parking_charges_nothing(source, layout_document, clock) -> None:
    layout_document["institution"]["isFreeParking"] = True
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    clock.advance(hours=3)
    result = await manager.exit(ticket.ticket_id)
    assert result.total_charge == Decimal("0")


@pytest.mark.asyncio
async def test_exit_duration_exceeded_leaves_state(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    clock.advance(hours=4, minutes=1)

    with pytest.raises(DurationExceededError):
        await manager.exit(ticket.ticket_id)

    assert manager.get_ticket(ticket.ticket_id) is ticket
    assert ticket.exit_time == clock.now
    spot = manager.index.locate(ticket.location).spot
    assert spot.status == AvailabilityStatus.OCCUPIED
    assert spot.ticket_id == ticket.ticket_id


@pytest.mark.asyncio
async def test_override_exit_releases_stuck_ticket(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    clock.advance(hours=6)
    with pytest.raises(DurationExceededError):
        await manager.exit(ticket.ticket_id)

    result = await manager.override_exit(ticket.ticket_id, "50.00")

    assert result.total_charge == Decimal("50.00")
    assert result.duration == timedelta(hours=6)
    assert manager.get_ticket(ticket.ticket_id) is None
    assert manager.index.locate(ticket.location).spot.status == AvailabilityStatus.AVAILABLE


@pytest.mark.asyncio
async def test_override_exit_validation(source, clock) -> None:
    manager = _manager(source, clock)
    assert await manager.override_exit("TKT-missing", 0) is None
    with pytest.raises(ValidationError):
        await manager.override_exit("TKT-missing", "-1")


@pytest.mark.asyncio
async def test_exit_spot_removed_by_reload(source, layout_document, clock, caplog) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    layout_document["parkingLot"]["floors"][0]["sections"][0]["spots"].pop(1)
    await manager.reload_layout()

    with pytest.raises(SpotNotFoundError):
        await manager.exit(ticket.ticket_id)
    assert manager.get_ticket(ticket.ticket_id) is ticket
    assert ticket.ticket_id in caplog.text


@pytest.mark.asyncio
async def test_exit_spot_no_longer_held_after_reload(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    await manager.reload_layout()

    # The reloaded tree has the spot, but not as occupied by this ticket.
    with pytest.raises(SpotNotFoundError):
        await manager.exit(ticket.ticket_id)
    assert manager.index.locate(ticket.location).spot.status == AvailabilityStatus.AVAILABLE


@pytest.mark.asyncio
async def test_exit_after_reload_of_saved_layout(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    assert await manager.save_layout() is True
    source.document = source.saved[-1]
    await manager.reload_layout()

    clock.advance(minutes=20)
    result = await manager.exit(ticket.ticket_id)
    assert result.total_charge == Decimal("10")


@pytest.mark.asyncio
async def test_custom_pricing_strategy(source, clock) -> None:
    def flat(ticket, institution, spot_type):
        return Decimal("7.25")

    manager = _manager(source, clock, pricing=flat)
    ticket = await manager.enter(_car())
    result = await manager.exit(ticket.ticket_id)
    assert result.total_charge == Decimal("7.25")


@pytest.mark.asyncio
async def test_ticket_ids_are_unique(source, clock) -> None:
    ids = iter(["TKT-A", "TKT-A", "TKT-B"])
    manager = _manager(source, clock, ticket_id_factory=lambda now: next(ids))
    first = await manager.enter(_car("CAR1"))
    second = await manager.enter(_car("CAR2"))
    assert first.ticket_id == "TKT-A"
    assert second.ticket_id == "TKT-B"


def test_generated_ticket_ids_differ(clock) -> None:
    assert generate_ticket_id(clock.now) != generate_ticket_id(clock.now)


@pytest.mark.asyncio
async def test_concurrent_entries_get_distinct_spots(source, clock) -> None:
    manager = _manager(source, clock)
    tickets = await asyncio.gather(*(manager.enter(_car(f"CAR{n}")) for n in range(6)))

    parked = [ticket for ticket in tickets if ticket is not None]
    assert len(parked) == 4
    assert tickets.count(None) == 2
    spot_ids = {ticket.location.spot_id for ticket in parked}
    assert len(spot_ids) == 4
    assert source.loads == 1


@pytest.mark.asyncio
async def test_managers_do_not_share_registry(source, clock) -> None:
    first = _manager(source, clock)
    second = _manager(source, clock)
    ticket = await first.enter(_car())
    assert second.get_ticket(ticket.ticket_id) is None
    assert await second.exit(ticket.ticket_id) is None


@pytest.mark.asyncio
async def test_reset_clears_registry(source, clock) -> None:
    manager = _manager(source, clock)
    ticket = await manager.enter(_car())
    manager.reset()
    assert manager.active_tickets() == []

    spot = manager.index.locate(ticket.location).spot
    assert spot.status == AvailabilityStatus.AVAILABLE
    assert spot.ticket_id is None
    assert (await manager.availability()).occupied == 0
    assert (await manager.enter(_car("XY-99-ZZ"))).location == ticket.location


def test_reset_before_load_is_noop(source, clock) -> None:
    manager = _manager(source, clock)
    manager.reset()
    assert manager.active_tickets() == []
    assert source.loads == 0


@pytest.mark.asyncio
async def test_clock_must_be_timezone_aware(source) -> None:
    manager = _manager(source, lambda: datetime(2024, 1, 1, 10, 0))
    with pytest.raises(ValidationError):
        await manager.enter(_car())


@pytest.mark.asyncio
async def test_first_load_is_shared_by_concurrent_callers(source, clock) -> None:
    manager = _manager(_SlowLayoutSource(source), clock)
    ticket, availability = await asyncio.gather(manager.enter(_car()), manager.availability())

    assert source.loads == 1
    assert ticket is not None
    spot = manager.index.locate(ticket.location).spot
    assert spot.status == AvailabilityStatus.OCCUPIED
    assert spot.ticket_id == ticket.ticket_id
    assert availability.total_capacity == (await manager.availability()).total_capacity

    second = await manager.enter(_car("XY-99-ZZ"))
    assert second is not None
    assert second.location != ticket.location
    assert await manager.exit(ticket.ticket_id) is not None
    assert await manager.exit(second.ticket_id) is not None
