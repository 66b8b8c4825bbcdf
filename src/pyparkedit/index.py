"""In-memory index over the floor, section and spot tree."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator

from .exceptions import InvalidStateError, LayoutError, NetworkError, ValidationError
from .layout.base import BaseLayoutSource
from .models import (
    Availability,
    AvailabilityStatus,
    ParkingLot,
    ParkingTicket,
    Spot,
    SpotLocation,
    SpotMatch,
    SpotType,
    VehicleType,
)
from .rules import spot_eligible

_LOGGER = logging.getLogger(__name__)


class LayoutIndex:
    """Cache of the loaded parking lot plus search and mutation over its spots.

    The tree is loaded once from the layout source and kept until ``reload``
    swaps in a completely loaded replacement. Search and mutation methods work
    on the cached tree and require it to be loaded.
    """

    def __init__(self, source: BaseLayoutSource) -> None:
        if source is None:
            raise ValidationError("Layout source is required.")
        self._source = source
        self._lot: ParkingLot | None = None
        self._load_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._lot is not None

    @property
    def lot(self) -> ParkingLot:
        if self._lot is None:
            raise InvalidStateError("Layout has not been loaded.")
        return self._lot

    async def get_lot(self) -> ParkingLot:
        if self._lot is not None:
            return self._lot
        async with self._load_lock:
            if self._lot is None:
                self._lot = await self._source.load_layout()
            return self._lot

    async def reload(self) -> ParkingLot:
        async with self._load_lock:
            lot = await self._source.load_layout()
            self._lot = lot
        _LOGGER.debug("Layout %s reloaded", lot.id)
        return lot

    async def save(self) -> bool:
        """Write the tree back to the source; failures are logged, not raised."""
        lot = self.lot
        try:
            await self._source.save_layout(lot)
        except (LayoutError, NetworkError) as exc:
            _LOGGER.warning("Saving layout %s failed: %s", lot.id, exc)
            return False
        return True

    def iter_spots(self) -> Iterator[SpotMatch]:
        """Yield spots under enabled floors and sections, in declaration order."""
        for floor in self.lot.floors:
            if not floor.is_enabled:
                continue
            for section in floor.sections:
                if not section.is_enabled:
                    continue
                for spot in section.spots:
                    yield SpotMatch(floor, section, spot)

    def _first_match(self, predicate: Callable[[Spot], bool]) -> SpotMatch | None:
        for match in self.iter_spots():
            if predicate(match.spot):
                return match
        return None

    def find_available_spot(
        self,
        vehicle_type: VehicleType,
        preferred_type: SpotType | None = None,
    ) -> SpotMatch | None:
        """Find a spot: the preferred type first, then standard, then any type."""
        if preferred_type is not None:
            match = self._first_match(
                lambda spot: spot.type == preferred_type and spot_eligible(vehicle_type, spot)
            )
            if match is not None:
                return match
        match = self._first_match(
            lambda spot: spot.type == SpotType.STANDARD and spot_eligible(vehicle_type, spot)
        )
        if match is not None:
            return match
        return self._first_match(lambda spot: spot_eligible(vehicle_type, spot))

    def assign(self, spot: Spot, ticket: ParkingTicket) -> None:
        spot.status = AvailabilityStatus.OCCUPIED
        spot.ticket_id = ticket.ticket_id

    def free(self, spot: Spot) -> None:
        spot.status = AvailabilityStatus.AVAILABLE
        spot.ticket_id = None

    def locate(self, location: SpotLocation) -> SpotMatch | None:
        floor = next((item for item in self.lot.floors if item.id == location.floor_id), None)
        if floor is None:
            return None
        section = next((item for item in floor.sections if item.id == location.section_id), None)
        if section is None:
            return None
        spot = next((item for item in section.spots if item.id == location.spot_id), None)
        if spot is None:
            return None
        return SpotMatch(floor, section, spot)

    def availability(self) -> Availability:
        total = 0
        occupied = 0
        by_type: dict[SpotType, int] = {}
        for match in self.iter_spots():
            spot = match.spot
            if not spot.is_enabled:
                continue
            total += 1
            if spot.status == AvailabilityStatus.OCCUPIED:
                occupied += 1
            elif spot.status == AvailabilityStatus.AVAILABLE:
                by_type[spot.type] = by_type.get(spot.type, 0) + 1
        return Availability(
            total_capacity=total,
            occupied=occupied,
            available=total - occupied,
            available_by_type=by_type,
        )
