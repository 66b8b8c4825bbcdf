"""Entry and exit handling for parked vehicles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from .exceptions import (
    DurationExceededError,
    SpotNotFoundError,
    ValidationError,
    VehicleNotAllowedError,
)
from .index import LayoutIndex
from .models import (
    Availability,
    ExitResult,
    ParkingLot,
    ParkingTicket,
    SpotMatch,
    SpotType,
    VehicleInfo,
    VehicleType,
)
from .pricing import PricingStrategy, calculate_charge, standard_pricing
from .rules import duration_valid, vehicle_type_allowed
from .util import (
    ensure_utc,
    generate_ticket_id,
    mask_license_plate,
    normalize_license_plate,
    to_decimal,
    utc_now,
)

_LOGGER = logging.getLogger(__name__)


class ParkingManager:
    """Issue tickets on entry and settle them on exit.

    Each manager owns its registry of active tickets. ``enter``, ``exit``,
    ``override_exit``, ``reload_layout`` and ``save_layout`` run one at a time
    under the manager's lock, so a spot found by one entry cannot be handed to
    another before it is assigned.
    """

    def __init__(
        self,
        index: LayoutIndex,
        *,
        pricing: PricingStrategy = standard_pricing,
        clock: Callable[[], datetime] = utc_now,
        ticket_id_factory: Callable[[datetime], str] = generate_ticket_id,
    ) -> None:
        if index is None:
            raise ValidationError("Layout index is required.")
        self._index = index
        self._pricing = pricing
        self._clock = clock
        self._ticket_id_factory = ticket_id_factory
        self._active_tickets: dict[str, ParkingTicket] = {}
        self._lock = asyncio.Lock()

    @property
    def index(self) -> LayoutIndex:
        return self._index

    async def enter(
        self,
        vehicle: VehicleInfo,
        preferred_spot_type: SpotType | None = None,
    ) -> ParkingTicket | None:
        """Park a vehicle and return its ticket, or ``None`` when the lot is full."""
        vehicle = self._validate_vehicle(vehicle)
        if preferred_spot_type is not None and not isinstance(preferred_spot_type, SpotType):
            raise ValidationError("preferred_spot_type must be a SpotType.")
        masked = mask_license_plate(vehicle.license_plate)
        _LOGGER.debug("Entry for %s (%s) started", masked, vehicle.type)

        async with self._lock:
            lot = await self._index.get_lot()
            institution = lot.institution
            if not vehicle_type_allowed(vehicle.type, institution):
                _LOGGER.warning("Entry for %s rejected: %s not allowed", masked, vehicle.type)
                raise VehicleNotAllowedError(
                    f"Vehicle type {vehicle.type} is not allowed at {institution.name}."
                )

            match = self._index.find_available_spot(vehicle.type, preferred_spot_type)
            if match is None:
                _LOGGER.debug("Entry for %s found no available spot", masked)
                return None

            now = self._now()
            ticket = ParkingTicket(
                ticket_id=self._new_ticket_id(now),
                vehicle=vehicle,
                entry_time=now,
                location=match.location,
            )
            self._index.assign(match.spot, ticket)
            self._active_tickets[ticket.ticket_id] = ticket

        _LOGGER.debug(
            "Entry for %s completed: ticket %s at %s",
            masked,
            ticket.ticket_id,
            ticket.location.display_name,
        )
        return ticket

    async def exit(self, ticket_id: str) -> ExitResult | None:
        """Settle a ticket and free its spot, or return ``None`` for unknown tickets."""
        _LOGGER.debug("Exit for ticket %s started", ticket_id)
        async with self._lock:
            ticket = self._active_tickets.get(ticket_id)
            if ticket is None:
                _LOGGER.debug("Exit for ticket %s: ticket not found", ticket_id)
                return None

            lot = await self._index.get_lot()
            institution = lot.institution
            ticket.exit_time = self._now()
            if not duration_valid(ticket.entry_time, ticket.exit_time, institution):
                _LOGGER.warning(
                    "Exit for ticket %s rejected: stay exceeds %d hours",
                    ticket_id,
                    institution.rules.max_parking_hours,
                )
                raise DurationExceededError(
                    "Parking duration exceeds maximum allowed time of "
                    f"{institution.rules.max_parking_hours} hours."
                )

            match = self._locate(ticket)
            if institution.is_free_parking:
                charge = Decimal("0")
            else:
                charge = calculate_charge(ticket, institution, match.spot.type, self._pricing)
            result = self._settle(ticket, match, charge)

        _LOGGER.debug("Exit for ticket %s completed: charge %s", ticket_id, result.total_charge)
        return result

    async def override_exit(self, ticket_id: str, charge: Decimal | int | str) -> ExitResult | None:
        """Release a ticket with an operator-supplied charge, skipping the duration rule.

        Used to recover tickets whose exit was rejected with
        ``DurationExceededError``.
        """
        amount = to_decimal(charge)
        if amount < 0:
            raise ValidationError("Override charge cannot be negative.")
        async with self._lock:
            ticket = self._active_tickets.get(ticket_id)
            if ticket is None:
                return None
            await self._index.get_lot()
            ticket.exit_time = self._now()
            match = self._locate(ticket)
            result = self._settle(ticket, match, amount)
        _LOGGER.warning("Ticket %s released by override with charge %s", ticket_id, amount)
        return result

    async def availability(self) -> Availability:
        await self._index.get_lot()
        return self._index.availability()

    async def reload_layout(self) -> ParkingLot:
        async with self._lock:
            return await self._index.reload()

    async def save_layout(self) -> bool:
        async with self._lock:
            await self._index.get_lot()
            return await self._index.save()

    def get_ticket(self, ticket_id: str) -> ParkingTicket | None:
        return self._active_tickets.get(ticket_id)

    def active_tickets(self) -> list[ParkingTicket]:
        return list(self._active_tickets.values())

    def reset(self) -> None:
        """Forget every active ticket and free the spots they still hold."""
        if self._index.is_loaded:
            for ticket in self._active_tickets.values():
                match = self._index.locate(ticket.location)
                if match is not None and match.spot.ticket_id == ticket.ticket_id:
                    self._index.free(match.spot)
        self._active_tickets.clear()

    def _validate_vehicle(self, vehicle: VehicleInfo) -> VehicleInfo:
        if not isinstance(vehicle, VehicleInfo):
            raise ValidationError("vehicle must be a VehicleInfo.")
        if not isinstance(vehicle.type, VehicleType):
            raise ValidationError("vehicle.type must be a VehicleType.")
        return replace(vehicle, license_plate=normalize_license_plate(vehicle.license_plate))

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _new_ticket_id(self, now: datetime) -> str:
        ticket_id = self._ticket_id_factory(now)
        while ticket_id in self._active_tickets:
            ticket_id = self._ticket_id_factory(now)
        return ticket_id

    def _locate(self, ticket: ParkingTicket) -> SpotMatch:
        match = self._index.locate(ticket.location)
        if match is None or match.spot.ticket_id != ticket.ticket_id:
            _LOGGER.error(
                "Ticket %s points at %s/%s/%s which the layout no longer holds for it",
                ticket.ticket_id,
                ticket.location.floor_id,
                ticket.location.section_id,
                ticket.location.spot_id,
            )
            raise SpotNotFoundError(f"Could not locate spot for ticket {ticket.ticket_id}.")
        return match

    def _settle(self, ticket: ParkingTicket, match: SpotMatch, charge: Decimal) -> ExitResult:
        ticket.total_charge = charge
        self._index.free(match.spot)
        del self._active_tickets[ticket.ticket_id]
        return ExitResult(
            ticket=ticket,
            total_charge=charge,
            duration=ticket.exit_time - ticket.entry_time,
        )
