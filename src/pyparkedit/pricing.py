"""Parking charge calculation."""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import timedelta
from decimal import Decimal

from .const import MINUTES_PER_HOUR, SPOT_TYPE_MULTIPLIERS
from .exceptions import InvalidStateError
from .models import Institution, ParkingTicket, SpotType

PricingStrategy = Callable[[ParkingTicket, Institution, SpotType], Decimal]


def spot_type_multiplier(spot_type: SpotType) -> Decimal:
    return SPOT_TYPE_MULTIPLIERS.get(spot_type, Decimal("1.0"))


def standard_pricing(ticket: ParkingTicket, institution: Institution, spot_type: SpotType) -> Decimal:
    """Charge the base rate plus every started billable hour, scaled by spot type.

    Minutes are truncated, the free allowance is subtracted, and the remainder
    is rounded up to whole hours. The multiplier applies to the whole charge,
    base rate included.
    """
    if ticket.exit_time is None:
        raise InvalidStateError("Exit time is required for charge calculation.")
    total_minutes = (ticket.exit_time - ticket.entry_time) // timedelta(minutes=1)

    charge = institution.base_rate
    billable_minutes = max(0, total_minutes - institution.free_minutes)
    if billable_minutes > 0:
        billable_hours = math.ceil(billable_minutes / MINUTES_PER_HOUR)
        charge += billable_hours * institution.hourly_rate

    return charge * spot_type_multiplier(spot_type)


def calculate_charge(
    ticket: ParkingTicket,
    institution: Institution,
    spot_type: SpotType,
    strategy: PricingStrategy = standard_pricing,
) -> Decimal:
    if ticket.exit_time is None:
        raise InvalidStateError("Cannot calculate charge for ticket without exit time.")
    return strategy(ticket, institution, spot_type)
