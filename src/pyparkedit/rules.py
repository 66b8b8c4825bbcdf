"""Institution and spot eligibility rules.

All functions here are pure: they only read their arguments.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import AvailabilityStatus, Institution, Spot, VehicleType
from .util import ensure_utc


def vehicle_type_allowed(vehicle_type: VehicleType, institution: Institution) -> bool:
    allowed = institution.rules.allowed_vehicle_types
    if not allowed:
        return True
    return vehicle_type in allowed


def spot_eligible(vehicle_type: VehicleType, spot: Spot) -> bool:
    if not spot.is_enabled or spot.status != AvailabilityStatus.AVAILABLE:
        return False
    if not spot.allowed_vehicle_types:
        return True
    return vehicle_type in spot.allowed_vehicle_types


def duration_valid(entry_time: datetime, exit_time: datetime, institution: Institution) -> bool:
    max_hours = institution.rules.max_parking_hours
    if max_hours <= 0:
        return True
    return ensure_utc(exit_time) - ensure_utc(entry_time) <= timedelta(hours=max_hours)
