"""Public data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import StrEnum


class InstitutionType(StrEnum):
    MALL = "Mall"
    THEATRE = "Theatre"
    HOSPITAL = "Hospital"
    COLLEGE = "College"
    CORPORATE = "Corporate"


class VehicleType(StrEnum):
    CAR = "Car"
    BIKE = "Bike"
    EV = "EV"
    TRUCK = "Truck"
    AUTO = "Auto"
    BICYCLE = "Bicycle"


class SpotType(StrEnum):
    STANDARD = "Standard"
    VIP = "VIP"
    STAFF = "Staff"
    ACCESSIBLE = "Accessible"


class AvailabilityStatus(StrEnum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    DISABLED = "Disabled"
    RESERVED = "Reserved"


@dataclass(frozen=True, slots=True)
class ParkingRules:
    max_parking_hours: int = 0
    has_vip_spots: bool = False
    has_staff_spots: bool = False
    has_accessible_spots: bool = False
    allowed_vehicle_types: tuple[VehicleType, ...] = ()
    time_based_rules: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class Institution:
    id: str
    name: str
    type: InstitutionType
    is_free_parking: bool = False
    free_minutes: int = 0
    base_rate: Decimal = Decimal("0")
    hourly_rate: Decimal = Decimal("0")
    rules: ParkingRules = field(default_factory=ParkingRules)


@dataclass(frozen=True, slots=True)
class VehicleInfo:
    license_plate: str
    type: VehicleType
    owner_name: str | None = None
    contact_info: str | None = None


@dataclass(slots=True)
class Spot:
    """A single parking space.

    ``ticket_id`` names the ticket occupying the spot; it is set exactly when
    ``status`` is ``AvailabilityStatus.OCCUPIED``.
    """

    id: str
    type: SpotType = SpotType.STANDARD
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    allowed_vehicle_types: list[VehicleType] = field(default_factory=list)
    is_enabled: bool = True
    ticket_id: str | None = None


@dataclass(slots=True)
class Section:
    id: str
    name: str
    spots: list[Spot] = field(default_factory=list)
    is_enabled: bool = True


@dataclass(slots=True)
class Floor:
    id: str
    name: str
    sections: list[Section] = field(default_factory=list)
    is_enabled: bool = True


@dataclass(slots=True)
class ParkingLot:
    id: str
    name: str
    institution: Institution
    floors: list[Floor] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SpotLocation:
    floor_id: str
    section_id: str
    spot_id: str
    display_name: str = ""


@dataclass(slots=True)
class ParkingTicket:
    ticket_id: str
    vehicle: VehicleInfo
    entry_time: datetime
    location: SpotLocation
    exit_time: datetime | None = None
    total_charge: Decimal = Decimal("0")
    is_paid: bool = False


@dataclass(frozen=True, slots=True)
class SpotMatch:
    floor: Floor
    section: Section
    spot: Spot

    @property
    def location(self) -> SpotLocation:
        return SpotLocation(
            floor_id=self.floor.id,
            section_id=self.section.id,
            spot_id=self.spot.id,
            display_name=f"{self.floor.name}, {self.section.name}, Spot {self.spot.id}",
        )


@dataclass(frozen=True, slots=True)
class ExitResult:
    ticket: ParkingTicket
    total_charge: Decimal
    duration: timedelta


@dataclass(frozen=True, slots=True)
class Availability:
    total_capacity: int
    occupied: int
    available: int
    available_by_type: dict[SpotType, int] = field(default_factory=dict)
