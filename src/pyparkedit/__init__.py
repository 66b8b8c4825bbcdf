"""pyParkedIt package."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    DurationExceededError,
    InvalidStateError,
    LayoutError,
    NetworkError,
    PyParkedItError,
    SpotNotFoundError,
    ValidationError,
    VehicleNotAllowedError,
)
from .index import LayoutIndex
from .layout import BaseLayoutSource, HttpLayoutSource, JsonFileLayoutSource
from .manager import ParkingManager
from .models import (
    Availability,
    AvailabilityStatus,
    ExitResult,
    Floor,
    Institution,
    InstitutionType,
    ParkingLot,
    ParkingRules,
    ParkingTicket,
    Section,
    Spot,
    SpotLocation,
    SpotMatch,
    SpotType,
    VehicleInfo,
    VehicleType,
)
from .pricing import PricingStrategy, calculate_charge, standard_pricing

try:
    __version__ = version("pyparkedit")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "Availability",
    "AvailabilityStatus",
    "BaseLayoutSource",
    "DurationExceededError",
    "ExitResult",
    "Floor",
    "HttpLayoutSource",
    "Institution",
    "InstitutionType",
    "InvalidStateError",
    "JsonFileLayoutSource",
    "LayoutError",
    "LayoutIndex",
    "NetworkError",
    "ParkingLot",
    "ParkingManager",
    "ParkingRules",
    "ParkingTicket",
    "PricingStrategy",
    "PyParkedItError",
    "Section",
    "Spot",
    "SpotLocation",
    "SpotMatch",
    "SpotNotFoundError",
    "SpotType",
    "ValidationError",
    "VehicleInfo",
    "VehicleNotAllowedError",
    "VehicleType",
    "__version__",
    "calculate_charge",
    "standard_pricing",
]
