"""Layout document loading, validation and mapping."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from decimal import Decimal
from enum import StrEnum
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any, TypeVar

import jsonschema

from ..exceptions import LayoutError, ValidationError
from ..models import (
    AvailabilityStatus,
    Floor,
    Institution,
    InstitutionType,
    ParkingLot,
    ParkingRules,
    Section,
    Spot,
    SpotType,
    VehicleType,
)
from ..util import to_decimal

SCHEMA_FILENAME = "layout.schema.json"
_SCHEMA_CACHE: dict | None = None

_EnumT = TypeVar("_EnumT", bound=StrEnum)


def _layout_root() -> Traversable:
    return resources.files("pyparkedit.layout")


def load_layout_schema() -> dict:
    global _SCHEMA_CACHE
    if _SCHEMA_CACHE is None:
        schema_path = _layout_root() / SCHEMA_FILENAME
        _SCHEMA_CACHE = json.loads(schema_path.read_text(encoding="utf-8"))
    return _SCHEMA_CACHE


def clear_schema_cache() -> None:
    """Clear the cached layout schema (used in tests)."""
    global _SCHEMA_CACHE
    _SCHEMA_CACHE = None


def parse_document(text: str) -> Any:
    """Decode a layout document, keeping fractional numbers as exact decimals."""
    try:
        return json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise LayoutError("Layout document is not valid JSON.") from exc


def serialize_document(lot: ParkingLot) -> str:
    return json.dumps(dump_parking_lot(lot), indent=2)


def validate_document(data: Any) -> None:
    try:
        jsonschema.validate(instance=data, schema=load_layout_schema())
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise LayoutError(
            f"Layout document is invalid at {location}: {exc.message}",
            detail=exc.message,
        ) from exc


def _parse_enum(enum_cls: type[_EnumT], value: str, label: str) -> _EnumT:
    lowered = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == lowered:
            return member
    raise LayoutError(f"Invalid {label}: {value}.")


def _parse_vehicle_types(values: Iterable[str]) -> list[VehicleType]:
    return [_parse_enum(VehicleType, value, "vehicle type") for value in values]


def _parse_money(value: Any, label: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValidationError as exc:
        raise LayoutError(f"Invalid {label}: {value!r}.") from exc


def _ensure_unique(ids: Iterable[str], label: str) -> None:
    seen: set[str] = set()
    for item_id in ids:
        if item_id in seen:
            raise LayoutError(f"Duplicate {label} id: {item_id}.")
        seen.add(item_id)


def _build_rules(data: Mapping[str, Any]) -> ParkingRules:
    return ParkingRules(
        max_parking_hours=data.get("maxParkingHours", 0),
        has_vip_spots=data.get("hasVipSpots", False),
        has_staff_spots=data.get("hasStaffSpots", False),
        has_accessible_spots=data.get("hasAccessibleSpots", False),
        allowed_vehicle_types=tuple(_parse_vehicle_types(data.get("allowedVehicleTypes", []))),
        time_based_rules=tuple(data.get("timeBasedRules", {}).items()),
    )


def _build_institution(data: Mapping[str, Any]) -> Institution:
    return Institution(
        id=data["id"],
        name=data["name"],
        type=_parse_enum(InstitutionType, data["type"], "institution type"),
        is_free_parking=data.get("isFreeParking", False),
        free_minutes=data.get("freeMinutes", 0),
        base_rate=_parse_money(data.get("baseRate", 0), "base rate"),
        hourly_rate=_parse_money(data.get("hourlyRate", 0), "hourly rate"),
        rules=_build_rules(data.get("rules", {})),
    )


def _build_spot(data: Mapping[str, Any]) -> Spot:
    status = _parse_enum(AvailabilityStatus, data.get("status", "Available"), "availability status")
    ticket_id = data.get("ticketId")
    occupied = status == AvailabilityStatus.OCCUPIED
    if occupied and not ticket_id:
        raise LayoutError(f"Spot {data['id']} is occupied but has no ticketId.")
    if ticket_id and not occupied:
        raise LayoutError(f"Spot {data['id']} has a ticketId but is not occupied.")
    return Spot(
        id=data["id"],
        type=_parse_enum(SpotType, data.get("type", "Standard"), "spot type"),
        status=status,
        allowed_vehicle_types=_parse_vehicle_types(data.get("allowedVehicleTypes", [])),
        is_enabled=data.get("isEnabled", True),
        ticket_id=ticket_id or None,
    )


def _build_section(data: Mapping[str, Any]) -> Section:
    spots = [_build_spot(item) for item in data.get("spots", [])]
    _ensure_unique((spot.id for spot in spots), "spot")
    return Section(
        id=data["id"],
        name=data.get("name", ""),
        spots=spots,
        is_enabled=data.get("isEnabled", True),
    )


def _build_floor(data: Mapping[str, Any]) -> Floor:
    sections = [_build_section(item) for item in data.get("sections", [])]
    _ensure_unique((section.id for section in sections), "section")
    return Floor(
        id=data["id"],
        name=data.get("name", ""),
        sections=sections,
        is_enabled=data.get("isEnabled", True),
    )


def build_parking_lot(data: Any) -> ParkingLot:
    """Validate a decoded layout document and map it to a ``ParkingLot``."""
    validate_document(data)
    lot_data = data["parkingLot"]
    floors = [_build_floor(item) for item in lot_data["floors"]]
    _ensure_unique((floor.id for floor in floors), "floor")
    return ParkingLot(
        id=lot_data["id"],
        name=lot_data.get("name", ""),
        institution=_build_institution(data["institution"]),
        floors=floors,
    )


def _dump_spot(spot: Spot) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": spot.id,
        "type": spot.type.value,
        "status": spot.status.value,
        "isEnabled": spot.is_enabled,
        "allowedVehicleTypes": [vehicle_type.value for vehicle_type in spot.allowed_vehicle_types],
    }
    if spot.ticket_id is not None:
        data["ticketId"] = spot.ticket_id
    return data


def dump_parking_lot(lot: ParkingLot) -> dict[str, Any]:
    """Map a ``ParkingLot`` back to the layout document shape."""
    institution = lot.institution
    rules = institution.rules
    return {
        "institution": {
            "id": institution.id,
            "name": institution.name,
            "type": institution.type.value,
            "isFreeParking": institution.is_free_parking,
            "freeMinutes": institution.free_minutes,
            "baseRate": format(institution.base_rate, "f"),
            "hourlyRate": format(institution.hourly_rate, "f"),
            "rules": {
                "maxParkingHours": rules.max_parking_hours,
                "hasVipSpots": rules.has_vip_spots,
                "hasStaffSpots": rules.has_staff_spots,
                "hasAccessibleSpots": rules.has_accessible_spots,
                "allowedVehicleTypes": [item.value for item in rules.allowed_vehicle_types],
                "timeBasedRules": dict(rules.time_based_rules),
            },
        },
        "parkingLot": {
            "id": lot.id,
            "name": lot.name,
            "floors": [
                {
                    "id": floor.id,
                    "name": floor.name,
                    "isEnabled": floor.is_enabled,
                    "sections": [
                        {
                            "id": section.id,
                            "name": section.name,
                            "isEnabled": section.is_enabled,
                            "spots": [_dump_spot(spot) for spot in section.spots],
                        }
                        for section in floor.sections
                    ],
                }
                for floor in lot.floors
            ],
        },
    }
