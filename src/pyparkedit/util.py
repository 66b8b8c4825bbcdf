"""Shared utilities for validation and normalization."""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from .const import TICKET_ID_PREFIX, TICKET_SUFFIX_LENGTH
from .exceptions import ValidationError

_LICENSE_PLATE_RE = re.compile(r"[^A-Z0-9]")


def normalize_license_plate(plate: str) -> str:
    if not isinstance(plate, str):
        raise ValidationError("License plate must be a string.")
    normalized = _LICENSE_PLATE_RE.sub("", plate.upper())
    if not normalized:
        raise ValidationError("License plate is empty after normalization.")
    return normalized


def mask_license_plate(plate: str) -> str:
    if not isinstance(plate, str):
        return "***"
    normalized = _LICENSE_PLATE_RE.sub("", plate.upper())
    if not normalized:
        return "***"
    if len(normalized) <= 2:
        return "*" * len(normalized)
    if len(normalized) <= 4:
        return f"{normalized[:1]}{'*' * (len(normalized) - 2)}{normalized[-1:]}"
    masked = "*" * (len(normalized) - 4)
    return f"{normalized[:2]}{masked}{normalized[-2:]}"


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    if not isinstance(value, datetime):
        raise ValidationError("Timestamp must be a datetime.")
    if value.tzinfo is None:
        raise ValidationError("Timestamp must include timezone information.")
    return value.astimezone(UTC)


def format_utc_timestamp(value: datetime) -> str:
    normalized = ensure_utc(value).replace(microsecond=0)
    return normalized.isoformat().replace("+00:00", "Z")


def generate_ticket_id(now: datetime) -> str:
    """Build a ticket id from the entry time and a random suffix."""
    stamp = ensure_utc(now).strftime("%Y%m%d%H%M%S")
    suffix = uuid.uuid4().hex[:TICKET_SUFFIX_LENGTH].upper()
    return f"{TICKET_ID_PREFIX}-{stamp}-{suffix}"


def to_decimal(value: object) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("Monetary value must be a number.")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int | str):
        try:
            return Decimal(value)
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid monetary value: {value!r}.") from exc
    if isinstance(value, float):
        # repr keeps the shortest round-trip form, e.g. 2.5 rather than its binary expansion.
        return Decimal(repr(value))
    raise ValidationError("Monetary value must be a number.")
