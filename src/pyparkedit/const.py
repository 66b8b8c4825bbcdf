"""Shared constants."""

from decimal import Decimal

from .models import SpotType

SPOT_TYPE_MULTIPLIERS = {
    SpotType.STANDARD: Decimal("1.0"),
    SpotType.VIP: Decimal("1.5"),
    SpotType.ACCESSIBLE: Decimal("0.8"),
    SpotType.STAFF: Decimal("0"),
}

TICKET_ID_PREFIX = "TKT"
TICKET_SUFFIX_LENGTH = 8

MINUTES_PER_HOUR = 60

LAYOUT_ENDPOINT = "/layout"
DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "pyparkedit",
}
