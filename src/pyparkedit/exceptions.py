"""Library exceptions."""

from __future__ import annotations


class PyParkedItError(Exception):
    """Base exception for the library."""

    error_type = "unknown"
    default_error_code: str | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        detail: str | None = None,
        user_message: str | None = None,
    ) -> None:
        text = message if message is not None else detail
        if text is None:
            super().__init__()
        else:
            super().__init__(text)
        self.error_code = error_code if error_code is not None else self.default_error_code
        self.detail = detail if detail is not None else message
        self.user_message = user_message


class ValidationError(PyParkedItError):
    """Raised when inputs fail validation."""

    error_type = "validation"
    default_error_code = "validation_error"


class LayoutError(PyParkedItError):
    """Raised when a layout document cannot be loaded or stored."""

    error_type = "layout"
    default_error_code = "layout_error"


class NetworkError(PyParkedItError):
    """Raised when network communication fails."""

    error_type = "network"
    default_error_code = "network_error"


class VehicleNotAllowedError(PyParkedItError):
    """Raised when the institution does not admit the vehicle type."""

    error_type = "rule"
    default_error_code = "vehicle_not_allowed"


class DurationExceededError(PyParkedItError):
    """Raised on exit when the stay is longer than the institution allows."""

    error_type = "rule"
    default_error_code = "duration_exceeded"


class SpotNotFoundError(PyParkedItError):
    """Raised when a ticket points at a spot the layout no longer contains."""

    error_type = "consistency"
    default_error_code = "spot_not_found"


class InvalidStateError(PyParkedItError):
    """Raised when an operation is called out of sequence."""

    error_type = "state"
    default_error_code = "invalid_state"
