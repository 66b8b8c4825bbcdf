"""Layout source base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import ParkingLot


class BaseLayoutSource(ABC):
    """Loads the parking lot tree and optionally writes it back."""

    @abstractmethod
    async def load_layout(self) -> ParkingLot:
        """Return a fully populated parking lot."""

    @abstractmethod
    async def save_layout(self, lot: ParkingLot) -> None:
        """Persist the current state of the parking lot."""
