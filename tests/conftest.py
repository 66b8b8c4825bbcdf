from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pyparkedit.layout.base import BaseLayoutSource
from pyparkedit.layout.config import build_parking_lot, dump_parking_lot
from pyparkedit.models import ParkingLot


class MemoryLayoutSource(BaseLayoutSource):
    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document
        self.loads = 0
        self.saved: list[dict[str, Any]] = []

    async def load_layout(self) -> ParkingLot:
        self.loads += 1
        return build_parking_lot(copy.deepcopy(self.document))

    async def save_layout(self, lot: ParkingLot) -> None:
        self.saved.append(dump_parking_lot(lot))


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def layout_document() -> dict[str, Any]:
    return {
        "institution": {
            "id": "mall",
            "name": "Riverside Mall",
            "type": "Mall",
            "isFreeParking": False,
            "freeMinutes": 30,
            "baseRate": "10",
            "hourlyRate": "5",
            "rules": {
                "maxParkingHours": 4,
                "allowedVehicleTypes": ["Car", "Bike", "EV"],
            },
        },
        "parkingLot": {
            "id": "lot",
            "name": "Main",
            "floors": [
                {
                    "id": "F0",
                    "name": "Ground",
                    "sections": [
                        {
                            "id": "A",
                            "name": "Section A",
                            "spots": [
                                {"id": "A1", "type": "Accessible"},
                                {"id": "A2", "type": "Standard"},
                                {"id": "A3", "type": "VIP"},
                            ],
                        },
                        {
                            "id": "B",
                            "name": "Section B",
                            "spots": [
                                {"id": "B1", "type": "Standard", "allowedVehicleTypes": ["EV"]},
                                {"id": "B2", "type": "Staff"},
                            ],
                        },
                    ],
                },
                {
                    "id": "F1",
                    "name": "Level 1",
                    "isEnabled": False,
                    "sections": [
                        {
                            "id": "C",
                            "name": "Section C",
                            "spots": [
                                {"id": "C1", "type": "Standard"},
                                {"id": "C2", "type": "VIP"},
                            ],
                        },
                    ],
                },
            ],
        },
    }


@pytest.fixture
def source(layout_document: dict[str, Any]) -> MemoryLayoutSource:
    return MemoryLayoutSource(layout_document)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 10, 0, tzinfo=UTC))
