"""Layout source backed by a JSON file."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from ..exceptions import LayoutError
from ..models import ParkingLot
from .base import BaseLayoutSource
from .config import build_parking_lot, parse_document, serialize_document

_LOGGER = logging.getLogger(__name__)


class JsonFileLayoutSource(BaseLayoutSource):
    """Read and write the layout document from a file on disk."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load_layout(self) -> ParkingLot:
        _LOGGER.debug("Loading layout from %s", self._path)
        text = await asyncio.to_thread(self._read_text)
        lot = build_parking_lot(parse_document(text))
        _LOGGER.debug("Loaded layout %s with %d floors", lot.id, len(lot.floors))
        return lot

    async def save_layout(self, lot: ParkingLot) -> None:
        _LOGGER.debug("Saving layout %s to %s", lot.id, self._path)
        await asyncio.to_thread(self._write_text, serialize_document(lot))

    def _read_text(self) -> str:
        if not self._path.is_file():
            raise LayoutError(f"Layout file not found: {self._path}")
        try:
            return self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LayoutError(f"Layout file could not be read: {self._path}") from exc

    def _write_text(self, text: str) -> None:
        # Readers only ever see the old file or the complete new one.
        temp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            temp_path.write_text(text, encoding="utf-8")
            os.replace(temp_path, self._path)
        except OSError as exc:
            raise LayoutError(f"Layout file could not be written: {self._path}") from exc
