"""Layout sources and layout document mapping."""

from .base import BaseLayoutSource
from .config import build_parking_lot, dump_parking_lot
from .remote import HttpLayoutSource
from .json_file import JsonFileLayoutSource

__all__ = [
    "BaseLayoutSource",
    "HttpLayoutSource",
    "JsonFileLayoutSource",
    "build_parking_lot",
    "dump_parking_lot",
]
