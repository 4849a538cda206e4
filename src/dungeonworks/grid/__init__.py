"""Tile map state: per-cell records, work-slot allocation and the tile store."""

from dungeonworks.grid.record import (
    DEFAULT_DURABILITY,
    SLOT_DEPTH,
    SLOT_SPREAD,
    SlotReservation,
    TileRecord,
)
from dungeonworks.grid.store import ASCII_LEGEND, TileStore

__all__ = [
    "TileRecord",
    "SlotReservation",
    "TileStore",
    "ASCII_LEGEND",
    "DEFAULT_DURABILITY",
    "SLOT_DEPTH",
    "SLOT_SPREAD",
]
