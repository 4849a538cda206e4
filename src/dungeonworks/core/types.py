"""Core type definitions for dungeonworks."""

from typing import TypeAlias

from dungeonworks.core.geometry import Direction

SlotKey: TypeAlias = tuple[Direction, int]
"""Reservation table key: (side of the tile, lateral offset in {-1, 0, 1})."""

SLOT_OFFSETS: tuple[int, ...] = (-1, 0, 1)
"""Lateral offsets available on each side of a tile, in enumeration order."""
