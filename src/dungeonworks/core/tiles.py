"""Tile states and their classification.

Usage:
    TileState.FLOOR_DUG.is_traversable        # True
    TileState.WALL_GOLD.is_markable           # True
    resource_yield_for(TileState.WALL_GOLD)   # ResourceYield.GOLD
"""

from __future__ import annotations

from enum import Enum, auto


class TileState(Enum):
    """State of a single grid cell."""

    WALL_INTACT = auto()
    WALL_MARKED = auto()
    WALL_BEING_DUG = auto()

    FLOOR_DUG = auto()

    ROOM_TREASURY = auto()
    ROOM_LAIR = auto()
    ROOM_TRAINING = auto()

    WALL_GOLD = auto()
    WALL_JEWEL_VEIN = auto()
    WALL_ROCK = auto()

    FLOOR_NEUTRAL = auto()
    FLOOR_CONQUERED = auto()

    @property
    def is_traversable(self) -> bool:
        """Ground a worker can stand on next to a wall."""
        return self in TRAVERSABLE_STATES

    @property
    def is_markable(self) -> bool:
        """Wall that can be marked for digging."""
        return self in MARKABLE_STATES

    @property
    def is_diggable(self) -> bool:
        """Wall that is marked (or already being dug) and may be worked on."""
        return self in DIGGABLE_STATES

    @property
    def is_room(self) -> bool:
        return self in ROOM_STATES

    @property
    def is_wall(self) -> bool:
        return self in WALL_STATES


TRAVERSABLE_STATES = frozenset(
    {TileState.FLOOR_DUG, TileState.FLOOR_NEUTRAL, TileState.FLOOR_CONQUERED}
)
MARKABLE_STATES = frozenset({TileState.WALL_INTACT, TileState.WALL_GOLD, TileState.WALL_JEWEL_VEIN})
DIGGABLE_STATES = frozenset({TileState.WALL_MARKED, TileState.WALL_BEING_DUG})
ROOM_STATES = frozenset({TileState.ROOM_TREASURY, TileState.ROOM_LAIR, TileState.ROOM_TRAINING})
WALL_STATES = MARKABLE_STATES | DIGGABLE_STATES | {TileState.WALL_ROCK}

# Ground a navigator may walk on. Rooms are walkable but do not count as
# working ground for slot purposes.
WALKABLE_STATES = TRAVERSABLE_STATES | ROOM_STATES


class ResourceYield(Enum):
    """Resource dropped when a wall of a given original state is destroyed."""

    GOLD = auto()
    JEWELS = auto()


def resource_yield_for(original_state: TileState) -> ResourceYield | None:
    """Resource produced by digging out a wall that started as ``original_state``."""
    if original_state is TileState.WALL_GOLD:
        return ResourceYield.GOLD
    if original_state is TileState.WALL_JEWEL_VEIN:
        return ResourceYield.JEWELS
    return None


def unmarked_state_for(original_state: TileState) -> TileState:
    """State a marked wall returns to when its mark is removed."""
    if original_state in (TileState.WALL_GOLD, TileState.WALL_JEWEL_VEIN):
        return original_state
    return TileState.WALL_INTACT
