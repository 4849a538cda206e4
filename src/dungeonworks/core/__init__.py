"""Core functionalities: stateless primitives shared by every layer.

Architecture Note:
    core/ contains identity, geometry and tile-state vocabulary with no runtime
    state. For stateful services, see grid/, jobs/, scheduling/ and agents/.
"""

from dungeonworks.core.geometry import (
    CARDINAL_DIRECTIONS,
    ZERO,
    Direction,
    GridPos,
    Vec3,
    angle_between,
    cell_center,
    world_to_cell,
)
from dungeonworks.core.identity import AgentAllocator, AgentId
from dungeonworks.core.tiles import (
    DIGGABLE_STATES,
    MARKABLE_STATES,
    ROOM_STATES,
    TRAVERSABLE_STATES,
    WALKABLE_STATES,
    ResourceYield,
    TileState,
    resource_yield_for,
    unmarked_state_for,
)
from dungeonworks.core.types import SLOT_OFFSETS, SlotKey

__all__ = [
    # Types
    "SlotKey",
    "SLOT_OFFSETS",
    # Identity
    "AgentId",
    "AgentAllocator",
    # Geometry
    "GridPos",
    "Vec3",
    "ZERO",
    "Direction",
    "CARDINAL_DIRECTIONS",
    "cell_center",
    "world_to_cell",
    "angle_between",
    # Tiles
    "TileState",
    "ResourceYield",
    "TRAVERSABLE_STATES",
    "MARKABLE_STATES",
    "DIGGABLE_STATES",
    "ROOM_STATES",
    "WALKABLE_STATES",
    "resource_yield_for",
    "unmarked_state_for",
]
