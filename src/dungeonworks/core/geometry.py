"""Grid and world-space geometry primitives.

Grid cells are addressed by integer ``GridPos(x, y)``. World space is 3D with
the grid lying on the XZ plane: grid x maps to world x, grid y maps to world z,
and world y is height (always 0 for positions produced here).

Usage:
    pos = GridPos(3, 4)
    center = cell_center(pos)            # Vec3(3.5, 0.0, 4.5)
    right = pos.step(Direction.RIGHT)    # GridPos(4, 4)
    world_to_cell(Vec3(3.9, 0, 4.1))     # GridPos(3, 4)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class GridPos:
    """Integer grid cell coordinate."""

    x: int
    y: int

    def step(self, direction: Direction) -> GridPos:
        """Neighbouring cell one step in ``direction``."""
        return GridPos(self.x + direction.dx, self.y + direction.dy)

    def neighbors(self) -> list[tuple[Direction, GridPos]]:
        """The four cardinal neighbours with the direction leading to each."""
        return [(d, self.step(d)) for d in CARDINAL_DIRECTIONS]

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True, slots=True)
class Vec3:
    """Immutable world-space vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vec3:
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def sqr_length(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def distance_to(self, other: Vec3) -> float:
        return (self - other).length()

    def normalized(self) -> Vec3:
        """Unit vector in the same direction, or the zero vector."""
        n = self.length()
        if n == 0.0:
            return ZERO
        return Vec3(self.x / n, self.y / n, self.z / n)

    def flattened(self) -> Vec3:
        """Projection onto the ground plane (y = 0)."""
        return Vec3(self.x, 0.0, self.z)

    def is_zero(self, eps: float = 1e-9) -> bool:
        return self.sqr_length() <= eps * eps

    def heading(self) -> float:
        """Angle on the ground plane in radians, 0 along +x, pi/2 along +z."""
        return math.atan2(self.z, self.x)


ZERO = Vec3(0.0, 0.0, 0.0)


class Direction(Enum):
    """Cardinal grid direction. Value is the (dx, dy) grid step."""

    RIGHT = (1, 0)
    LEFT = (-1, 0)
    UP = (0, 1)
    DOWN = (0, -1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def unit(self) -> Vec3:
        """World-space unit vector pointing from a tile toward this neighbour."""
        return Vec3(float(self.dx), 0.0, float(self.dy))

    @property
    def perpendicular(self) -> Vec3:
        """World-space unit vector used for lateral slot offsets.

        Horizontal directions spread slots along +z, vertical ones along +x.
        """
        if self.dy == 0:
            return Vec3(0.0, 0.0, 1.0)
        return Vec3(1.0, 0.0, 0.0)

    @property
    def opposite(self) -> Direction:
        return Direction((-self.dx, -self.dy))


CARDINAL_DIRECTIONS: tuple[Direction, ...] = (
    Direction.RIGHT,
    Direction.LEFT,
    Direction.UP,
    Direction.DOWN,
)


def cell_center(pos: GridPos) -> Vec3:
    """World-space center of a grid cell."""
    return Vec3(pos.x + 0.5, 0.0, pos.y + 0.5)


def world_to_cell(point: Vec3) -> GridPos:
    """Grid cell containing a world-space point."""
    return GridPos(math.floor(point.x), math.floor(point.z))


def angle_between(a: float, b: float) -> float:
    """Smallest absolute difference between two headings, in radians."""
    diff = (b - a + math.pi) % (2.0 * math.pi) - math.pi
    return abs(diff)
