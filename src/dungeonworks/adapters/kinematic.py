"""Straight-line navigator over the tile store, for headless runs and tests.

There is no path planning: the agent glides directly toward its destination
at a constant speed. Only the endpoints are checked against the walkable
ground of the tile store.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from dungeonworks.core.geometry import ZERO, GridPos, Vec3, cell_center, world_to_cell
from dungeonworks.core.tiles import WALKABLE_STATES

if TYPE_CHECKING:
    from dungeonworks.grid.store import TileStore


class KinematicNavigator:
    """Navigator and Steppable in one.

    Args:
        store: Tile map defining walkable ground.
        position: Starting world position.
        speed: Units per second.
        allow_unknown: Treat cells missing from the store as walkable.
    """

    def __init__(self, store: TileStore, position: Vec3, speed: float = 3.0, allow_unknown: bool = False):
        self.store = store
        self._position = position
        self.speed = speed
        self.allow_unknown = allow_unknown
        self._velocity = ZERO
        self._destination: Vec3 | None = None
        self._stopped = False

    def __repr__(self) -> str:
        return f"KinematicNavigator(at={self._position}, to={self._destination})"

    def is_walkable(self, point: Vec3) -> bool:
        record = self.store.get(world_to_cell(point))
        if record is None:
            return self.allow_unknown
        return record.state in WALKABLE_STATES

    # --- Navigator ---

    @property
    def position(self) -> Vec3:
        return self._position

    @property
    def velocity(self) -> Vec3:
        return self._velocity

    @property
    def has_path(self) -> bool:
        return self._destination is not None

    @property
    def path_pending(self) -> bool:
        return False

    @property
    def remaining_distance(self) -> float:
        if self._destination is None:
            return 0.0
        return self._position.flattened().distance_to(self._destination.flattened())

    @property
    def destination(self) -> Vec3 | None:
        return self._destination

    @property
    def is_on_surface(self) -> bool:
        return self.is_walkable(self._position)

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def move_to(self, position: Vec3) -> bool:
        if not self.is_walkable(position):
            return False
        self._destination = position
        self._stopped = False
        return True

    def stop(self) -> None:
        self._stopped = True
        self._velocity = ZERO

    def resume(self) -> None:
        self._stopped = False

    def warp(self, position: Vec3) -> bool:
        if not self.is_walkable(position):
            return False
        self._position = position
        self._destination = None
        self._velocity = ZERO
        return True

    def sample_position(self, position: Vec3, max_distance: float) -> Vec3 | None:
        """The point itself if walkable, else the nearest walkable cell center in range."""
        if self.is_walkable(position):
            return position
        origin = world_to_cell(position)
        reach = math.ceil(max_distance)
        best: Vec3 | None = None
        best_distance = max_distance
        for dx in range(-reach, reach + 1):
            for dy in range(-reach, reach + 1):
                center = cell_center(GridPos(origin.x + dx, origin.y + dy))
                distance = position.flattened().distance_to(center)
                if distance <= best_distance and self.is_walkable(center):
                    best, best_distance = center, distance
        return best

    # --- Steppable ---

    def advance(self, dt: float) -> None:
        if self._destination is None or self._stopped:
            self._velocity = ZERO
            return
        delta = (self._destination - self._position).flattened()
        distance = delta.length()
        step = self.speed * dt
        if distance <= step:
            self._position = Vec3(self._destination.x, self._position.y, self._destination.z)
            self._destination = None
            self._velocity = ZERO
            return
        heading = delta.normalized()
        self._position = self._position + heading * step
        self._velocity = heading * self.speed
