"""Brute-force spatial index over a roster of agent positions."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dungeonworks.core.geometry import Vec3
    from dungeonworks.core.identity import AgentId


class RosterSpatialIndex:
    """Linear scan over ``positions()`` on every query. Fine for a few hundred agents.

    Args:
        positions: Callable yielding ``(agent_id, position)`` pairs.
    """

    def __init__(self, positions: Callable[[], Iterable[tuple[AgentId, Vec3]]]):
        self._positions = positions

    def agents_near(
        self, position: Vec3, radius: float, exclude: AgentId | None = None
    ) -> list[tuple[AgentId, Vec3]]:
        origin = position.flattened()
        return [
            (agent, pos)
            for agent, pos in self._positions()
            if agent != exclude and origin.distance_to(pos.flattened()) <= radius
        ]

    def is_occupied(self, position: Vec3, radius: float, exclude: AgentId | None = None) -> bool:
        return bool(self.agents_near(position, radius, exclude))
