"""Per-cell tile record and its work-slot allocator.

Every wall that can be dug exposes up to twelve work slots: three lateral
offsets on each of the four sides whose neighbour is traversable ground. A
slot is held by at most one agent at a time.

Usage:
    record = store.get(GridPos(4, 4))
    reservation = record.try_reserve_best_slot(agent_position, owner=agent_id)
    if reservation is not None:
        navigator.move_to(reservation.world_position)
        ...
        record.release_slot(reservation.direction, owner=agent_id)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dungeonworks.core.geometry import CARDINAL_DIRECTIONS, Direction, GridPos, Vec3, cell_center
from dungeonworks.core.identity import AgentId
from dungeonworks.core.tiles import TileState
from dungeonworks.core.types import SLOT_OFFSETS, SlotKey

if TYPE_CHECKING:
    from dungeonworks.grid.store import TileStore

logger = logging.getLogger(__name__)

DEFAULT_DURABILITY = 3
SLOT_DEPTH = 0.7
"""Distance from the tile center to a slot along the side's normal."""
SLOT_SPREAD = 0.3
"""Lateral distance between neighbouring offsets on one side."""


@dataclass(frozen=True, slots=True)
class SlotReservation:
    """A granted work slot."""

    position: GridPos
    direction: Direction
    offset: int
    world_position: Vec3
    owner: AgentId | None = None

    @property
    def key(self) -> SlotKey:
        return (self.direction, self.offset)

    @property
    def is_center(self) -> bool:
        return self.offset == 0


class TileRecord:
    """Mutable state of one grid cell: state, durability and slot bookkeeping.

    A record that belongs to a ``TileStore`` shares the store's lock and uses
    it to look up neighbours. A standalone record has no neighbours, so it
    exposes no available directions.

    Args:
        position: Grid cell of this record.
        state: Initial tile state. Also recorded as the prior state.
        durability: Work cycles needed to destroy the tile.
        infinite: Durability never decreases when True.
    """

    def __init__(
        self,
        position: GridPos,
        state: TileState,
        *,
        durability: int = DEFAULT_DURABILITY,
        infinite: bool = False,
    ):
        if durability < 0:
            raise ValueError(f"Durability must be non-negative, got {durability}")
        self.position = position
        self.state = state
        self.original_state = state
        self.durability = durability
        self.infinite = infinite
        self.assigned_agents: set[AgentId] = set()
        self._slots: dict[SlotKey, AgentId | None] = {}
        self._reserved: set[SlotKey] = set()
        self._store: TileStore | None = None
        self._lock: threading.RLock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"TileRecord({self.position}, {self.state.name}, durability={self.durability}, "
            f"reserved={len(self._reserved)})"
        )

    def _attach(self, store: TileStore) -> None:
        self._store = store
        self._lock = store.lock

    def _detach(self) -> None:
        self._store = None
        self._lock = threading.RLock()

    @property
    def center(self) -> Vec3:
        return cell_center(self.position)

    # --- Slot queries ---

    def get_available_directions(self) -> list[Direction]:
        """Sides whose neighbour exists and is traversable ground."""
        if self._store is None:
            return []
        result = []
        for direction in CARDINAL_DIRECTIONS:
            neighbor = self._store.get(self.position.step(direction))
            if neighbor is not None and neighbor.state.is_traversable:
                result.append(direction)
        return result

    def capacity(self) -> int:
        """Maximum number of simultaneously reserved slots."""
        return len(SLOT_OFFSETS) * len(self.get_available_directions())

    def reserved_count(self) -> int:
        with self._lock:
            return len(self._reserved)

    def is_reserved(self, direction: Direction, offset: int) -> bool:
        with self._lock:
            return (direction, offset) in self._reserved

    def slot_owner(self, direction: Direction, offset: int) -> AgentId | None:
        with self._lock:
            return self._slots.get((direction, offset))

    def reserved_slots(self) -> dict[SlotKey, AgentId | None]:
        """Copy of the reserved keys and their owners."""
        with self._lock:
            return {key: self._slots.get(key) for key in self._reserved}

    def slot_world_position(self, direction: Direction, offset: int) -> Vec3:
        """World position an agent stands on to work this slot."""
        return self.center + direction.unit * SLOT_DEPTH + direction.perpendicular * (
            offset * SLOT_SPREAD
        )

    # --- Reservation ---

    def try_reserve_best_slot(
        self, requester_position: Vec3, owner: AgentId | None = None
    ) -> SlotReservation | None:
        """Reserve the best free slot for a requester.

        Center slots (offset 0) always rank above side slots; ties are broken by
        distance from ``requester_position`` to the slot, nearest first.

        Args:
            requester_position: World position of the agent asking.
            owner: Agent that will hold the slot. ``None`` for anonymous probes.

        Returns:
            The reservation, or None if no side is open or every slot is taken.
        """
        with self._lock:
            directions = self.get_available_directions()
            if not directions:
                return None

            best: tuple[tuple[bool, float], Direction, int, Vec3] | None = None
            for direction in directions:
                for offset in SLOT_OFFSETS:
                    if (direction, offset) in self._reserved:
                        continue
                    world_pos = self.slot_world_position(direction, offset)
                    rank = (offset != 0, requester_position.distance_to(world_pos))
                    if best is None or rank < best[0]:
                        best = (rank, direction, offset, world_pos)

            if best is None:
                return None

            _, direction, offset, world_pos = best
            self._reserved.add((direction, offset))
            self._slots[(direction, offset)] = owner
            logger.debug(
                "Reserved slot %s/%+d on %s for %s", direction.name, offset, self.position, owner
            )
            return SlotReservation(self.position, direction, offset, world_pos, owner)

    def release_slot(self, direction: Direction, owner: AgentId | None = None) -> int:
        """Free the slots on one side of the tile.

        Without ``owner`` every offset on that side is freed. With ``owner``
        only the offsets that agent holds are freed. Neighbouring tiles are
        asked to refresh afterwards.

        Returns:
            Number of slots actually freed (0 when nothing was held).
        """
        with self._lock:
            keys = [
                key
                for key in self._reserved
                if key[0] == direction and (owner is None or self._slots.get(key) == owner)
            ]
            for key in keys:
                self._free(key)
            if keys:
                logger.debug("Released %d slot(s) on %s side %s", len(keys), self.position, direction.name)
            self._notify_neighbors()
            return len(keys)

    def release_specific_slot(self, direction: Direction, offset: int) -> bool:
        """Free exactly one slot. Returns False if it was not reserved."""
        with self._lock:
            key = (direction, offset)
            if key not in self._reserved:
                return False
            self._free(key)
            self._notify_neighbors()
            return True

    def release_all_slots(self) -> None:
        """Clear every reservation and assigned agent (tile destroyed or removed)."""
        with self._lock:
            self._reserved.clear()
            self._slots.clear()
            self.assigned_agents.clear()
            logger.debug("Released all slots on %s", self.position)
            self._notify_neighbors()

    def release_agent(self, agent: AgentId) -> int:
        """Free every slot held by ``agent`` and unassign it. Returns slots freed."""
        with self._lock:
            keys = [key for key in self._reserved if self._slots.get(key) == agent]
            for key in keys:
                self._free(key)
            self.assigned_agents.discard(agent)
            if keys:
                self._notify_neighbors()
            return len(keys)

    def refresh_slot_availability(self) -> int:
        """Free reservations nobody is working anymore.

        A reservation is orphaned when its side stopped being traversable, or
        when no owner (or, for anonymous reservations, no assigned agent) is
        still actively working on this tile.

        Returns:
            Number of slots freed.
        """
        with self._lock:
            if not self._reserved:
                return 0
            open_sides = set(self.get_available_directions())
            orphaned = []
            for key in list(self._reserved):
                owner = self._slots.get(key)
                if key[0] not in open_sides:
                    orphaned.append(key)
                elif owner is not None:
                    if not self._is_working(owner):
                        orphaned.append(key)
                elif not any(self._is_working(agent) for agent in self.assigned_agents):
                    orphaned.append(key)
            for key in orphaned:
                logger.info("Freeing orphaned slot %s/%+d on %s", key[0].name, key[1], self.position)
                self._free(key)
            return len(orphaned)

    def _free(self, key: SlotKey) -> None:
        self._reserved.discard(key)
        self._slots.pop(key, None)

    def _is_working(self, agent: AgentId) -> bool:
        directory = self._store.worker_directory if self._store is not None else None
        if directory is None:
            return agent in self.assigned_agents
        return agent in self.assigned_agents and directory.is_working_on(agent, self.position)

    def _notify_neighbors(self) -> None:
        if self._store is not None:
            self._store.notify_neighbors(self.position)

    # --- Workers ---

    def assign_worker(self, agent: AgentId) -> None:
        with self._lock:
            self.assigned_agents.add(agent)

    def unassign_worker(self, agent: AgentId) -> None:
        with self._lock:
            self.assigned_agents.discard(agent)

    # --- Durability ---

    def reduce_durability(self) -> bool:
        """Apply one unit of work damage.

        Returns:
            True once durability has reached zero (tile destroyed).
        """
        with self._lock:
            if self.infinite:
                return False
            self.durability -= 1
            return self.durability <= 0
