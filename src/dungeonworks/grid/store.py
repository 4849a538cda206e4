"""In-memory tile map: owns TileRecords and the lock they share.

Usage:
    store = TileStore.from_ascii([
        "#####",
        "#_M_#",
        "#####",
    ])
    record = store.get(GridPos(2, 1))
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from dungeonworks.core.geometry import GridPos
from dungeonworks.core.tiles import TileState
from dungeonworks.grid.record import DEFAULT_DURABILITY, TileRecord

if TYPE_CHECKING:
    from dungeonworks.adapters.protocol import WorkerDirectory

logger = logging.getLogger(__name__)

ASCII_LEGEND: dict[str, TileState] = {
    "#": TileState.WALL_INTACT,
    "M": TileState.WALL_MARKED,
    "G": TileState.WALL_GOLD,
    "J": TileState.WALL_JEWEL_VEIN,
    "R": TileState.WALL_ROCK,
    "_": TileState.FLOOR_DUG,
    ".": TileState.FLOOR_NEUTRAL,
    "c": TileState.FLOOR_CONQUERED,
    "T": TileState.ROOM_TREASURY,
    "L": TileState.ROOM_LAIR,
    "P": TileState.ROOM_TRAINING,
}
"""Glyphs accepted by ``TileStore.from_ascii``. Row 0 is grid y = 0."""


class TileStore:
    """Dictionary-backed tile map keyed by ``GridPos``.

    The store owns a single re-entrant lock. Every record added here uses it,
    and the job queue and scheduler are constructed with the same lock so slot
    probing and job commits are serialized together.

    Args:
        worker_directory: Liveness lookup used when records refresh their
            slots. Can be set later with ``set_worker_directory``.
    """

    def __init__(self, worker_directory: WorkerDirectory | None = None):
        self.lock = threading.RLock()
        self.worker_directory = worker_directory
        self._records: dict[GridPos, TileRecord] = {}

    @classmethod
    def from_ascii(cls, rows: Iterable[str], durability: int = DEFAULT_DURABILITY) -> TileStore:
        """Build a store from a text layout.

        ``R`` tiles are created with infinite durability. Spaces are skipped
        (no tile at that cell).

        Raises:
            ValueError: On a glyph that is not in ``ASCII_LEGEND``.
        """
        store = cls()
        for y, row in enumerate(rows):
            for x, glyph in enumerate(row):
                if glyph == " ":
                    continue
                state = ASCII_LEGEND.get(glyph)
                if state is None:
                    raise ValueError(f"Unknown tile glyph {glyph!r} at ({x}, {y})")
                record = TileRecord(
                    GridPos(x, y),
                    state,
                    durability=durability,
                    infinite=state is TileState.WALL_ROCK,
                )
                store.add(record)
        return store

    def set_worker_directory(self, directory: WorkerDirectory | None) -> None:
        self.worker_directory = directory

    # --- Record lifecycle ---

    def add(self, record: TileRecord) -> TileRecord:
        """Insert (or replace) the record at its position."""
        with self.lock:
            previous = self._records.get(record.position)
            if previous is not None and previous is not record:
                previous.release_all_slots()
                previous._detach()
            record._attach(self)
            self._records[record.position] = record
            return record

    def create(
        self,
        position: GridPos,
        state: TileState,
        *,
        durability: int = DEFAULT_DURABILITY,
        infinite: bool = False,
    ) -> TileRecord:
        return self.add(TileRecord(position, state, durability=durability, infinite=infinite))

    def get(self, position: GridPos) -> TileRecord | None:
        return self._records.get(position)

    def remove(self, position: GridPos) -> TileRecord | None:
        """Drop the record at ``position``, releasing everything it held."""
        with self.lock:
            record = self._records.pop(position, None)
            if record is None:
                return None
            # Slots must be cleared before detaching so neighbours still refresh.
            record.release_all_slots()
            record._detach()
            logger.debug("Removed tile %s", position)
            return record

    def __contains__(self, position: object) -> bool:
        return position in self._records

    def __iter__(self) -> Iterator[TileRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def positions(self) -> list[GridPos]:
        return list(self._records)

    # --- Neighbourhood ---

    def neighbors(self, position: GridPos) -> list[TileRecord]:
        """Existing records in the four cardinal cells around ``position``."""
        result = []
        for _, pos in position.neighbors():
            record = self._records.get(pos)
            if record is not None:
                result.append(record)
        return result

    def has_adjacent_floor(self, position: GridPos) -> bool:
        """True when at least one cardinal neighbour is traversable ground."""
        return any(n.state.is_traversable for n in self.neighbors(position))

    def notify_neighbors(self, position: GridPos) -> None:
        """Ask the four neighbours of ``position`` to drop orphaned reservations."""
        for neighbor in self.neighbors(position):
            neighbor.refresh_slot_availability()

    def records_in_state(self, *states: TileState) -> list[TileRecord]:
        wanted = set(states)
        return [record for record in self._records.values() if record.state in wanted]

    def set_state(self, position: GridPos, state: TileState) -> TileRecord | None:
        """Change a tile's state and let neighbours re-evaluate their sides."""
        with self.lock:
            record = self._records.get(position)
            if record is None:
                return None
            record.state = state
            self.notify_neighbors(position)
            return record
