"""Territory capture: frontier scanning and per-tile reservations.

A frontier tile is neutral floor next to dug or conquered floor. The planner
keeps one conquer job per frontier tile and lets workers reserve the tile they
are converting, so two workers never convert the same one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from dungeonworks.core.geometry import GridPos, Vec3, cell_center
from dungeonworks.core.identity import AgentId
from dungeonworks.core.tiles import TileState
from dungeonworks.grid.store import TileStore
from dungeonworks.jobs.models import CONQUER_JOB, Job, JobKind, JobType
from dungeonworks.jobs.queue import JobQueue

logger = logging.getLogger(__name__)

CLAIMED_GROUND = frozenset({TileState.FLOOR_DUG, TileState.FLOOR_CONQUERED})


class ConquestPlanner:
    """Creates conquer jobs and arbitrates which worker converts which tile.

    Args:
        store: Tile map.
        queue: Shared job queue.
        job_type: Job type used for conquer jobs.
        scan_interval: Seconds between frontier scans in ``update``.
        on_jobs_created: Called after a scan added jobs.
    """

    def __init__(
        self,
        store: TileStore,
        queue: JobQueue,
        job_type: JobType = CONQUER_JOB,
        scan_interval: float = 0.5,
        on_jobs_created: Callable[[], None] | None = None,
    ):
        self.store = store
        self.queue = queue
        self.job_type = job_type
        self.scan_interval = scan_interval
        self.on_jobs_created = on_jobs_created
        self._reservations: dict[GridPos, AgentId] = {}
        self._since_scan = scan_interval

    @property
    def reservations(self) -> dict[GridPos, AgentId]:
        return dict(self._reservations)

    def is_frontier(self, position: GridPos) -> bool:
        record = self.store.get(position)
        if record is None or record.state is not TileState.FLOOR_NEUTRAL:
            return False
        return any(n.state in CLAIMED_GROUND for n in self.store.neighbors(position))

    def frontier(self) -> list[GridPos]:
        return [
            record.position
            for record in self.store.records_in_state(TileState.FLOOR_NEUTRAL)
            if self.is_frontier(record.position)
        ]

    def update(self, dt: float) -> list[Job]:
        """Advance the scan timer and scan when it elapses."""
        self._since_scan += dt
        if self._since_scan < self.scan_interval:
            return []
        self._since_scan = 0.0
        return self.scan()

    def scan(self) -> list[Job]:
        """Open a conquer job on every unreserved frontier tile that has none."""
        with self.store.lock:
            created = []
            for position in self.frontier():
                if position in self._reservations:
                    continue
                if self.queue.find_open(JobKind.CONQUER, position):
                    continue
                created.append(self.queue.add(Job(self.job_type, position)))
                logger.debug("Created conquer job at %s", position)
        if created and self.on_jobs_created is not None:
            self.on_jobs_created()
        return created

    def try_reserve_tile(
        self, agent: AgentId, near: Vec3, preferred: GridPos | None = None
    ) -> GridPos | None:
        """Reserve a frontier tile for ``agent``.

        ``preferred`` wins when it is still a free frontier tile; otherwise the
        free frontier tile nearest to ``near`` is taken. A tile the agent
        already holds is returned again.
        """
        with self.store.lock:
            if preferred is not None and self._reservations.get(preferred) == agent:
                return preferred
            if preferred is not None and preferred not in self._reservations and self.is_frontier(preferred):
                self._reservations[preferred] = agent
                return preferred
            free = [p for p in self.frontier() if p not in self._reservations]
            if not free:
                return None
            best = min(free, key=lambda p: near.distance_to(cell_center(p)))
            self._reservations[best] = agent
            return best

    def finish_reservation(self, position: GridPos) -> None:
        self._reservations.pop(position, None)

    def release_for(self, agent: AgentId) -> int:
        """Drop every reservation held by ``agent``."""
        with self.store.lock:
            held = [pos for pos, owner in self._reservations.items() if owner == agent]
            for pos in held:
                del self._reservations[pos]
            return len(held)

    def complete_conquest(self, position: GridPos) -> None:
        """Claim the tile and close every conquer job on it."""
        with self.store.lock:
            self.store.set_state(position, TileState.FLOOR_CONQUERED)
            self.finish_reservation(position)
            for job in self.queue.find_open(JobKind.CONQUER, position):
                self.queue.complete(job)
            logger.info("Conquered %s", position)
