"""Dig marking and dig job planning.

The planner owns the rules for turning walls into dig jobs: which walls can be
marked, when a marked wall is reachable, how many workers may be queued on it,
and what happens when a wall is finally dug out.

Usage:
    planner = DigPlanner(store, queue)
    planner.try_mark_tile(GridPos(3, 1))   # creates a dig job if reachable
    ...
    drop = planner.complete_dig(GridPos(3, 1))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from dungeonworks.core.geometry import GridPos
from dungeonworks.core.tiles import ResourceYield, TileState, resource_yield_for, unmarked_state_for
from dungeonworks.core.types import SLOT_OFFSETS
from dungeonworks.grid.record import DEFAULT_DURABILITY
from dungeonworks.grid.store import TileStore
from dungeonworks.jobs.models import DIG_JOB, Job, JobKind, JobType
from dungeonworks.jobs.queue import JobQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResourceDrop:
    """Resource left on the floor after a gold or jewel wall is dug out."""

    position: GridPos
    resource: ResourceYield
    amount: int = 1


class DigPlanner:
    """Marks walls for digging and keeps the queue stocked with dig jobs.

    At most one unassigned dig job per wall is open at a time. Once it is
    handed out, ``rescan_marked`` tops the wall up again until the number of
    open jobs matches the wall's slot capacity.

    Args:
        store: Tile map.
        queue: Shared job queue.
        job_type: Job type used for dig jobs.
        on_jobs_created: Called after new jobs were added, typically to ask
            the scheduler for an immediate run.
    """

    def __init__(
        self,
        store: TileStore,
        queue: JobQueue,
        job_type: JobType = DIG_JOB,
        on_jobs_created: Callable[[], None] | None = None,
    ):
        self.store = store
        self.queue = queue
        self.job_type = job_type
        self.on_jobs_created = on_jobs_created

    def is_marked(self, position: GridPos) -> bool:
        record = self.store.get(position)
        return record is not None and record.state is TileState.WALL_MARKED

    def try_mark_tile(self, position: GridPos) -> bool:
        """Mark an intact, gold or jewel wall for digging.

        The wall's current state is remembered so unmarking and resource
        drops know what it was.
        """
        with self.store.lock:
            record = self.store.get(position)
            if record is None or not record.state.is_markable:
                return False
            record.original_state = record.state
            record.state = TileState.WALL_MARKED
            logger.debug("Marked %s (was %s)", position, record.original_state.name)
            if self.store.has_adjacent_floor(position):
                self._announce([self.add_dig_jobs(position)])
            return True

    def try_unmark_tile(self, position: GridPos) -> bool:
        """Restore a marked wall and withdraw its unassigned dig jobs.

        Jobs already bound to a worker stay; their behavior notices the wall
        is no longer diggable and finishes.
        """
        with self.store.lock:
            record = self.store.get(position)
            if record is None or not record.state.is_diggable:
                return False
            record.state = unmarked_state_for(record.original_state)
            for job in self.queue.find_open(JobKind.DIG, position):
                if not job.assigned:
                    self.queue.remove(job)
            logger.debug("Unmarked %s -> %s", position, record.state.name)
            return True

    def toggle_marking(self, position: GridPos) -> bool:
        record = self.store.get(position)
        if record is None:
            return False
        if record.state.is_markable:
            return self.try_mark_tile(position)
        if record.state.is_diggable:
            return self.try_unmark_tile(position)
        return False

    def add_dig_jobs(self, position: GridPos) -> Job | None:
        """Add one unassigned dig job for ``position`` if there is room for it.

        Returns:
            The new job, or None when the wall is not workable, already has an
            unassigned job, or already has as many open jobs as slots.
        """
        with self.store.lock:
            record = self.store.get(position)
            if record is None or not record.state.is_diggable:
                return None
            directions = record.get_available_directions()
            if not directions:
                return None
            if self.queue.has_open_unassigned(JobKind.DIG, position):
                return None
            if len(self.queue.find_open(JobKind.DIG, position)) >= len(directions) * len(SLOT_OFFSETS):
                return None
            job = self.queue.add(Job(self.job_type, position))
            logger.debug("Created dig job at %s", position)
            return job

    def create_adjacent_jobs(self, position: GridPos) -> list[Job]:
        """Create jobs for marked walls around ``position`` that just became reachable."""
        created = []
        for _, neighbor in position.neighbors():
            record = self.store.get(neighbor)
            if record is None or record.state is not TileState.WALL_MARKED:
                continue
            job = self.add_dig_jobs(neighbor)
            if job is not None:
                created.append(job)
        return created

    def rescan_marked(self) -> list[Job]:
        """Top up every workable wall with a fresh unassigned job where needed."""
        with self.store.lock:
            created = []
            for record in self.store.records_in_state(TileState.WALL_MARKED, TileState.WALL_BEING_DUG):
                job = self.add_dig_jobs(record.position)
                if job is not None:
                    created.append(job)
        self._announce(created)
        return created

    def complete_dig(self, position: GridPos) -> ResourceDrop | None:
        """Turn a dug-out wall into neutral floor.

        Completes every dig job at the tile, clears its slots and workers,
        then opens jobs on marked neighbours that are now reachable.

        Returns:
            The resource the wall yielded, if any.
        """
        with self.store.lock:
            record = self.store.get(position)
            if record is None:
                return None
            for job in self.queue.find_open(JobKind.DIG, position):
                self.queue.complete(job)
            original = record.original_state
            record.release_all_slots()
            # The neutral floor is conquered by wearing it down again.
            record.durability = DEFAULT_DURABILITY
            self.store.set_state(position, TileState.FLOOR_NEUTRAL)
            logger.info("Dug out %s", position)
            created = self.create_adjacent_jobs(position)

        self._announce(created)
        resource = resource_yield_for(original)
        if resource is None:
            return None
        return ResourceDrop(position, resource)

    def _announce(self, jobs: list[Job | None]) -> None:
        if any(job is not None for job in jobs) and self.on_jobs_created is not None:
            self.on_jobs_created()
