"""Conquer behavior: claim a neutral floor tile for the dungeon."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dungeonworks.behaviors.protocol import BaseBehavior, BehaviorKind, WorkContext
from dungeonworks.core.geometry import GridPos, Vec3, cell_center
from dungeonworks.core.tiles import TileState
from dungeonworks.jobs.models import Job

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent

logger = logging.getLogger(__name__)


class ConquerBehavior(BaseBehavior):
    """Reserve a frontier tile, walk to its center and wear it down.

    The job's own tile is preferred; if someone else holds it the nearest free
    frontier tile is taken instead. Every ``conquer_tick`` seconds on the tile
    removes one point of durability. At zero the tile becomes conquered floor.
    """

    kind = BehaviorKind.CONQUER

    def __init__(self, context: WorkContext, job: Job):
        super().__init__(context, job)
        self.context: WorkContext = context
        self.job: Job = job
        self.tile: GridPos | None = None
        self.arrived = False
        self.done = False
        self._tick_timer = context.settings.conquer_tick

    @property
    def target_position(self) -> Vec3 | None:
        return cell_center(self.tile) if self.tile is not None else None

    def is_critical(self) -> bool:
        return True

    def on_enter(self, agent: WorkerAgent) -> None:
        super().on_enter(agent)
        planner = self.context.conquest_planner
        tile = planner.try_reserve_tile(agent.id, agent.position, preferred=self.job.location)
        if tile is None:
            logger.info("%s found no frontier tile to conquer", agent.id)
            self.context.queue.complete(self.job)
            self.abort(agent, "no frontier tile")
            return
        self.tile = tile
        if not agent.move_to(cell_center(tile)):
            self.abort(agent, "navigation failed")

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        if self.aborted or self.done:
            return True
        tile = self.tile
        if tile is None:
            return True
        record = self.context.store.get(tile)
        if record is None or record.state is not TileState.FLOOR_NEUTRAL:
            return True

        s = self.context.settings
        if not self.arrived:
            center = cell_center(tile)
            if agent.has_truly_arrived() or agent.distance_to(center) <= s.conquer_arrival_distance:
                self.arrived = True
            return False

        self._tick_timer -= dt
        if self._tick_timer > 0.0:
            return False
        self._tick_timer = s.conquer_tick
        if not record.reduce_durability():
            return False

        self.context.conquest_planner.complete_conquest(tile)
        if not self.job.completed:
            self.context.queue.complete(self.job)
        self.done = True
        logger.info("%s conquered %s", agent.id, tile)
        return True

    def _release(self, agent: WorkerAgent) -> None:
        if self.tile is not None:
            self.context.conquest_planner.finish_reservation(self.tile)

    def _job_still_valid(self) -> bool:
        return self.context.conquest_planner.is_frontier(self.job.location)
