"""Wandering: short aimless walks around an agent's home."""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING

from dungeonworks.behaviors.protocol import BaseBehavior, BehaviorKind
from dungeonworks.core.geometry import Vec3, world_to_cell
from dungeonworks.core.tiles import TileState

if TYPE_CHECKING:
    from dungeonworks.adapters.protocol import Navigator
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.config.settings import BehaviorSettings
    from dungeonworks.grid.store import TileStore

logger = logging.getLogger(__name__)

STARTED_MOVING_SPEED_SQR = 0.1
STOPPED_SPEED_SQR = 0.05
FALLBACK_RADIUS = 2.0


def is_wanderable(store: TileStore, point: Vec3, include_conquered: bool = True) -> bool:
    """Dug floor and rooms (and conquered floor when enabled). Unknown cells are allowed."""
    record = store.get(world_to_cell(point))
    if record is None:
        return True
    if record.state is TileState.FLOOR_DUG or record.state.is_room:
        return True
    return include_conquered and record.state is TileState.FLOOR_CONQUERED


def find_wander_target(
    navigator: Navigator,
    home: Vec3,
    store: TileStore,
    settings: BehaviorSettings,
    rng: random.Random,
) -> Vec3 | None:
    """Random reachable point between the min and max wander radius of ``home``.

    After ``wander_attempts`` misses a point close to the agent's current
    position is tried instead.
    """
    for _ in range(settings.wander_attempts):
        angle = rng.uniform(0.0, 2.0 * math.pi)
        distance = rng.uniform(settings.wander_min_distance, settings.wander_max_distance)
        candidate = home + Vec3(math.cos(angle) * distance, 0.0, math.sin(angle) * distance)
        hit = navigator.sample_position(candidate, 2.0)
        if hit is not None and is_wanderable(store, hit, settings.wander_on_conquered):
            return hit

    angle = rng.uniform(0.0, 2.0 * math.pi)
    distance = rng.uniform(0.0, FALLBACK_RADIUS)
    nearby = navigator.position + Vec3(math.cos(angle) * distance, 0.0, math.sin(angle) * distance)
    return navigator.sample_position(nearby, 3.0)


class WanderBehavior(BaseBehavior):
    """Walk to ``target``. Ends on arrival, when stuck, or when preempted."""

    kind = BehaviorKind.WANDER

    def __init__(
        self,
        target: Vec3,
        arrival_distance: float = 1.5,
        stuck_time: float = 3.0,
        stuck_distance: float = 0.1,
    ):
        super().__init__()
        self.target = target
        self.arrival_distance = arrival_distance
        self.stuck_time = stuck_time
        self.stuck_distance = stuck_distance
        self.started_moving = False
        self.stuck_timer = 0.0
        self._last_position: Vec3 | None = None

    @property
    def target_position(self) -> Vec3:
        return self.target

    def is_preemptible(self) -> bool:
        return True

    def on_enter(self, agent: WorkerAgent) -> None:
        super().on_enter(agent)
        self._last_position = agent.position
        if not agent.move_to(self.target):
            self.abort(agent, "wander target unreachable")

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        if self.aborted:
            return True
        velocity_sqr = agent.navigator.velocity.sqr_length()
        if not self.started_moving and velocity_sqr > STARTED_MOVING_SPEED_SQR:
            self.started_moving = True

        if agent.distance_to(self.target) < self.arrival_distance or agent.has_truly_arrived():
            if velocity_sqr < STOPPED_SPEED_SQR or not self.started_moving:
                return True

        if self.started_moving:
            if self._last_position is None:
                self._last_position = agent.position
            if agent.position.distance_to(self._last_position) < self.stuck_distance:
                self.stuck_timer += dt
                if self.stuck_timer > self.stuck_time:
                    logger.debug("%s gave up wandering, stuck", agent.id)
                    return True
            else:
                self.stuck_timer = 0.0
                self._last_position = agent.position
        return False

    def _release(self, agent: WorkerAgent) -> None:
        agent.stop()
