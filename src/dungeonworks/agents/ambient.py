"""What an agent does with itself when there is no work: wander or idle."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from dungeonworks.agents.worker import Priority
from dungeonworks.behaviors.idle import IdleBehavior
from dungeonworks.behaviors.wander import WanderBehavior, find_wander_target

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.config.settings import BehaviorSettings
    from dungeonworks.grid.store import TileStore

logger = logging.getLogger(__name__)

RESTLESS_AFTER = 5.0
RESTLESS_FACTOR = 2.0
FAR_FROM_HOME_RATIO = 0.8
FAR_FROM_HOME_FACTOR = 0.3


class AmbientRoutine:
    """Decides every ``behavior_check_interval`` seconds between wandering and idling.

    An agent that has been still for a while gets restless and wanders more
    often; one already far from home wanders less. After a walk the agent
    usually takes an idle pause. Both behaviors go into the low lane so any
    real job replaces them immediately.

    Args:
        store: Tile map, used to keep wander targets on dug ground.
        settings: Wander and idle tuning.
        rng: Random source.
    """

    def __init__(self, store: TileStore, settings: BehaviorSettings, rng: random.Random | None = None):
        self.store = store
        self.settings = settings
        self.rng = rng if rng is not None else random.Random()
        self._check_timer = 0.0
        self._since_change = 0.0
        self._was_wandering = False

    def update(self, agent: WorkerAgent, dt: float) -> None:
        s = self.settings
        self._check_timer += dt
        self._since_change += dt
        if self._check_timer < s.behavior_check_interval:
            return
        self._check_timer = 0.0

        if agent.is_wandering:
            self._was_wandering = True
            if self.rng.random() < s.wander_stop_probability * s.behavior_check_interval:
                logger.debug("%s stops wandering", agent.id)
                agent.cancel_active()
                self._after_wander(agent)
            return

        if self._was_wandering and agent.active is None:
            self._after_wander(agent)
            return

        if agent.active is not None or agent.queued():
            return

        if self.should_start_wandering(agent):
            target = find_wander_target(agent.navigator, agent.home, self.store, s, self.rng)
            self._since_change = 0.0
            if target is None:
                agent.enqueue(IdleBehavior(self._idle_duration()), Priority.LOW)
                return
            logger.debug("%s wanders to %s", agent.id, target)
            agent.enqueue(
                WanderBehavior(target, s.wander_arrival_distance, s.wander_stuck_time, s.wander_stuck_distance),
                Priority.LOW,
            )

    def should_start_wandering(self, agent: WorkerAgent) -> bool:
        s = self.settings
        chance = s.wander_probability * s.behavior_check_interval
        if self._since_change > RESTLESS_AFTER:
            chance *= RESTLESS_FACTOR
        if agent.distance_to(agent.home) > s.wander_max_distance * FAR_FROM_HOME_RATIO:
            chance *= FAR_FROM_HOME_FACTOR
        return self.rng.random() < chance

    def _after_wander(self, agent: WorkerAgent) -> None:
        self._was_wandering = False
        self._since_change = 0.0
        if self.rng.random() < self.settings.idle_after_wander_probability:
            agent.enqueue(IdleBehavior(self._idle_duration()), Priority.LOW)

    def _idle_duration(self) -> float:
        return self.rng.uniform(self.settings.min_idle_time, self.settings.max_idle_time)
