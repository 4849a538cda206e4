"""Job behavior protocol, shared context and base class.

A behavior is a small state machine that drives one agent through one piece
of work. The agent calls ``on_enter`` once, ``update`` every tick until it
returns True, then ``on_exit``. ``on_exit`` also runs when the behavior is
preempted or aborted, so it must release whatever the behavior holds and must
be safe to call more than once.

Usage:
    class PatrolBehavior(BaseBehavior):
        kind = BehaviorKind.WANDER

        def on_enter(self, agent):
            agent.move_to(self.waypoint)

        def update(self, agent, dt):
            return agent.has_truly_arrived()
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from dungeonworks.config.settings import BehaviorSettings

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.core.geometry import Vec3
    from dungeonworks.grid.store import TileStore
    from dungeonworks.jobs.conquest import ConquestPlanner
    from dungeonworks.jobs.digging import DigPlanner, ResourceDrop
    from dungeonworks.jobs.models import Job
    from dungeonworks.jobs.queue import JobQueue

logger = logging.getLogger(__name__)


class BehaviorKind(Enum):
    DIG = auto()
    CONQUER = auto()
    WANDER = auto()
    IDLE = auto()
    SLEEP = auto()
    COMBAT = auto()


@runtime_checkable
class JobBehavior(Protocol):
    """What a worker agent needs from the behavior it executes."""

    kind: BehaviorKind
    job: Job | None

    def on_enter(self, agent: WorkerAgent) -> None: ...

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        """Advance by ``dt`` seconds. True when the behavior is done."""
        ...

    def on_exit(self, agent: WorkerAgent) -> None:
        """Release everything held. Idempotent."""
        ...

    def is_preemptible(self) -> bool:
        """True if higher-priority work may replace this behavior at any time."""
        ...

    def is_critical(self) -> bool:
        """True while stuck recovery must leave the agent alone."""
        ...

    @property
    def target_position(self) -> Vec3 | None: ...


@dataclass
class WorkContext:
    """Services a behavior may touch. Built once by the world and shared."""

    store: TileStore
    queue: JobQueue
    dig_planner: DigPlanner
    conquest_planner: ConquestPlanner
    settings: BehaviorSettings = field(default_factory=BehaviorSettings)
    rng: random.Random = field(default_factory=random.Random)
    on_resource_drop: Callable[[ResourceDrop], None] | None = None

    def emit_drop(self, drop: ResourceDrop | None) -> None:
        if drop is not None and self.on_resource_drop is not None:
            self.on_resource_drop(drop)


class BaseBehavior:
    """Shared lifecycle plumbing for the concrete behaviors.

    Subclasses implement ``_release`` (free slots and reservations) and
    ``_job_still_valid``. ``on_exit`` calls ``_release`` exactly once and then
    settles the job: a job that is still valid but unfinished goes back to the
    queue, an invalid one is discarded.
    """

    kind: BehaviorKind = BehaviorKind.IDLE

    def __init__(self, context: WorkContext | None = None, job: Job | None = None):
        self.context = context
        self.job = job
        self.entered = False
        self.exited = False
        self.aborted = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(job={self.job!r})"

    @property
    def target_position(self) -> Vec3 | None:
        return None

    def is_preemptible(self) -> bool:
        return False

    def is_critical(self) -> bool:
        return False

    def on_enter(self, agent: WorkerAgent) -> None:
        self.entered = True

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        return True

    def abort(self, agent: WorkerAgent, reason: str) -> None:
        """Flag the behavior aborted. ``update`` reports done on the next call."""
        if not self.aborted:
            logger.info("%s aborting %s: %s", agent.id, type(self).__name__, reason)
        self.aborted = True

    def on_exit(self, agent: WorkerAgent) -> None:
        if self.exited:
            return
        self.exited = True
        self._release(agent)
        self._settle_job()

    def _release(self, agent: WorkerAgent) -> None:
        pass

    def _job_still_valid(self) -> bool:
        return False

    def _settle_job(self) -> None:
        job = self.job
        if job is None or job.completed or self.context is None:
            return
        if self._job_still_valid():
            self.context.queue.release(job)
        else:
            logger.debug("Discarding %r, target no longer valid", job)
            self.context.queue.complete(job)
