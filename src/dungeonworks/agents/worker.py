"""Worker agent: a per-agent execution engine with three priority lanes.

The agent owns at most one active behavior. Pending behaviors wait in FIFO
lanes and are pulled high first, then normal, then low. Preemptible behaviors
(wandering, idling) give way as soon as high or normal work is queued; any
other active behavior makes the agent refuse new work until it finishes.

Usage:
    agent = WorkerAgent(agent_id, navigator, spawn_time=clock.now)
    agent.enqueue(DigBehavior(context, job), Priority.NORMAL)
    while True:
        agent.update(dt)
"""

from __future__ import annotations

import logging
import math
from collections import deque
from enum import Enum, auto
from typing import TYPE_CHECKING

from dungeonworks.agents.stuck import StuckMonitor, StuckOutcome
from dungeonworks.behaviors.protocol import BehaviorKind, JobBehavior
from dungeonworks.config.settings import WorkerSettings
from dungeonworks.core.geometry import Vec3, angle_between
from dungeonworks.jobs.models import SkillSet, StatsProfile

if TYPE_CHECKING:
    from dungeonworks.adapters.protocol import Navigator, SpatialIndex, WorkAnimator
    from dungeonworks.agents.ambient import AmbientRoutine
    from dungeonworks.core.identity import AgentId
    from dungeonworks.jobs.models import Job

logger = logging.getLogger(__name__)


class Priority(Enum):
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()


class AgentState(Enum):
    IDLE = auto()
    EXECUTING = auto()


LANE_ORDER = (Priority.HIGH, Priority.NORMAL, Priority.LOW)


class WorkerAgent:
    """One mobile worker.

    Args:
        agent_id: Identity of this agent.
        navigator: Movement handle.
        spawn_time: Clock time the agent was created (used for oldest-first
            ordering by the scheduler).
        settings: Arrival, turning and stuck-recovery tuning.
        animator: Optional work animation handle. Dig falls back to timers
            without one.
        spatial: Optional spatial index for stuck recovery.
        skills: Skill levels used by job scoring.
        stats: Stat profile used by job scoring.
        home: Anchor for wandering. Defaults to the spawn position.
        ambient: Optional idle/wander routine run while the agent has nothing
            to do.
    """

    def __init__(
        self,
        agent_id: AgentId,
        navigator: Navigator,
        *,
        spawn_time: float = 0.0,
        settings: WorkerSettings | None = None,
        animator: WorkAnimator | None = None,
        spatial: SpatialIndex | None = None,
        skills: SkillSet | None = None,
        stats: StatsProfile | None = None,
        home: Vec3 | None = None,
        ambient: AmbientRoutine | None = None,
    ):
        self.id = agent_id
        self.navigator = navigator
        self.spawn_time = spawn_time
        self.settings = settings if settings is not None else WorkerSettings()
        self.animator = animator
        self.spatial = spatial
        self.skills = skills if skills is not None else SkillSet()
        self.stats = stats if stats is not None else StatsProfile()
        self.home = home if home is not None else navigator.position
        self.ambient = ambient
        self.last_assigned_at: float | None = None

        self.active: JobBehavior | None = None
        self._lanes: dict[Priority, deque[JobBehavior]] = {p: deque() for p in LANE_ORDER}
        self.heading = 0.0
        self._target_heading: float | None = None
        self.stuck = StuckMonitor(self.settings)
        self._shut_down = False

    def __repr__(self) -> str:
        return f"WorkerAgent({self.id}, {self.state.name}, active={self.active!r})"

    # --- State queries ---

    @property
    def position(self) -> Vec3:
        return self.navigator.position

    @property
    def state(self) -> AgentState:
        return AgentState.IDLE if self.active is None else AgentState.EXECUTING

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def queued(self, priority: Priority | None = None) -> int:
        if priority is not None:
            return len(self._lanes[priority])
        return sum(len(lane) for lane in self._lanes.values())

    def has_pending_work(self) -> bool:
        """True when high or normal priority work is waiting."""
        return bool(self._lanes[Priority.HIGH] or self._lanes[Priority.NORMAL])

    def is_available(self) -> bool:
        """Free for a new job: nothing (or only preemptible work) running and nothing queued."""
        if self._shut_down or self.has_pending_work():
            return False
        return self.active is None or self.active.is_preemptible()

    @property
    def is_wandering(self) -> bool:
        return self.active is not None and self.active.kind is BehaviorKind.WANDER

    def is_executing(self, behavior_kind: BehaviorKind | None = None) -> bool:
        if self.active is None:
            return False
        return behavior_kind is None or self.active.kind is behavior_kind

    def holds_job(self, job: Job) -> bool:
        """True if ``job`` is the active behavior's job or waits in a lane."""
        if self.active is not None and self.active.job is job:
            return True
        return any(behavior.job is job for lane in self._lanes.values() for behavior in lane)

    def is_moving(self, speed_threshold: float) -> bool:
        return self.navigator.has_path and self.navigator.velocity.length() > speed_threshold

    # --- Work intake ---

    def enqueue(self, behavior: JobBehavior, priority: Priority = Priority.NORMAL) -> bool:
        """Queue ``behavior`` in a lane.

        High and normal work preempts a preemptible active behavior at once.
        While a non-preemptible behavior runs nothing is accepted.

        Returns:
            False if the agent rejected the behavior.
        """
        if self._shut_down:
            logger.warning("%s is shut down, rejecting %r", self.id, behavior)
            return False
        if self.active is not None and self.active.is_preemptible() and priority is not Priority.LOW:
            logger.debug("%s interrupting %r for %r", self.id, self.active, behavior)
            self._finish_active()
        if self.active is not None and not self.active.is_preemptible():
            logger.warning("%s busy with %r, rejecting %r", self.id, self.active, behavior)
            return False
        self._lanes[priority].append(behavior)
        return True

    def clear_lanes(self) -> None:
        for lane in self._lanes.values():
            lane.clear()

    def cancel_active(self) -> None:
        """Exit the active behavior now (releases what it holds)."""
        if self.active is not None:
            self._finish_active()

    def shutdown(self) -> None:
        """Exit the active behavior and drop everything queued."""
        self.cancel_active()
        self.clear_lanes()
        self.navigator.stop()
        self._shut_down = True

    # --- Tick ---

    def update(self, dt: float) -> None:
        if self._shut_down:
            return
        self._turn(dt)

        if self.active is not None and self.active.is_preemptible() and self.has_pending_work():
            logger.debug("%s interrupting %r for queued work", self.id, self.active)
            self._finish_active()

        if self.active is None:
            self._start_next()

        if self.active is not None and self.active.update(self, dt):
            logger.debug("%s finished %r", self.id, self.active)
            self._finish_active()

        outcome = self.stuck.update(self, dt)
        if outcome is StuckOutcome.FAILED and self.active is not None:
            logger.warning("%s could not recover from being stuck, abandoning %r", self.id, self.active)
            self._finish_active()

        if self.ambient is not None and self.settings.ambient_routine and self.is_available():
            self.ambient.update(self, dt)

    def _start_next(self) -> None:
        for priority in LANE_ORDER:
            lane = self._lanes[priority]
            if lane:
                self.active = lane.popleft()
                self.active.on_enter(self)
                return

    def _finish_active(self) -> None:
        behavior = self.active
        self.active = None
        if behavior is not None:
            behavior.on_exit(self)

    # --- Movement ---

    def move_to(self, position: Vec3) -> bool:
        """Request movement, first repairing an off-surface position.

        Returns:
            False when the agent could not be put back on the surface or the
            navigator refused the destination.
        """
        nav = self.navigator
        if not nav.is_on_surface:
            logger.warning("%s is off the walkable surface at %s", self.id, nav.position)
            sample = nav.sample_position(nav.position, self.settings.surface_sample_distance)
            if sample is None or not nav.warp(sample):
                logger.error("%s could not be repositioned onto the surface", self.id)
                return False
        return nav.move_to(position)

    def stop(self) -> None:
        self.navigator.stop()

    def has_truly_arrived(self) -> bool:
        """No pending path, within stopping distance and not sliding."""
        nav = self.navigator
        if nav.path_pending or nav.remaining_distance > self.settings.stopping_distance:
            return False
        return not nav.has_path or nav.velocity.is_zero(1e-3)

    def distance_to(self, point: Vec3) -> float:
        return self.position.flattened().distance_to(point.flattened())

    def is_at_destination(self, point: Vec3, threshold: float) -> bool:
        return self.distance_to(point) <= threshold

    # --- Orientation ---

    def look_at(self, point: Vec3) -> None:
        direction = (point - self.position).flattened()
        if direction.is_zero(0.1):
            self._target_heading = None
            return
        self._target_heading = direction.heading()

    def stop_turning(self) -> None:
        self._target_heading = None

    def is_correctly_oriented(self) -> bool:
        return self._target_heading is None

    def _turn(self, dt: float) -> None:
        if self._target_heading is None:
            return
        remaining = angle_between(self.heading, self._target_heading)
        if remaining <= math.radians(self.settings.orientation_tolerance_deg):
            self.heading = self._target_heading
            self._target_heading = None
            return
        step = min(remaining, self.settings.turn_speed * dt)
        diff = (self._target_heading - self.heading + math.pi) % (2.0 * math.pi) - math.pi
        self.heading += math.copysign(step, diff)
