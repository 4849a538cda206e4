"""Dig behavior: reserve a slot next to a marked wall and hack it down.

Phases run in order MOVING -> VALIDATING_ARRIVAL -> ORIENTING -> WORKING ->
COMPLETING. Any phase can end in ABORTED when the wall disappears, stops
being diggable or the agent loses its place on it.

Work cycles follow the animator when one is attached: a cycle counts once the
work clip wraps, reaches its end, or leaves the work state. A fallback timer
guarantees that every cycle completes even without animation feedback, and
agents without an animator dig on a plain timer.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

from dungeonworks.behaviors.protocol import BaseBehavior, BehaviorKind, WorkContext
from dungeonworks.core.geometry import Vec3, cell_center
from dungeonworks.core.tiles import TileState
from dungeonworks.jobs.models import Job

if TYPE_CHECKING:
    from dungeonworks.adapters.protocol import WorkAnimator
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.grid.record import SlotReservation, TileRecord

logger = logging.getLogger(__name__)

WRAP_HIGH = 0.9
WRAP_LOW = 0.1
CLIP_END = 0.98
STATE_EXIT_MIN_PROGRESS = 0.2
STATE_EXIT_MIN_ELAPSED = 0.4


class DigPhase(Enum):
    MOVING = auto()
    VALIDATING_ARRIVAL = auto()
    ORIENTING = auto()
    WORKING = auto()
    COMPLETING = auto()
    ABORTED = auto()


class CycleDetector:
    """Decides when one animated work cycle has finished.

    Args:
        min_wait: Seconds after a cycle starts before the clip is inspected.
        fallback: Seconds after which a cycle counts as done regardless.
    """

    def __init__(self, min_wait: float, fallback: float):
        self.min_wait = min_wait
        self.fallback = fallback
        self.elapsed = 0.0
        self.remaining = fallback
        self.last_time = 0.0
        self.just_started = False
        self.completed = False

    def start(self) -> None:
        self.elapsed = 0.0
        self.remaining = self.fallback
        self.just_started = True
        self.completed = False

    def set_baseline(self, normalized_time: float) -> None:
        self.last_time = normalized_time

    def poll(self, animator: WorkAnimator, dt: float) -> bool:
        """Advance by ``dt``. True once the current cycle has completed."""
        self.elapsed += dt
        self.remaining -= dt
        if self.remaining <= 0.0:
            logger.debug("Work cycle completed by fallback timer")
            self.completed = True
            return True

        current = animator.normalized_time()
        if self.just_started and self.elapsed < self.min_wait:
            return False
        self.just_started = False

        wrapped = current < self.last_time and self.last_time > WRAP_HIGH and current < WRAP_LOW
        ended = current >= CLIP_END and not self.completed
        left_state = (
            not animator.in_work_state()
            and self.last_time > STATE_EXIT_MIN_PROGRESS
            and self.elapsed > STATE_EXIT_MIN_ELAPSED
        )
        if wrapped or ended or left_state:
            self.completed = True
            return True
        self.last_time = current
        return False


class DigBehavior(BaseBehavior):
    """Dig out the wall a dig job points at.

    Args:
        context: Shared services.
        job: The dig job. Its location is the wall to dig.
    """

    kind = BehaviorKind.DIG

    def __init__(self, context: WorkContext, job: Job):
        super().__init__(context, job)
        self.context: WorkContext = context
        self.job: Job = job
        self.position = job.location
        self.phase = DigPhase.MOVING
        self.cycles = 0
        self.record: TileRecord | None = None
        self.reservation: SlotReservation | None = None
        s = context.settings
        self.detector = CycleDetector(s.dig_min_cycle_time, s.dig_fallback_time)
        self._validation_timer = 0.0
        self._start_timer: float | None = None
        self._ready = False
        self._waiting_for_cycle = False
        self._trigger_timer: float | None = None
        self._baseline_timer: float | None = None
        self._timer_cycle = s.dig_timer_cycle

    @property
    def target_position(self) -> Vec3:
        if self.reservation is not None:
            return self.reservation.world_position
        return cell_center(self.position)

    def is_critical(self) -> bool:
        return True

    # --- Lifecycle ---

    def on_enter(self, agent: WorkerAgent) -> None:
        super().on_enter(agent)
        agent.stop_turning()
        if agent.animator is not None:
            agent.animator.set_keep_working(False)
            agent.animator.reset_cycle_trigger()

        with self.context.store.lock:
            record = self.context.store.get(self.position)
            if record is None or not record.state.is_diggable:
                self._discard(agent, "wall is gone or no longer marked")
                return
            reservation = record.try_reserve_best_slot(agent.position, owner=agent.id)
            if reservation is None:
                self._discard(agent, "no free slot")
                return
            self.record = record
            self.reservation = reservation
            record.assign_worker(agent.id)
            if record.state is TileState.WALL_MARKED:
                record.state = TileState.WALL_BEING_DUG

        logger.debug(
            "%s digging %s from slot %s/%+d",
            agent.id,
            self.position,
            reservation.direction.name,
            reservation.offset,
        )
        if not agent.move_to(reservation.world_position):
            self.abort(agent, "navigation failed")
            self.phase = DigPhase.ABORTED

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        if self.aborted or self.phase is DigPhase.ABORTED:
            return True
        if self.phase is DigPhase.COMPLETING:
            return True
        reservation = self.reservation
        if reservation is None:
            self._fail(agent, "no slot reserved")
            return True

        record = self.context.store.get(self.position)
        if record is None or record is not self.record:
            self._fail(agent, "wall removed")
            return True
        if not record.state.is_diggable:
            logger.debug("%s: wall %s is no longer diggable", agent.id, self.position)
            return True
        if agent.id not in record.assigned_agents:
            self._fail(agent, "lost its place on the wall")
            return True

        if self.phase is DigPhase.MOVING:
            self._update_moving(agent, reservation)
        elif self.phase is DigPhase.VALIDATING_ARRIVAL:
            self._update_validating(agent, reservation, dt)
        elif self.phase is DigPhase.ORIENTING:
            self._update_orienting(agent)
        elif self.phase is DigPhase.WORKING:
            self._update_working(agent, record, dt)
        return self.phase in (DigPhase.COMPLETING, DigPhase.ABORTED)

    def _release(self, agent: WorkerAgent) -> None:
        self._stop_working(agent)
        nav = agent.navigator
        if nav.is_stopped:
            nav.move_to(nav.position)
        if self.record is not None and self.reservation is not None:
            self.record.release_slot(self.reservation.direction, owner=agent.id)
            self.record.unassign_worker(agent.id)
        agent.stop_turning()

    def _job_still_valid(self) -> bool:
        record = self.context.store.get(self.position)
        return record is not None and record.state.is_diggable

    # --- Phases ---

    def _update_moving(self, agent: WorkerAgent, reservation: SlotReservation) -> None:
        s = self.context.settings
        slot = reservation.world_position
        distance = agent.distance_to(slot)
        if agent.has_truly_arrived() or distance < s.dig_arrival_distance:
            agent.stop()
            self._validation_timer = 0.0
            self.phase = DigPhase.VALIDATING_ARRIVAL
            return
        if distance > s.dig_renavigate_distance and self._needs_new_path(agent, slot):
            if not agent.move_to(slot):
                self._fail(agent, "navigation failed")

    def _needs_new_path(self, agent: WorkerAgent, slot: Vec3) -> bool:
        nav = agent.navigator
        destination = nav.destination
        return nav.is_stopped or destination is None or destination.distance_to(slot) > 1e-3

    def _update_validating(self, agent: WorkerAgent, reservation: SlotReservation, dt: float) -> None:
        s = self.context.settings
        self._validation_timer += dt
        if self._validation_timer < s.dig_validation_time:
            return
        slot = reservation.world_position
        if agent.distance_to(slot) < s.dig_validation_distance:
            agent.look_at(cell_center(self.position))
            self.phase = DigPhase.ORIENTING
        else:
            logger.debug("%s drifted away from its slot, moving again", agent.id)
            agent.navigator.resume()
            self.phase = DigPhase.MOVING
            if not agent.move_to(slot):
                self._fail(agent, "navigation failed")

    def _update_orienting(self, agent: WorkerAgent) -> None:
        if not agent.navigator.is_stopped:
            agent.stop()
        if agent.is_correctly_oriented():
            self.phase = DigPhase.WORKING
            self._start_timer = self.context.settings.dig_start_delay

    def _update_working(self, agent: WorkerAgent, record: TileRecord, dt: float) -> None:
        if self._start_timer is not None:
            self._start_timer -= dt
            if self._start_timer > 0.0:
                return
            self._start_timer = None
            self._ready = True

        animator = agent.animator
        if animator is None:
            self._update_timer_cycle(agent, record, dt)
            return

        self._tick_first_trigger(animator, dt)

        if self._ready and not self._waiting_for_cycle:
            self._start_cycle(animator)
            return
        if self._waiting_for_cycle and self.detector.poll(animator, dt):
            self._finish_cycle(agent, record)

    def _update_timer_cycle(self, agent: WorkerAgent, record: TileRecord, dt: float) -> None:
        self._timer_cycle -= dt
        if self._timer_cycle > 0.0:
            return
        self._timer_cycle = self.context.settings.dig_timer_cycle
        self._apply_damage(agent, record)

    def _start_cycle(self, animator: WorkAnimator) -> None:
        s = self.context.settings
        self._ready = False
        self._waiting_for_cycle = True
        self.detector.start()
        if self.cycles == 0:
            animator.set_keep_working(True)
            self._trigger_timer = s.dig_trigger_delay
        else:
            animator.trigger_cycle()
            self.detector.set_baseline(animator.normalized_time())

    def _tick_first_trigger(self, animator: WorkAnimator, dt: float) -> None:
        if self._trigger_timer is not None:
            self._trigger_timer -= dt
            if self._trigger_timer <= 0.0:
                self._trigger_timer = None
                animator.reset_cycle_trigger()
                animator.trigger_cycle()
                self._baseline_timer = self.context.settings.dig_baseline_delay
        elif self._baseline_timer is not None:
            self._baseline_timer -= dt
            if self._baseline_timer <= 0.0:
                self._baseline_timer = None
                self.detector.set_baseline(animator.normalized_time())

    def _finish_cycle(self, agent: WorkerAgent, record: TileRecord) -> None:
        self._waiting_for_cycle = False
        if self._apply_damage(agent, record):
            return
        self._start_timer = self.context.settings.dig_restart_delay

    def _apply_damage(self, agent: WorkerAgent, record: TileRecord) -> bool:
        """One cycle of damage. True if the wall came down."""
        self.cycles += 1
        self.job.progress = float(self.cycles)
        if not record.reduce_durability():
            return False
        self._stop_working(agent)
        self.phase = DigPhase.COMPLETING
        drop = self.context.dig_planner.complete_dig(self.position)
        self.context.emit_drop(drop)
        logger.info("%s dug out %s after %d cycle(s)", agent.id, self.position, self.cycles)
        return True

    # --- Helpers ---

    def _stop_working(self, agent: WorkerAgent) -> None:
        if agent.animator is not None:
            agent.animator.set_keep_working(False)
            agent.animator.reset_cycle_trigger()

    def _discard(self, agent: WorkerAgent, reason: str) -> None:
        logger.info("%s dropping dig job at %s: %s", agent.id, self.position, reason)
        self.context.queue.complete(self.job)
        self.abort(agent, reason)
        self.phase = DigPhase.ABORTED

    def _fail(self, agent: WorkerAgent, reason: str) -> None:
        self.abort(agent, reason)
        self.phase = DigPhase.ABORTED
