"""Batch job scheduler matching idle worker agents to open jobs.

The scheduler runs on a fixed cadence rather than every frame. Each run picks
a handful of available agents, finds each one the nearest dig site that still
has room (probing the slot allocator), falls back to other job kinds, and
hands the job over as a behavior in the agent's normal lane. Every few runs a
staleness sweep repairs drift between job bookkeeping and the tile map.

Usage:
    scheduler = JobScheduler(store, queue, BehaviorRegistry.default(), context, lambda: roster.values())
    while running:
        scheduler.update(clock.now)

    # A planner that just created jobs can skip the cadence
    scheduler.request_immediate()
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeAlias

from dungeonworks.agents.worker import Priority
from dungeonworks.behaviors.registry import UnknownJobKindError
from dungeonworks.config.settings import SchedulerSettings
from dungeonworks.core.geometry import cell_center
from dungeonworks.core.tiles import TileState
from dungeonworks.jobs.models import JobKind
from dungeonworks.scheduling.models import Assignment, SchedulerCache, SchedulerStats
from dungeonworks.tracing.models import EventType, TickRecord, make_event

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.behaviors.protocol import WorkContext
    from dungeonworks.behaviors.registry import BehaviorRegistry
    from dungeonworks.core.geometry import GridPos
    from dungeonworks.grid.record import TileRecord
    from dungeonworks.grid.store import TileStore
    from dungeonworks.jobs.models import Job
    from dungeonworks.jobs.queue import JobQueue
    from dungeonworks.tracing.protocol import HistoryStore

logger = logging.getLogger(__name__)

SLOTS_PER_DIRECTION = 3

AgentProvider: TypeAlias = "Callable[[], Iterable[WorkerAgent]]"


def _distance(agent: WorkerAgent, location: GridPos) -> float:
    return agent.distance_to(cell_center(location))


class JobScheduler:
    """Periodic matcher between available agents and open jobs.

    Args:
        store: Tile map. Its lock guards probing and commits.
        queue: Shared job queue.
        registry: Job kind -> behavior factory table.
        context: Services handed to every behavior built.
        agents: Callable returning the current agent roster.
        settings: Cadence, batch sizes and sweep timeouts.
        history: Optional store receiving one ``TickRecord`` per run.
    """

    def __init__(
        self,
        store: TileStore,
        queue: JobQueue,
        registry: BehaviorRegistry,
        context: WorkContext,
        agents: AgentProvider,
        settings: SchedulerSettings | None = None,
        history: HistoryStore | None = None,
    ):
        self.store = store
        self.queue = queue
        self.registry = registry
        self.context = context
        self._agents = agents
        self.settings = settings if settings is not None else SchedulerSettings()
        self.history = history
        self.cache = SchedulerCache()
        self.stats = SchedulerStats()
        self.tick = 0
        self._last_run: float | None = None
        self._immediate = False
        self._events: list[dict[str, Any]] = []
        self._log_times: dict[str, float] = {}
        self._now = 0.0

    # --- Public API ---

    def request_immediate(self) -> None:
        """Run on the next ``update`` regardless of the cadence."""
        self._immediate = True

    def update(self, now: float) -> list[Assignment]:
        """Run the scheduler if its interval elapsed or an immediate run was requested."""
        immediate = self._immediate
        if not immediate and self._last_run is not None and now - self._last_run < self.settings.interval:
            return []
        self._immediate = False
        return self.run(now, passes=self.settings.immediate_attempts if immediate else 1)

    def run(self, now: float, passes: int = 1) -> list[Assignment]:
        """One scheduling run: up to ``passes`` assignment passes, then the periodic sweep."""
        self._now = now
        self._last_run = now
        self.tick += 1
        self.stats.runs += 1
        self._events = []
        started = time.perf_counter()

        assignments: list[Assignment] = []
        for attempt in range(passes):
            if attempt > 0:
                self.cache.invalidate()
            made = self._assignment_pass(now)
            assignments.extend(made)
            if not made:
                break
        assign_ms = (time.perf_counter() - started) * 1000.0

        sweep_ms = None
        if self.tick % self.settings.cleanup_every_ticks == 0:
            sweep_started = time.perf_counter()
            self.sweep(now)
            sweep_ms = (time.perf_counter() - sweep_started) * 1000.0

        self._record(now, assign_ms, sweep_ms)
        return assignments

    def available_agents(self, now: float) -> list[WorkerAgent]:
        """Agents free for new work, from the cache when it is still fresh."""
        if self.cache.is_stale(now, self.settings.cache_ttl):
            self.cache.refresh([a for a in self._agents() if self._is_available(a, now)], now)
        return [a for a in self.cache.agents if self._is_available(a, now)]

    def has_basic_worker_slots(self, record: TileRecord) -> bool:
        """Cheap capacity check: working plus in-flight agents below the slot count minus one."""
        capacity = max(1, len(record.get_available_directions()) * SLOTS_PER_DIRECTION)
        entry = self.cache.tracking.get(record.position)
        pending = entry.pending(record) if entry is not None else 0
        return len(record.assigned_agents) + pending < capacity - 1

    def pending_at(self, location: GridPos) -> int:
        entry = self.cache.tracking.get(location)
        if entry is None:
            return 0
        return entry.pending(self.store.get(location))

    # --- Assignment ---

    def _is_available(self, agent: WorkerAgent, now: float) -> bool:
        if not agent.is_available():
            return False
        if agent.is_moving(self.settings.moving_speed_threshold) and not agent.is_wandering:
            return False
        last = agent.last_assigned_at
        return last is None or now - last >= self.settings.assignment_cooldown

    def _work_queue(self, now: float) -> list[WorkerAgent]:
        candidates = self.available_agents(now)[: self.settings.max_queue_candidates]
        dig_sites = [job.location for job in self.queue.open_jobs(JobKind.DIG)]

        def nearest_dig(agent: WorkerAgent) -> float:
            return min((_distance(agent, loc) for loc in dig_sites), default=math.inf)

        candidates.sort(key=lambda a: (a.is_wandering, nearest_dig(a), a.spawn_time))
        return candidates[: self.settings.max_assignments_per_tick * 3]

    def _assignment_pass(self, now: float) -> list[Assignment]:
        made: list[Assignment] = []
        for agent in self._work_queue(now):
            if len(made) >= self.settings.max_assignments_per_tick:
                break
            assignment = self._assign_one(agent, now)
            if assignment is not None:
                made.append(assignment)
                self.cache.drop_agent(agent)
        return made

    def _assign_one(self, agent: WorkerAgent, now: float) -> Assignment | None:
        job, fallback = self._pick_dig_job(agent)
        if job is None:
            job = self._pick_other_job(agent)
        if job is None:
            return None
        if not self._commit(agent, job, now):
            return None
        if fallback:
            self.stats.fallbacks += 1
        return Assignment(agent, job, fallback)

    def _dig_candidates(self) -> list[Job]:
        candidates = []
        for job in self.queue.open_jobs(JobKind.DIG):
            record = self.store.get(job.location)
            if record is None or not record.state.is_diggable:
                self._discard(job, "tile no longer diggable")
                continue
            if not self.store.has_adjacent_floor(job.location):
                continue
            if not self.has_basic_worker_slots(record):
                continue
            candidates.append(job)
        return candidates

    def _pick_dig_job(self, agent: WorkerAgent) -> tuple[Job | None, bool]:
        candidates = self._dig_candidates()
        if not candidates:
            return None, False
        candidates.sort(key=lambda job: _distance(agent, job.location))

        for job in candidates[: self.settings.probe_candidates]:
            if self._probe(agent, job):
                return job, False

        job = candidates[0]
        self._log_limited(
            f"fallback:{job.location}",
            "No free slot among %d nearest dig sites for %s, falling back to %s",
            self.settings.probe_candidates,
            agent.id,
            job.location,
        )
        self._events.append(make_event(EventType.FALLBACK, agent=agent.id, location=job.location))
        return job, True

    def _probe(self, agent: WorkerAgent, job: Job) -> bool:
        """Reserve-then-release a slot to check that one is free right now."""
        with self.store.lock:
            record = self.store.get(job.location)
            if record is None:
                return False
            reservation = record.try_reserve_best_slot(agent.position)
            if reservation is None:
                return False
            record.release_specific_slot(reservation.direction, reservation.offset)
            return True

    def _pick_other_job(self, agent: WorkerAgent) -> Job | None:
        others = [
            job
            for job in self.queue.open_jobs()
            if job.kind is not JobKind.DIG and job.location in self.store
        ]
        if not others:
            return None
        return min(others, key=lambda job: _distance(agent, job.location))

    def _commit(self, agent: WorkerAgent, job: Job, now: float) -> bool:
        with self.store.lock:
            if job.assigned or job.completed:
                return False
            job.bind(agent.id, now)
            self.cache.track(job, now)
            previous_assignment = agent.last_assigned_at
            agent.last_assigned_at = now

            try:
                behavior = self.registry.create(job, self.context)
            except UnknownJobKindError as e:
                self._rollback(agent, job, previous_assignment, str(e))
                return False

            if not agent.enqueue(behavior, Priority.NORMAL):
                self._rollback(agent, job, previous_assignment, "agent rejected the behavior")
                return False

        self.stats.assignments += 1
        self._events.append(make_event(EventType.ASSIGNED, agent=agent.id, job=job.job_type.name, location=job.location))
        logger.debug("Assigned %r to %s", job, agent.id)
        return True

    def _rollback(self, agent: WorkerAgent, job: Job, previous_assignment: float | None, reason: str) -> None:
        job.unbind()
        agent.last_assigned_at = previous_assignment
        self.cache.untrack(job)
        self.stats.rollbacks += 1
        self._events.append(make_event(EventType.ROLLED_BACK, agent=agent.id, location=job.location, reason=reason))
        self._log_limited(f"rollback:{job.kind.name}", "Rolled back %r for %s: %s", job, agent.id, reason)

    def _discard(self, job: Job, reason: str) -> None:
        self.queue.complete(job)
        self.cache.untrack(job)
        self.stats.discarded += 1
        self._events.append(make_event(EventType.DISCARDED, location=job.location, reason=reason))
        logger.debug("Discarded %r: %s", job, reason)

    # --- Staleness sweep ---

    def sweep(self, now: float) -> None:
        """Drop stale tracking, release orphaned jobs and re-check slot owners."""
        self.stats.sweeps += 1
        with self.store.lock:
            for entry in self.cache.tracking.values():
                entry.untrack_completed()
            self._sweep_tracking(now)
            self._release_orphans(now)
            self.queue.purge_completed()

    def _is_valid_for(self, record: TileRecord | None, kind: JobKind) -> bool:
        if record is None:
            return False
        if kind is JobKind.DIG:
            return record.state.is_diggable
        if kind is JobKind.CONQUER:
            return record.state is TileState.FLOOR_NEUTRAL
        return True

    def _sweep_tracking(self, now: float) -> None:
        for location, entry in list(self.cache.tracking.items()):
            record = self.store.get(location)
            if not self._is_valid_for(record, entry.kind):
                for job in self.queue.find_open(entry.kind, location):
                    if not job.assigned:
                        self._discard(job, "tile invalid for tracked kind")
            elif now - entry.last_assignment <= self.settings.stale_timeout:
                if record is not None:
                    record.refresh_slot_availability()
                continue
            del self.cache.tracking[location]
            self.stats.swept += 1
            self._events.append(make_event(EventType.SWEPT, location=location, kind=entry.kind.name))

    def _release_orphans(self, now: float) -> None:
        roster = {agent.id: agent for agent in self._agents()}
        for job in self.queue.assigned_jobs():
            if job.assigned_at is not None and now - job.assigned_at < self.settings.orphan_timeout:
                continue
            agent = roster.get(job.agent) if job.agent is not None else None
            if agent is not None and not agent.is_shut_down and agent.holds_job(job):
                continue
            logger.info("Releasing orphaned %r", job)
            self.queue.release(job)
            self.cache.untrack(job)
            self.stats.orphans_released += 1
            self._events.append(make_event(EventType.RELEASED, location=job.location, agent=agent.id if agent else None))

    # --- Diagnostics ---

    def _log_limited(self, key: str, message: str, *args: object) -> None:
        last = self._log_times.get(key)
        if last is not None and self._now - last < self.settings.log_cooldown:
            return
        self._log_times[key] = self._now
        logger.warning(message, *args)

    def _record(self, now: float, assign_ms: float, sweep_ms: float | None) -> None:
        if self.history is None:
            return
        timings = {"assign": assign_ms}
        if sweep_ms is not None:
            timings["sweep"] = sweep_ms
        snapshot = {
            "open_jobs": len(self.queue.open_jobs()),
            "assigned_jobs": len(self.queue.assigned_jobs()),
            "available_agents": len(self.cache.agents),
            "tracked_locations": len(self.cache.tracking),
        }
        self.history.record_tick(TickRecord(self.tick, now, snapshot, list(self._events), timings=timings))
