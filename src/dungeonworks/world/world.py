"""World: composition root wiring tiles, jobs, the scheduler and agents.

Usage:
    world = World(TileStore.from_ascii([
        "#####",
        "#_M_#",
        "#___#",
        "#####",
    ]))
    agent = world.spawn_agent(GridPos(1, 2))
    world.mark(GridPos(2, 0))
    world.run(10.0, dt=0.05)
    world.drops   # resources dug out so far
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from dungeonworks.adapters.kinematic import KinematicNavigator
from dungeonworks.adapters.protocol import Steppable
from dungeonworks.adapters.spatial import RosterSpatialIndex
from dungeonworks.agents.ambient import AmbientRoutine
from dungeonworks.agents.worker import WorkerAgent
from dungeonworks.behaviors.protocol import WorkContext
from dungeonworks.behaviors.registry import BehaviorRegistry
from dungeonworks.config.settings import BehaviorSettings, SchedulerSettings, WorkerSettings
from dungeonworks.core.geometry import GridPos, Vec3, cell_center
from dungeonworks.core.identity import AgentAllocator, AgentId
from dungeonworks.grid.store import TileStore
from dungeonworks.jobs.conquest import ConquestPlanner
from dungeonworks.jobs.digging import DigPlanner, ResourceDrop
from dungeonworks.jobs.queue import JobQueue
from dungeonworks.scheduling.scheduler import JobScheduler
from dungeonworks.world.clock import Clock

if TYPE_CHECKING:
    from dungeonworks.adapters.protocol import Navigator, WorkAnimator
    from dungeonworks.jobs.models import SkillSet, StatsProfile
    from dungeonworks.tracing.protocol import HistoryStore

logger = logging.getLogger(__name__)


class World:
    """Owns every service and drives them in a fixed order each tick.

    Tick order: clock, simulated navigators and animators, dig job top-up,
    conquest scan, scheduler, then each agent.

    Args:
        store: Tile map. An empty store is created when omitted.
        scheduler_settings: Scheduler tuning.
        worker_settings: Agent movement and recovery tuning.
        behavior_settings: Dig, conquer and wander tuning.
        registry: Job kind -> behavior table. Defaults to dig and conquer.
        history: Optional tick history for the scheduler.
        seed: Seed for the shared random source.
    """

    def __init__(
        self,
        store: TileStore | None = None,
        *,
        scheduler_settings: SchedulerSettings | None = None,
        worker_settings: WorkerSettings | None = None,
        behavior_settings: BehaviorSettings | None = None,
        registry: BehaviorRegistry | None = None,
        history: HistoryStore | None = None,
        seed: int | None = None,
    ):
        self.store = store if store is not None else TileStore()
        self.worker_settings = worker_settings if worker_settings is not None else WorkerSettings()
        self.behavior_settings = behavior_settings if behavior_settings is not None else BehaviorSettings()
        self.rng = random.Random(seed)
        self.clock = Clock()
        self.drops: list[ResourceDrop] = []

        self.queue = JobQueue(self.store.lock)
        self.dig_planner = DigPlanner(self.store, self.queue, on_jobs_created=self._jobs_created)
        self.conquest_planner = ConquestPlanner(self.store, self.queue, on_jobs_created=self._jobs_created)
        self.context = WorkContext(
            self.store,
            self.queue,
            self.dig_planner,
            self.conquest_planner,
            settings=self.behavior_settings,
            rng=self.rng,
            on_resource_drop=self.drops.append,
        )
        self.registry = registry if registry is not None else BehaviorRegistry.default()

        self.allocator = AgentAllocator()
        self._agents: dict[AgentId, WorkerAgent] = {}
        self.spatial = RosterSpatialIndex(lambda: [(a.id, a.position) for a in self._agents.values()])
        self.scheduler = JobScheduler(
            self.store,
            self.queue,
            self.registry,
            self.context,
            lambda: list(self._agents.values()),
            settings=scheduler_settings,
            history=history,
        )
        self.store.set_worker_directory(self)

    # --- Agents ---

    @property
    def agents(self) -> list[WorkerAgent]:
        return list(self._agents.values())

    def get_agent(self, agent_id: AgentId) -> WorkerAgent | None:
        return self._agents.get(agent_id)

    def spawn_agent(
        self,
        at: GridPos | Vec3,
        *,
        navigator: Navigator | None = None,
        animator: WorkAnimator | None = None,
        skills: SkillSet | None = None,
        stats: StatsProfile | None = None,
        speed: float = 3.0,
    ) -> WorkerAgent:
        """Create an agent standing at ``at`` (a cell center when given a grid position)."""
        position = cell_center(at) if isinstance(at, GridPos) else at
        if navigator is None:
            navigator = KinematicNavigator(self.store, position, speed=speed)
        agent = WorkerAgent(
            self.allocator.allocate(),
            navigator,
            spawn_time=self.clock.now,
            settings=self.worker_settings,
            animator=animator,
            spatial=self.spatial,
            skills=skills,
            stats=stats,
            ambient=AmbientRoutine(self.store, self.behavior_settings, self.rng),
        )
        agent.stuck.rng = self.rng
        self._agents[agent.id] = agent
        self.scheduler.request_immediate()
        logger.info("Spawned %s at %s", agent.id, position)
        return agent

    def despawn_agent(self, agent_id: AgentId) -> bool:
        """Remove an agent, releasing its slots, reservations and jobs."""
        agent = self._agents.pop(agent_id, None)
        if agent is None:
            return False
        agent.shutdown()
        with self.store.lock:
            for record in self.store:
                record.release_agent(agent_id)
            self.conquest_planner.release_for(agent_id)
            for job in self.queue.assigned_jobs():
                if job.agent == agent_id:
                    self.queue.release(job)
        self.allocator.release(agent_id)
        logger.info("Despawned %s", agent_id)
        return True

    def is_working_on(self, agent: AgentId, position: GridPos) -> bool:
        worker = self._agents.get(agent)
        if worker is None or worker.is_shut_down or worker.active is None:
            return False
        job = worker.active.job
        return job is not None and job.location == position

    # --- Marking ---

    def mark(self, position: GridPos) -> bool:
        return self.dig_planner.try_mark_tile(position)

    def unmark(self, position: GridPos) -> bool:
        return self.dig_planner.try_unmark_tile(position)

    def toggle(self, position: GridPos) -> bool:
        return self.dig_planner.toggle_marking(position)

    # --- Tick ---

    def tick(self, dt: float) -> None:
        now = self.clock.advance(dt)
        agents = list(self._agents.values())
        for agent in agents:
            if isinstance(agent.navigator, Steppable):
                agent.navigator.advance(dt)
            if agent.animator is not None and isinstance(agent.animator, Steppable):
                agent.animator.advance(dt)

        self.dig_planner.rescan_marked()
        self.conquest_planner.update(dt)
        self.scheduler.update(now)

        for agent in agents:
            agent.update(dt)

    def run(self, duration: float, dt: float = 0.05) -> None:
        """Tick repeatedly until ``duration`` simulated seconds have passed."""
        end = self.clock.now + duration
        while self.clock.now < end - 1e-9:
            self.tick(dt)

    def _jobs_created(self) -> None:
        # Planners are built before the scheduler.
        scheduler = getattr(self, "scheduler", None)
        if scheduler is not None:
            scheduler.request_immediate()
