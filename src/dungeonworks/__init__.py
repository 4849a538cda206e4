"""dungeonworks: job scheduling and execution for grid-bound worker agents.

Usage:
    from dungeonworks import GridPos, TileStore, World

    store = TileStore.from_ascii([
        "#######",
        "#__M__#",
        "#_____#",
        "#######",
    ])
    world = World(store, seed=7)
    world.spawn_agent(GridPos(1, 2))
    world.spawn_agent(GridPos(5, 2))
    world.run(20.0, dt=0.05)

    world.store.get(GridPos(3, 1)).state   # TileState.FLOOR_NEUTRAL once dug
"""

__version__ = "0.1.0"

# Core primitives
from dungeonworks.core import (
    CARDINAL_DIRECTIONS,
    AgentAllocator,
    AgentId,
    Direction,
    GridPos,
    TileState,
    Vec3,
    cell_center,
    world_to_cell,
)

# Tiles and slots
from dungeonworks.grid import SlotReservation, TileRecord, TileStore

# Jobs
from dungeonworks.jobs import (
    ConquestPlanner,
    DigPlanner,
    Job,
    JobKind,
    JobQueue,
    JobType,
    ResourceDrop,
)

# Behaviors
from dungeonworks.behaviors import (
    BehaviorKind,
    BehaviorRegistry,
    ConquerBehavior,
    DigBehavior,
    JobBehavior,
    UnknownJobKindError,
    WorkContext,
)

# Agents
from dungeonworks.agents import AgentState, Priority, WorkerAgent

# Scheduling
from dungeonworks.scheduling import JobScheduler, SchedulerStats

# Configuration
from dungeonworks.config import BehaviorSettings, SchedulerSettings, WorkerSettings

# Tracing
from dungeonworks.tracing import HistoryStore, InMemoryHistoryStore, TickRecord

# Adapters
from dungeonworks.adapters import KinematicNavigator, RosterSpatialIndex, ScriptedAnimator

# World
from dungeonworks.world import Clock, World

__all__ = [
    # Core
    "AgentId",
    "AgentAllocator",
    "GridPos",
    "Vec3",
    "Direction",
    "CARDINAL_DIRECTIONS",
    "TileState",
    "cell_center",
    "world_to_cell",
    # Grid
    "TileRecord",
    "TileStore",
    "SlotReservation",
    # Jobs
    "Job",
    "JobKind",
    "JobType",
    "JobQueue",
    "DigPlanner",
    "ConquestPlanner",
    "ResourceDrop",
    # Behaviors
    "JobBehavior",
    "BehaviorKind",
    "BehaviorRegistry",
    "UnknownJobKindError",
    "WorkContext",
    "DigBehavior",
    "ConquerBehavior",
    # Agents
    "WorkerAgent",
    "AgentState",
    "Priority",
    # Scheduling
    "JobScheduler",
    "SchedulerStats",
    # Config
    "SchedulerSettings",
    "WorkerSettings",
    "BehaviorSettings",
    # Tracing
    "HistoryStore",
    "InMemoryHistoryStore",
    "TickRecord",
    # Adapters
    "KinematicNavigator",
    "RosterSpatialIndex",
    "ScriptedAnimator",
    # World
    "World",
    "Clock",
]
