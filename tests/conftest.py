"""Shared test fixtures."""

import random
import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from dungeonworks import (
    BehaviorSettings,
    ConquestPlanner,
    DigPlanner,
    JobQueue,
    TileStore,
    Vec3,
    WorkContext,
    WorkerAgent,
)
from dungeonworks.core.geometry import ZERO
from dungeonworks.core.identity import AgentAllocator

PLUS_LAYOUT = [
    "#_#",
    "_M_",
    "#_#",
]
"""A marked wall at (1, 1) open on all four sides: twelve slots."""

POCKET_LAYOUT = [
    "###",
    "#M#",
    "#_#",
]
"""A marked wall at (1, 1) open only toward (1, 2): three slots."""


class StubNavigator:
    """Navigator test double. Moves only when told to."""

    def __init__(self, position=Vec3(0.0, 0.0, 0.0), *, on_surface=True, can_warp=True, sample=None):
        self.position = position
        self.velocity = ZERO
        self.destination = None
        self.path_pending = False
        self.is_on_surface = on_surface
        self.is_stopped = False
        self.can_warp = can_warp
        self.sample = sample
        self.moves = []

    @property
    def has_path(self):
        return self.destination is not None

    @property
    def remaining_distance(self):
        if self.destination is None:
            return 0.0
        return self.position.distance_to(self.destination)

    def move_to(self, position):
        self.destination = position
        self.is_stopped = False
        self.moves.append(position)
        return True

    def stop(self):
        self.is_stopped = True
        self.velocity = ZERO

    def resume(self):
        self.is_stopped = False

    def warp(self, position):
        if not self.can_warp:
            return False
        self.position = position
        self.destination = None
        self.is_on_surface = True
        return True

    def sample_position(self, position, max_distance):
        return self.sample

    def arrive(self):
        if self.destination is not None:
            self.position = self.destination
        self.destination = None
        self.velocity = ZERO


@pytest.fixture
def navigator_cls():
    return StubNavigator


@pytest.fixture
def plus_store():
    return TileStore.from_ascii(PLUS_LAYOUT)


@pytest.fixture
def pocket_store():
    return TileStore.from_ascii(POCKET_LAYOUT)


@pytest.fixture
def make_context():
    """Build a WorkContext (queue and planners included) around a store."""

    def _make(store, settings=None):
        queue = JobQueue(store.lock)
        return WorkContext(
            store,
            queue,
            DigPlanner(store, queue),
            ConquestPlanner(store, queue),
            settings=settings if settings is not None else BehaviorSettings(),
            rng=random.Random(0),
        )

    return _make


@pytest.fixture
def make_agent():
    """Build worker agents with fresh ids and a stub navigator by default."""
    allocator = AgentAllocator()

    def _make(navigator=None, **kwargs):
        if navigator is None:
            navigator = StubNavigator()
        return WorkerAgent(allocator.allocate(), navigator, **kwargs)

    return _make
