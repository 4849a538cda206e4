"""End-to-end journeys through the world tick.

Critical Invariants:
- A marked wall gets dug out, and the floor it leaves is then conquered
- Every slot and job is settled when the work is done
- No slot ever has two owners and no agent ever holds two slots on one wall
"""

from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dungeonworks import (
    BehaviorSettings,
    GridPos,
    InMemoryHistoryStore,
    ResourceDrop,
    TileState,
    TileStore,
    World,
    WorkerSettings,
)
from dungeonworks.core.tiles import ResourceYield
from dungeonworks.tracing import EventType

WALL = GridPos(1, 1)

PLUS_FLOORS = [GridPos(1, 0), GridPos(0, 1), GridPos(2, 1), GridPos(1, 2)]


def make_world(rows, history=None, seed=0):
    return World(
        TileStore.from_ascii(rows),
        worker_settings=WorkerSettings(ambient_routine=False),
        behavior_settings=BehaviorSettings(dig_timer_cycle=0.3, conquer_tick=0.2),
        history=history,
        seed=seed,
    )


def assert_settled(world):
    record = world.store.get(WALL)
    assert record.reserved_count() == 0
    assert record.assigned_agents == set()
    assert world.queue.open_jobs() == []
    assert world.queue.assigned_jobs() == []
    assert all(agent.active is None for agent in world.agents)


def test_single_worker_digs_then_conquers():
    history = InMemoryHistoryStore()
    world = make_world(["###", "#M#", "#_#"], history=history)
    world.spawn_agent(GridPos(1, 2))

    world.run(10.0)

    assert world.store.get(WALL).state is TileState.FLOOR_CONQUERED
    assert_settled(world)
    start, end = history.get_tick_range()
    assigned = [e for e in history.get_events(start, end) if e["type"] == EventType.ASSIGNED.value]
    assert [e["job"] for e in assigned] == ["Dig", "Conquer"]


def test_workers_share_a_wall():
    world = make_world(["#_#", "_M_", "#_#"])
    first = world.spawn_agent(GridPos(1, 0))
    second = world.spawn_agent(GridPos(1, 2))

    world.tick(0.05)
    world.tick(0.05)

    record = world.store.get(WALL)
    assert record.assigned_agents == {first.id, second.id}

    world.run(10.0)

    assert record.state is TileState.FLOOR_CONQUERED
    assert_settled(world)


def test_gold_wall_pays_out_once():
    world = make_world(["###", "#G#", "#_#"])
    world.spawn_agent(GridPos(1, 2))
    assert world.mark(WALL)

    world.run(10.0)

    assert world.drops == [ResourceDrop(WALL, ResourceYield.GOLD, 1)]


def test_unmarking_mid_dig_stops_work():
    world = make_world(["###", "#M#", "#_#"])
    agent = world.spawn_agent(GridPos(1, 2))
    world.run(0.5)
    assert world.is_working_on(agent.id, WALL)

    assert world.unmark(WALL)
    world.run(1.0)

    record = world.store.get(WALL)
    assert record.state is TileState.WALL_INTACT
    assert record.durability > 0
    assert_settled(world)


@settings(max_examples=15, deadline=None)
@given(
    spawns=st.lists(st.sampled_from(PLUS_FLOORS), min_size=1, max_size=8),
    seed=st.integers(min_value=0, max_value=1000),
)
def test_slots_never_double_booked(spawns, seed):
    """PROPERTY: However many agents crowd a wall, slots stay exclusive.

    Why: two agents animating into the same spot is the visible symptom of a
    broken reservation.
    """
    world = make_world(["#_#", "_M_", "#_#"], seed=seed)
    for cell in spawns:
        world.spawn_agent(cell)
    record = world.store.get(WALL)

    for _ in range(120):
        world.tick(0.05)
        owners = [owner for owner in record.reserved_slots().values() if owner is not None]
        assert record.reserved_count() <= record.capacity()
        assert max(Counter(owners).values(), default=0) <= 1
        assert set(owners) <= {agent.id for agent in world.agents}


@pytest.mark.parametrize("agents", [1, 3], ids=["solo", "crew"])
def test_despawned_crew_leaves_wall_workable(agents):
    world = make_world(["#_#", "_M_", "#_#"])
    crew = [world.spawn_agent(cell) for cell in PLUS_FLOORS[:agents]]
    world.run(0.5)

    for agent in crew:
        world.despawn_agent(agent.id)

    record = world.store.get(WALL)
    assert record.reserved_count() == 0
    assert record.assigned_agents == set()
    assert record.state.is_diggable
    assert world.queue.assigned_jobs() == []

    newcomer = world.spawn_agent(GridPos(2, 1))
    world.run(10.0)

    assert record.state is TileState.FLOOR_CONQUERED
    assert newcomer.active is None
