"""Tests for frontier scanning and territory reservations."""

import pytest

from dungeonworks import AgentId, ConquestPlanner, GridPos, JobKind, JobQueue, TileState, TileStore, cell_center

NEAR = GridPos(2, 1)
FAR = GridPos(3, 1)


@pytest.fixture
def store():
    return TileStore.from_ascii([
        "######",
        "#_..c#",
        "######",
    ])


@pytest.fixture
def planner(store):
    return ConquestPlanner(store, JobQueue(store.lock), scan_interval=0.5)


def test_frontier_is_neutral_floor_next_to_claimed_ground(planner):
    assert planner.is_frontier(NEAR)
    assert planner.is_frontier(FAR), "Borders the conquered tile"
    assert not planner.is_frontier(GridPos(1, 1))
    assert set(planner.frontier()) == {NEAR, FAR}


def test_scan_creates_one_job_per_frontier_tile(planner):
    created = planner.scan()
    again = planner.scan()

    assert {job.location for job in created} == {NEAR, FAR}
    assert again == []
    assert all(job.kind is JobKind.CONQUER for job in created)


def test_update_scans_on_interval(planner):
    assert len(planner.update(0.0)) == 2, "First update scans immediately"
    for job in planner.queue.open_jobs():
        planner.queue.complete(job)

    assert planner.update(0.25) == []
    assert len(planner.update(0.3)) == 2


def test_reserve_prefers_requested_tile(planner):
    a, b = AgentId(index=1), AgentId(index=2)

    assert planner.try_reserve_tile(a, cell_center(NEAR), preferred=FAR) == FAR
    assert planner.try_reserve_tile(a, cell_center(NEAR), preferred=FAR) == FAR, "Re-reserving is stable"
    assert planner.try_reserve_tile(b, cell_center(FAR), preferred=FAR) == NEAR, "Falls back to nearest free"
    assert planner.try_reserve_tile(AgentId(index=3), cell_center(FAR)) is None


def test_scan_skips_reserved_tiles(planner):
    planner.try_reserve_tile(AgentId(index=1), cell_center(NEAR), preferred=NEAR)

    assert [job.location for job in planner.scan()] == [FAR]


def test_release_for_drops_agent_reservations(planner):
    agent = AgentId(index=1)
    planner.try_reserve_tile(agent, cell_center(NEAR))
    planner.try_reserve_tile(agent, cell_center(FAR), preferred=FAR)

    assert planner.release_for(agent) == 2
    assert planner.reservations == {}


def test_complete_conquest(planner, store):
    agent = AgentId(index=1)
    planner.scan()
    planner.try_reserve_tile(agent, cell_center(NEAR), preferred=NEAR)

    planner.complete_conquest(NEAR)

    assert store.get(NEAR).state is TileState.FLOOR_CONQUERED
    assert NEAR not in planner.reservations
    assert planner.queue.find_open(JobKind.CONQUER, NEAR) == []
    assert not planner.is_frontier(NEAR)
