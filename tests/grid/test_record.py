"""Tests for tile records and the slot allocator.

Critical Invariants:
- A slot key is held by at most one agent
- Reserved slots never exceed 3 x available directions
- Center slots are granted before side slots
- Releasing is idempotent and frees only what the owner holds
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from dungeonworks import AgentId, Direction, GridPos, TileRecord, TileState, TileStore, Vec3
from dungeonworks.grid import SLOT_DEPTH, SLOT_SPREAD

PLUS_LAYOUT = [
    "#_#",
    "_M_",
    "#_#",
]

WALL = GridPos(1, 1)


def test_twelve_slots_then_none(plus_store):
    """Scenario: an open wall grants exactly twelve slots; the thirteenth request fails."""
    record = plus_store.get(WALL)
    assert set(record.get_available_directions()) == set(Direction)
    assert record.capacity() == 12

    keys = set()
    for i in range(12):
        reservation = record.try_reserve_best_slot(Vec3(0.0, 0.0, 0.0), owner=AgentId(index=i))
        assert reservation is not None
        keys.add(reservation.key)

    assert len(keys) == 12, "INVARIANT: every reservation gets its own slot"
    assert record.try_reserve_best_slot(Vec3(0.0, 0.0, 0.0), owner=AgentId(index=99)) is None


def test_center_slot_beats_nearer_side_slot(pocket_store):
    """Scenario: a requester standing on a side slot still gets the center slot first."""
    record = pocket_store.get(WALL)
    side = record.slot_world_position(Direction.UP, 1)

    first = record.try_reserve_best_slot(side)
    second = record.try_reserve_best_slot(side)
    third = record.try_reserve_best_slot(side)

    assert (first.direction, first.offset) == (Direction.UP, 0)
    assert (second.direction, second.offset) == (Direction.UP, 1)
    assert (third.direction, third.offset) == (Direction.UP, -1)
    assert record.try_reserve_best_slot(side) is None


def test_slot_world_position(pocket_store):
    record = pocket_store.get(WALL)
    pos = record.slot_world_position(Direction.UP, -1)

    assert pos.x == pytest.approx(1.5 - SLOT_SPREAD)
    assert pos.z == pytest.approx(1.5 + SLOT_DEPTH)


def test_durability_counts_down_to_destruction():
    """Scenario: durability 3 reports False, False, True."""
    record = TileRecord(WALL, TileState.WALL_MARKED, durability=3)

    assert [record.reduce_durability() for _ in range(3)] == [False, False, True]


def test_infinite_tiles_never_break():
    record = TileRecord(WALL, TileState.WALL_ROCK, infinite=True)

    assert not any(record.reduce_durability() for _ in range(10))
    assert record.durability == 3


def test_negative_durability_rejected():
    with pytest.raises(ValueError, match="non-negative"):
        TileRecord(WALL, TileState.WALL_INTACT, durability=-1)


def test_standalone_record_has_no_sides():
    record = TileRecord(WALL, TileState.WALL_MARKED)

    assert record.get_available_directions() == []
    assert record.try_reserve_best_slot(Vec3()) is None


def test_release_slot_frees_only_owner(pocket_store):
    record = pocket_store.get(WALL)
    a, b = AgentId(index=1), AgentId(index=2)
    record.try_reserve_best_slot(Vec3(), owner=a)
    record.try_reserve_best_slot(Vec3(), owner=b)

    assert record.release_slot(Direction.UP, owner=a) == 1
    assert list(record.reserved_slots().values()) == [b]
    assert record.release_slot(Direction.UP, owner=a) == 0, "Second release is a no-op"


def test_release_specific_slot_is_idempotent(pocket_store):
    record = pocket_store.get(WALL)
    reservation = record.try_reserve_best_slot(Vec3())

    assert record.release_specific_slot(reservation.direction, reservation.offset)
    assert not record.release_specific_slot(reservation.direction, reservation.offset)
    assert record.reserved_count() == 0


def test_unassign_worker_twice_is_a_no_op(pocket_store):
    record = pocket_store.get(WALL)
    digger, other = AgentId(index=1), AgentId(index=2)
    record.assign_worker(digger)
    record.assign_worker(other)

    record.unassign_worker(digger)
    record.unassign_worker(digger)

    assert record.assigned_agents == {other}


def test_release_all_slots_clears_workers(plus_store):
    record = plus_store.get(WALL)
    agent = AgentId(index=1)
    record.try_reserve_best_slot(Vec3(), owner=agent)
    record.assign_worker(agent)

    record.release_all_slots()
    record.release_all_slots()

    assert record.reserved_count() == 0
    assert record.assigned_agents == set()


def test_release_agent_frees_every_slot_it_holds(plus_store):
    record = plus_store.get(WALL)
    agent = AgentId(index=1)
    for _ in range(3):
        record.try_reserve_best_slot(Vec3(), owner=agent)
    record.assign_worker(agent)

    assert record.release_agent(agent) == 3
    assert agent not in record.assigned_agents


def test_refresh_frees_slots_of_unassigned_owners(plus_store):
    record = plus_store.get(WALL)
    working, gone = AgentId(index=1), AgentId(index=2)
    record.try_reserve_best_slot(Vec3(), owner=working)
    record.try_reserve_best_slot(Vec3(), owner=gone)
    record.assign_worker(working)

    assert record.refresh_slot_availability() == 1
    assert list(record.reserved_slots().values()) == [working]


def test_refresh_asks_worker_directory(plus_store):
    class NobodyWorks:
        def is_working_on(self, agent, position):
            return False

    plus_store.set_worker_directory(NobodyWorks())
    record = plus_store.get(WALL)
    agent = AgentId(index=1)
    record.try_reserve_best_slot(Vec3(), owner=agent)
    record.assign_worker(agent)

    assert record.refresh_slot_availability() == 1


def test_closing_a_side_frees_its_slots(plus_store):
    """Turning a neighbour back into wall refreshes the record and drops that side."""
    record = plus_store.get(WALL)
    agent = AgentId(index=1)
    right_slot = record.slot_world_position(Direction.RIGHT, 0)
    reservation = record.try_reserve_best_slot(right_slot, owner=agent)
    record.assign_worker(agent)
    assert reservation.direction is Direction.RIGHT

    plus_store.set_state(GridPos(2, 1), TileState.WALL_INTACT)

    assert record.reserved_count() == 0
    assert Direction.RIGHT not in record.get_available_directions()


@given(
    ops=st.lists(
        st.tuples(st.sampled_from(["reserve", "release"]), st.integers(min_value=0, max_value=5)),
        max_size=60,
    )
)
def test_slots_are_exclusive_and_bounded(ops):
    """PROPERTY: any sequence of reserves and releases keeps slots unique and within capacity."""
    store = TileStore.from_ascii(PLUS_LAYOUT)
    record = store.get(WALL)
    expected: dict = {}

    for op, index in ops:
        agent = AgentId(index=index)
        if op == "reserve":
            reservation = record.try_reserve_best_slot(Vec3(index * 0.5, 0.0, 0.0), owner=agent)
            if reservation is None:
                assert len(expected) == record.capacity()
            else:
                assert reservation.key not in expected, "INVARIANT: slot granted twice"
                expected[reservation.key] = agent
        else:
            record.release_agent(agent)
            expected = {key: owner for key, owner in expected.items() if owner != agent}

        assert record.reserved_slots() == expected
        assert record.reserved_count() <= record.capacity() == 12
