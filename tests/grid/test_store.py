"""Tests for the tile store."""

import pytest

from dungeonworks import AgentId, GridPos, TileState, TileStore, Vec3
from dungeonworks.grid import TileRecord


def test_from_ascii_layout():
    store = TileStore.from_ascii([
        "#G R",
        "_.cT",
    ])

    assert len(store) == 7, "Spaces leave the cell empty"
    assert GridPos(2, 0) not in store
    assert store.get(GridPos(1, 0)).state is TileState.WALL_GOLD
    assert store.get(GridPos(0, 1)).state is TileState.FLOOR_DUG
    assert store.get(GridPos(3, 1)).state is TileState.ROOM_TREASURY
    assert store.get(GridPos(3, 0)).infinite
    assert not store.get(GridPos(0, 0)).infinite


def test_from_ascii_rejects_unknown_glyph():
    with pytest.raises(ValueError, match="Unknown tile glyph"):
        TileStore.from_ascii(["#?#"])


def test_records_share_the_store_lock(plus_store):
    record = plus_store.get(GridPos(1, 1))

    assert record._lock is plus_store.lock


def test_neighbors_and_adjacent_floor(pocket_store):
    assert pocket_store.has_adjacent_floor(GridPos(1, 1))
    assert not pocket_store.has_adjacent_floor(GridPos(0, 0))
    assert {r.position for r in pocket_store.neighbors(GridPos(1, 1))} == {
        GridPos(0, 1),
        GridPos(2, 1),
        GridPos(1, 0),
        GridPos(1, 2),
    }


def test_remove_releases_slots(plus_store):
    record = plus_store.get(GridPos(1, 1))
    agent = AgentId(index=1)
    record.try_reserve_best_slot(Vec3(), owner=agent)
    record.assign_worker(agent)

    removed = plus_store.remove(GridPos(1, 1))

    assert removed is record
    assert GridPos(1, 1) not in plus_store
    assert record.reserved_count() == 0
    assert record.assigned_agents == set()
    assert plus_store.remove(GridPos(1, 1)) is None


def test_replacing_a_record_releases_the_old_one(plus_store):
    old = plus_store.get(GridPos(1, 1))
    old.try_reserve_best_slot(Vec3(), owner=AgentId(index=1))

    new = plus_store.add(TileRecord(GridPos(1, 1), TileState.WALL_MARKED))

    assert plus_store.get(GridPos(1, 1)) is new
    assert old.reserved_count() == 0
    assert new.capacity() == 12


def test_records_in_state(plus_store):
    floors = plus_store.records_in_state(TileState.FLOOR_DUG)

    assert {r.position for r in floors} == {GridPos(1, 0), GridPos(0, 1), GridPos(2, 1), GridPos(1, 2)}


def test_set_state_unknown_position_returns_none(plus_store):
    assert plus_store.set_state(GridPos(9, 9), TileState.FLOOR_DUG) is None
