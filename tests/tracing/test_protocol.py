"""Tests for the HistoryStore protocol and the in-memory store.

Why these tests exist:
- The scheduler accepts any HistoryStore, so compliance must be checkable
- The in-memory store must stay bounded
"""

import pytest

from dungeonworks.tracing import HistoryStore, InMemoryHistoryStore, TickRecord


def _record(tick: int) -> TickRecord:
    return TickRecord(tick=tick, timestamp=tick * 0.1, snapshot={"tick": tick}, events=[{"type": "e", "tick": tick}])


def test_in_memory_store_is_history_store() -> None:
    assert isinstance(InMemoryHistoryStore(), HistoryStore)


def test_record_and_retrieve_tick() -> None:
    store = InMemoryHistoryStore()
    store.record_tick(_record(3))

    assert store.get_tick(3).tick == 3
    assert store.get_snapshot(3) == {"tick": 3}
    assert store.get_tick(4) is None
    assert store.get_snapshot(4) is None


def test_oldest_ticks_are_evicted() -> None:
    store = InMemoryHistoryStore(max_ticks=3)
    for tick in range(1, 6):
        store.record_tick(_record(tick))

    assert store.tick_count == 3
    assert store.get_tick_range() == (3, 5)
    assert store.get_tick(1) is None


def test_get_events_spans_range() -> None:
    store = InMemoryHistoryStore()
    for tick in range(1, 5):
        store.record_tick(_record(tick))

    assert [e["tick"] for e in store.get_events(2, 3)] == [2, 3]


def test_clear() -> None:
    store = InMemoryHistoryStore()
    store.record_tick(_record(1))
    store.clear()

    assert store.tick_count == 0
    assert store.get_tick_range() is None


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_ticks"):
        InMemoryHistoryStore(max_ticks=0)
