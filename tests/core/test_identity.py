"""Tests for agent handles and their allocator.

Critical Invariants:
- A recycled roster slot comes back with generation + 1
- Stale handles are never reported alive
- Releasing a stale handle changes nothing
"""

import pytest

from dungeonworks.core.identity import AgentAllocator, AgentId


@pytest.fixture
def allocator():
    return AgentAllocator()


def test_generation_increments_on_recycle(allocator):
    """CRITICAL: Recycled agent id must have generation+1.

    Why: A tile still holding the old id must not match the new agent.
    """
    first = allocator.allocate()
    assert first.generation == 0

    assert allocator.release(first)

    second = allocator.allocate()
    assert second.index == first.index, "Should reuse same index"
    assert second.generation == 1, "INVARIANT: generation must increment"
    assert second != first


def test_stale_handle_detection(allocator):
    old = allocator.allocate()
    allocator.release(old)

    assert not allocator.is_alive(old)

    new = allocator.allocate()
    assert allocator.is_alive(new)
    assert not allocator.is_alive(old)


def test_releasing_stale_handle_is_ignored(allocator):
    agent = allocator.allocate()
    assert allocator.release(agent)
    assert not allocator.release(agent)

    first = allocator.allocate()
    second = allocator.allocate()
    assert first.index != second.index, "A stale id must not free its slot twice"


def test_lowest_free_index_is_reused_first(allocator):
    agents = [allocator.allocate() for _ in range(4)]
    allocator.release(agents[3])
    allocator.release(agents[1])

    assert allocator.allocate().index == 1
    assert allocator.allocate().index == 3
    assert allocator.allocate().index == 4


def test_len_counts_live_agents(allocator):
    a = allocator.allocate()
    allocator.allocate()
    allocator.release(a)

    assert len(allocator) == 1


def test_unknown_handle_is_not_alive(allocator):
    assert not allocator.is_alive(AgentId(index=9))


def test_agent_id_str_and_hash():
    agent = AgentId(index=4, generation=2)

    assert str(agent) == "agent-4.2"
    assert {agent, AgentId(index=4, generation=2)} == {agent}
