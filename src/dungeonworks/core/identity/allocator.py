"""Hands out agent handles and recycles roster slots."""

from __future__ import annotations

import logging

from dungeonworks.core.identity.models import AgentId

logger = logging.getLogger(__name__)


class AgentAllocator:
    """Allocates agent handles, reusing freed roster slots under a new generation.

    Freed slots are reused lowest index first so a long-running world keeps its
    roster compact.
    """

    def __init__(self) -> None:
        self._generations: dict[int, int] = {}
        self._live: set[int] = set()
        self._free: list[int] = []

    def __len__(self) -> int:
        return len(self._live)

    def allocate(self) -> AgentId:
        if self._free:
            self._free.sort()
            index = self._free.pop(0)
        else:
            index = len(self._generations)
            self._generations[index] = 0
        self._live.add(index)
        return AgentId(index=index, generation=self._generations[index])

    def release(self, agent: AgentId) -> bool:
        """Free ``agent``'s roster slot.

        Returns:
            False when the handle is already stale, True otherwise.
        """
        if not self.is_alive(agent):
            logger.debug("Ignoring release of stale handle %s", agent)
            return False
        self._live.discard(agent.index)
        self._generations[agent.index] = agent.generation + 1
        self._free.append(agent.index)
        return True

    def is_alive(self, agent: AgentId) -> bool:
        return agent.index in self._live and self._generations.get(agent.index) == agent.generation
