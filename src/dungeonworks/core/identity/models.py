"""Agent handles.

Usage:
    agent = AgentId(index=42, generation=1)
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AgentId:
    """Roster slot index plus the generation of the agent occupying it.

    Tiles, slots and jobs hold these handles after an agent is gone. Because a
    recycled index comes back with a bumped generation, a leftover handle
    never matches the agent that replaced it.
    """

    index: int = 0
    generation: int = 0

    def __str__(self) -> str:
        return f"agent-{self.index}.{self.generation}"

