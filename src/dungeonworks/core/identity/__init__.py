"""Agent handles and the allocator that recycles them."""

from dungeonworks.core.identity.allocator import AgentAllocator
from dungeonworks.core.identity.models import AgentId

__all__ = [
    "AgentId",
    "AgentAllocator",
]
