"""Composition root and simulation clock.

Architecture Note:
    world/ is the only layer that constructs services. Everything below it
    receives its collaborators through constructors, so tests can build any
    subset (a store and a queue, a scheduler with fake agents) in isolation.
"""

from dungeonworks.world.clock import Clock
from dungeonworks.world.world import World

__all__ = [
    "Clock",
    "World",
]
