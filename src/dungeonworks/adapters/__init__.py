"""Collaborator protocols and the in-memory adapters used for headless runs."""

from dungeonworks.adapters.animation import ScriptedAnimator
from dungeonworks.adapters.kinematic import KinematicNavigator
from dungeonworks.adapters.protocol import (
    Navigator,
    SpatialIndex,
    Steppable,
    WorkAnimator,
    WorkerDirectory,
)
from dungeonworks.adapters.spatial import RosterSpatialIndex

__all__ = [
    # Protocols
    "Navigator",
    "Steppable",
    "WorkAnimator",
    "SpatialIndex",
    "WorkerDirectory",
    # In-memory adapters
    "KinematicNavigator",
    "RosterSpatialIndex",
    "ScriptedAnimator",
]
