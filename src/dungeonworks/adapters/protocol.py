"""Protocols for the collaborators this package drives but does not own.

Navigation, animation playback and spatial queries live outside dungeonworks.
The core consumes them only through the narrow interfaces below, so a game
engine binding, a headless simulator or a test double can be swapped in.

Usage:
    class EngineNavigator:
        @property
        def position(self) -> Vec3: ...
        def move_to(self, position: Vec3) -> bool: ...
        ...

    world.spawn_agent(start, navigator=EngineNavigator(...))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dungeonworks.core.geometry import GridPos, Vec3
    from dungeonworks.core.identity import AgentId


@runtime_checkable
class Navigator(Protocol):
    """Movement handle for one agent.

    The core only issues destination requests and reads back arrival and
    velocity signals. Path planning happens behind this interface.
    """

    @property
    def position(self) -> Vec3:
        """Current world position."""
        ...

    @property
    def velocity(self) -> Vec3:
        """Current velocity (zero when stopped)."""
        ...

    @property
    def has_path(self) -> bool:
        """True while a destination is set and not yet reached."""
        ...

    @property
    def path_pending(self) -> bool:
        """True while a requested path is still being computed."""
        ...

    @property
    def remaining_distance(self) -> float:
        """Distance left along the current path (0 without a path)."""
        ...

    @property
    def destination(self) -> Vec3 | None:
        """Current destination, if any."""
        ...

    @property
    def is_on_surface(self) -> bool:
        """False when the agent stands off the traversable surface."""
        ...

    @property
    def is_stopped(self) -> bool:
        """True while movement is suspended (destination kept)."""
        ...

    def move_to(self, position: Vec3) -> bool:
        """Request movement to ``position``. Returns False if impossible."""
        ...

    def stop(self) -> None:
        """Suspend movement immediately and zero the velocity."""
        ...

    def resume(self) -> None:
        """Resume movement toward the current destination."""
        ...

    def warp(self, position: Vec3) -> bool:
        """Teleport to ``position`` and clear the path. False if not on surface."""
        ...

    def sample_position(self, position: Vec3, max_distance: float) -> Vec3 | None:
        """Nearest valid surface position within ``max_distance``, or None."""
        ...


@runtime_checkable
class Steppable(Protocol):
    """Navigator that the world advances itself each tick (headless runs)."""

    def advance(self, dt: float) -> None:
        """Advance simulated motion by ``dt`` seconds."""
        ...


@runtime_checkable
class WorkAnimator(Protocol):
    """Animation handle used to gate dig work cycles.

    Cycle completion is read from the normalized time of the current work
    clip. Absent an animator, behaviors fall back to fixed timers.
    """

    def set_keep_working(self, value: bool) -> None:
        """Hold (or release) the looping work pose."""
        ...

    def trigger_cycle(self) -> None:
        """Start one work cycle."""
        ...

    def reset_cycle_trigger(self) -> None:
        """Clear a pending cycle trigger."""
        ...

    def normalized_time(self) -> float:
        """Progress through the current clip in [0, 1)."""
        ...

    def in_work_state(self) -> bool:
        """True while the work clip is playing."""
        ...


@runtime_checkable
class SpatialIndex(Protocol):
    """Pure spatial queries over agent positions. Never mutates anything."""

    def agents_near(
        self, position: Vec3, radius: float, exclude: AgentId | None = None
    ) -> list[tuple[AgentId, Vec3]]:
        """Agents whose position lies within ``radius`` of ``position``."""
        ...

    def is_occupied(self, position: Vec3, radius: float, exclude: AgentId | None = None) -> bool:
        """True if any agent other than ``exclude`` lies within ``radius``."""
        ...


@runtime_checkable
class WorkerDirectory(Protocol):
    """Liveness lookup used by tiles to detect orphaned slot reservations."""

    def is_working_on(self, agent: AgentId, position: GridPos) -> bool:
        """True if ``agent`` exists and is actively executing work at ``position``."""
        ...
