"""Protocol for scheduler history storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dungeonworks.tracing.models import TickRecord


@runtime_checkable
class HistoryStore(Protocol):
    """Stores TickRecords and gives random access to past scheduling runs.

    Usage:
        store = InMemoryHistoryStore(max_ticks=500)
        scheduler = JobScheduler(..., history=store)
        ...
        events = store.get_events(start_tick=10, end_tick=20)
    """

    def record_tick(self, record: TickRecord) -> None:
        """Store one run. Bounded implementations may evict the oldest run."""
        ...

    def get_tick(self, tick: int) -> TickRecord | None:
        """Record of run ``tick``, or None if not stored."""
        ...

    def get_snapshot(self, tick: int) -> dict[str, Any] | None:
        ...

    def get_events(self, start_tick: int, end_tick: int) -> list[dict[str, Any]]:
        """Flattened events of every stored run in the inclusive range."""
        ...

    def get_tick_range(self) -> tuple[int, int] | None:
        """(first, last) stored run, or None when empty."""
        ...

    def clear(self) -> None:
        ...

    @property
    def tick_count(self) -> int:
        """Number of runs currently stored."""
        ...
