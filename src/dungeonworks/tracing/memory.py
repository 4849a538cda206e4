"""Bounded in-memory history store."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any

from dungeonworks.tracing.models import TickRecord


class InMemoryHistoryStore:
    """Keeps the last ``max_ticks`` scheduling runs in insertion order.

    Args:
        max_ticks: Capacity. The oldest run is evicted once it is exceeded.

    Raises:
        ValueError: If ``max_ticks`` is not positive.
    """

    def __init__(self, max_ticks: int = 1000):
        if max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive, got {max_ticks}")
        self.max_ticks = max_ticks
        self._records: OrderedDict[int, TickRecord] = OrderedDict()
        self._lock = threading.Lock()

    def record_tick(self, record: TickRecord) -> None:
        with self._lock:
            self._records[record.tick] = record
            self._records.move_to_end(record.tick)
            while len(self._records) > self.max_ticks:
                self._records.popitem(last=False)

    def get_tick(self, tick: int) -> TickRecord | None:
        with self._lock:
            return self._records.get(tick)

    def get_snapshot(self, tick: int) -> dict[str, Any] | None:
        record = self.get_tick(tick)
        return record.snapshot if record is not None else None

    def get_events(self, start_tick: int, end_tick: int) -> list[dict[str, Any]]:
        with self._lock:
            events: list[dict[str, Any]] = []
            for tick in sorted(self._records):
                if start_tick <= tick <= end_tick:
                    events.extend(self._records[tick].events)
            return events

    def get_tick_range(self) -> tuple[int, int] | None:
        with self._lock:
            if not self._records:
                return None
            return min(self._records), max(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    @property
    def tick_count(self) -> int:
        return len(self._records)
