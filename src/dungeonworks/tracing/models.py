"""Data models for scheduler tracing.

A ``TickRecord`` is one scheduling run: a small snapshot of queue and agent
counts plus the assignment events of that run. Everything is plain data so a
record can be dumped to JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Kinds of events a scheduling run can emit."""

    ASSIGNED = "assigned"
    ROLLED_BACK = "rolled_back"
    DISCARDED = "discarded"
    FALLBACK = "fallback"
    RELEASED = "released"
    SWEPT = "swept"


def make_event(event_type: EventType, **data: Any) -> dict[str, Any]:
    """Build an event dict with string-valued payload fields."""
    event: dict[str, Any] = {"type": event_type.value}
    event.update({key: value if isinstance(value, (int, float, bool)) else str(value) for key, value in data.items()})
    return event


@dataclass(slots=True)
class TickRecord:
    """Record of a single scheduling run.

    Attributes:
        tick: Scheduler run counter.
        timestamp: Clock time of the run.
        snapshot: Counts describing queue and agent state after the run.
        events: Assignment, rollback and sweep events of the run.
        timings: Optional phase name -> duration in milliseconds.
        metadata: Optional free-form annotations.

    Example:
        record = TickRecord(
            tick=12,
            timestamp=3.4,
            snapshot={"open_jobs": 4, "available_agents": 2},
            events=[make_event(EventType.ASSIGNED, agent="agent-0.0", job="Dig@(3, 1)")],
        )
    """

    tick: int
    timestamp: float
    snapshot: dict[str, Any]
    events: list[dict[str, Any]] = field(default_factory=list)
    timings: dict[str, float] | None = None
    metadata: dict[str, Any] | None = None

    def events_of(self, event_type: EventType) -> list[dict[str, Any]]:
        return [event for event in self.events if event.get("type") == event_type.value]

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "tick": self.tick,
            "timestamp": self.timestamp,
            "snapshot": self.snapshot,
            "events": self.events,
        }
        if self.timings is not None:
            result["timings"] = self.timings
        if self.metadata is not None:
            result["metadata"] = self.metadata
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TickRecord:
        return cls(
            tick=data["tick"],
            timestamp=data["timestamp"],
            snapshot=data["snapshot"],
            events=data.get("events", []),
            timings=data.get("timings"),
            metadata=data.get("metadata"),
        )
