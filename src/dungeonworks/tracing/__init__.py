"""Tracing: per-run scheduler records and history storage."""

from dungeonworks.tracing.memory import InMemoryHistoryStore
from dungeonworks.tracing.models import EventType, TickRecord, make_event
from dungeonworks.tracing.protocol import HistoryStore

__all__ = [
    "TickRecord",
    "EventType",
    "make_event",
    "HistoryStore",
    "InMemoryHistoryStore",
]
