"""Scheduling models: location tracking, the agent cache and run statistics.

The tracking map remembers which jobs the scheduler handed out at each tile
until the assigned agents show up in the tile's assigned set. Those in-flight
assignments count against the tile's capacity so a burst of assignments in one
run cannot overfill a wall before any agent has reserved a slot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.core.geometry import GridPos
    from dungeonworks.grid.record import TileRecord
    from dungeonworks.jobs.models import Job, JobKind


@dataclass
class LocationTracking:
    """Assignments handed out at one location."""

    kind: JobKind
    """Job kind the location was tracked for."""

    last_assignment: float
    """Clock time of the most recent assignment here."""

    jobs: list[Job] = field(default_factory=list)
    """Jobs assigned here that may not have reached the tile yet."""

    def add(self, job: Job, now: float) -> None:
        if not any(j is job for j in self.jobs):
            self.jobs.append(job)
        self.last_assignment = now

    def discard(self, job: Job) -> None:
        self.jobs = [j for j in self.jobs if j is not job]

    def settle(self, record: TileRecord | None) -> None:
        """Drop jobs that finished, were released, or whose agent reached the tile."""
        arrived = record.assigned_agents if record is not None else set()
        self.jobs = [
            job
            for job in self.jobs
            if not job.completed and job.assigned and job.agent not in arrived
        ]

    def pending(self, record: TileRecord | None) -> int:
        """Assignments still on their way to the tile."""
        self.settle(record)
        return len(self.jobs)

    def untrack_completed(self) -> int:
        before = len(self.jobs)
        self.jobs = [job for job in self.jobs if not job.completed]
        return before - len(self.jobs)


@dataclass
class SchedulerCache:
    """Available agents (refreshed on a TTL) and per-location tracking."""

    agents: list[WorkerAgent] = field(default_factory=list)
    refreshed_at: float | None = None
    tracking: dict[GridPos, LocationTracking] = field(default_factory=dict)

    def is_stale(self, now: float, ttl: float) -> bool:
        return self.refreshed_at is None or now - self.refreshed_at >= ttl

    def refresh(self, agents: list[WorkerAgent], now: float) -> None:
        self.agents = agents
        self.refreshed_at = now

    def invalidate(self) -> None:
        self.refreshed_at = None

    def drop_agent(self, agent: WorkerAgent) -> None:
        self.agents = [a for a in self.agents if a is not agent]

    def track(self, job: Job, now: float) -> LocationTracking:
        entry = self.tracking.get(job.location)
        if entry is None:
            entry = LocationTracking(kind=job.kind, last_assignment=now)
            self.tracking[job.location] = entry
        entry.add(job, now)
        return entry

    def untrack(self, job: Job) -> None:
        entry = self.tracking.get(job.location)
        if entry is not None:
            entry.discard(job)


@dataclass(frozen=True, slots=True)
class Assignment:
    """A job successfully handed to an agent."""

    agent: WorkerAgent
    job: Job
    fallback: bool = False
    """True when no probed dig site had a free slot and the nearest was used anyway."""


@dataclass
class SchedulerStats:
    """Running totals since the scheduler was created."""

    runs: int = 0
    assignments: int = 0
    rollbacks: int = 0
    discarded: int = 0
    fallbacks: int = 0
    orphans_released: int = 0
    swept: int = 0
    sweeps: int = 0
