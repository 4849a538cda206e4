"""Shared queue of open jobs.

The queue is a plain list guarded by the tile store's lock. Completed jobs are
removed eagerly by ``complete``; ``purge_completed`` sweeps any that were
flagged completed without going through the queue.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING

from dungeonworks.core.geometry import cell_center
from dungeonworks.jobs.models import Job, JobKind, SkilledWorker, skill_value

if TYPE_CHECKING:
    from dungeonworks.core.geometry import GridPos

logger = logging.getLogger(__name__)

DISTANCE_PENALTY = 0.1
MIN_DIFFICULTY = 1e-4


class JobQueue:
    """Open jobs waiting for (or bound to) a worker.

    Args:
        lock: Lock shared with the tile store. A private one is created when
            omitted.
    """

    def __init__(self, lock: threading.RLock | None = None):
        self._lock = lock if lock is not None else threading.RLock()
        self._jobs: list[Job] = []

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(list(self._jobs))

    def __contains__(self, job: object) -> bool:
        return any(j is job for j in self._jobs)

    def add(self, job: Job) -> Job:
        with self._lock:
            if job not in self:
                self._jobs.append(job)
            return job

    def remove(self, job: Job) -> bool:
        with self._lock:
            for i, existing in enumerate(self._jobs):
                if existing is job:
                    del self._jobs[i]
                    return True
            return False

    def complete(self, job: Job) -> None:
        """Flag ``job`` completed and drop it from the queue."""
        with self._lock:
            job.completed = True
            job.assigned = False
            self.remove(job)
            logger.debug("Completed %r", job)

    def release(self, job: Job) -> None:
        """Unbind ``job`` from its agent so the scheduler can hand it out again.

        Completed jobs are left alone. When another unassigned job of the same
        kind already waits at the location, ``job`` is completed instead so the
        location never holds two open unassigned jobs.
        """
        with self._lock:
            if job.completed:
                return
            if any(other is not job and not other.assigned for other in self.find_open(job.kind, job.location)):
                logger.debug("Dropping %r, an open job already covers %s", job, job.location)
                self.complete(job)
                return
            job.unbind()
            self.add(job)
            logger.debug("Released %r back to the queue", job)

    def find_open(self, kind: JobKind | None, location: GridPos) -> list[Job]:
        """Open jobs at ``location`` (of ``kind`` when given)."""
        with self._lock:
            return [
                job
                for job in self._jobs
                if not job.completed
                and job.location == location
                and (kind is None or job.kind is kind)
            ]

    def has_open_unassigned(self, kind: JobKind, location: GridPos) -> bool:
        with self._lock:
            return any(not job.assigned for job in self.find_open(kind, location))

    def open_jobs(self, kind: JobKind | None = None, unassigned_only: bool = True) -> list[Job]:
        with self._lock:
            return [
                job
                for job in self._jobs
                if not job.completed
                and (kind is None or job.kind is kind)
                and not (unassigned_only and job.assigned)
            ]

    def assigned_jobs(self) -> list[Job]:
        with self._lock:
            return [job for job in self._jobs if job.assigned and not job.completed]

    def purge_completed(self) -> int:
        """Drop every job flagged completed. Returns how many were removed."""
        with self._lock:
            before = len(self._jobs)
            self._jobs = [job for job in self._jobs if not job.completed]
            return before - len(self._jobs)

    def find_best_match(self, worker: SkilledWorker) -> Job | None:
        """Pick and claim the best unassigned job for ``worker``.

        Score is ``skill / difficulty * priority - distance * 0.1``. The winner
        is flagged assigned but not bound; callers bind it.
        """
        with self._lock:
            best: Job | None = None
            best_score = float("-inf")
            for job in self.open_jobs():
                skill = skill_value(job.job_type.required_skill, worker.skills, worker.stats)
                difficulty = max(MIN_DIFFICULTY, job.job_type.base_difficulty)
                distance = worker.position.distance_to(cell_center(job.location))
                score = skill / difficulty * job.job_type.base_priority - distance * DISTANCE_PENALTY
                if score > best_score:
                    best, best_score = job, score
            if best is not None:
                best.assigned = True
            return best
