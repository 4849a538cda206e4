"""Job kind -> behavior factory table.

Usage:
    registry = BehaviorRegistry.default()
    behavior = registry.create(job, context)   # raises UnknownJobKindError for FIGHT
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from dungeonworks.behaviors.conquer import ConquerBehavior
from dungeonworks.behaviors.dig import DigBehavior
from dungeonworks.behaviors.protocol import JobBehavior, WorkContext
from dungeonworks.jobs.models import Job, JobKind

BehaviorFactory: TypeAlias = Callable[[WorkContext, Job], JobBehavior]


class UnknownJobKindError(LookupError):
    """No behavior is registered for a job kind."""


class BehaviorRegistry:
    """Maps each job kind to the callable that builds its behavior."""

    def __init__(self, factories: dict[JobKind, BehaviorFactory] | None = None):
        self._factories: dict[JobKind, BehaviorFactory] = dict(factories or {})

    @classmethod
    def default(cls) -> BehaviorRegistry:
        """Dig and conquer. Fight jobs are created by combat code directly."""
        return cls({JobKind.DIG: DigBehavior, JobKind.CONQUER: ConquerBehavior})

    def register(self, kind: JobKind, factory: BehaviorFactory) -> None:
        self._factories[kind] = factory

    def unregister(self, kind: JobKind) -> None:
        self._factories.pop(kind, None)

    def supports(self, kind: JobKind) -> bool:
        return kind in self._factories

    def create(self, job: Job, context: WorkContext) -> JobBehavior:
        """Build the behavior for ``job``.

        Raises:
            UnknownJobKindError: If no factory is registered for the job's kind.
        """
        factory = self._factories.get(job.kind)
        if factory is None:
            raise UnknownJobKindError(f"No behavior registered for {job.kind.name}")
        return factory(context, job)
