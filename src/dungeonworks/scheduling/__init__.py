"""Batch job scheduling and the staleness sweep."""

from dungeonworks.scheduling.models import Assignment, LocationTracking, SchedulerCache, SchedulerStats
from dungeonworks.scheduling.scheduler import AgentProvider, JobScheduler

__all__ = [
    # Scheduler
    "JobScheduler",
    "AgentProvider",
    # Models
    "Assignment",
    "LocationTracking",
    "SchedulerCache",
    "SchedulerStats",
]
