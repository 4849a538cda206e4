"""Configuration: environment-overridable settings for every runtime layer."""

from dungeonworks.config.settings import BehaviorSettings, SchedulerSettings, WorkerSettings

__all__ = [
    "SchedulerSettings",
    "WorkerSettings",
    "BehaviorSettings",
]
