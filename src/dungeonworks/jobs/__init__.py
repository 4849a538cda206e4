"""Jobs: the data model, the shared queue and the planners that fill it."""

from dungeonworks.jobs.conquest import ConquestPlanner
from dungeonworks.jobs.digging import DigPlanner, ResourceDrop
from dungeonworks.jobs.models import (
    CONQUER_JOB,
    DEFAULT_JOB_TYPES,
    DIG_JOB,
    FIGHT_JOB,
    Job,
    JobKind,
    JobType,
    SkilledWorker,
    SkillSet,
    SkillType,
    StatsProfile,
    skill_value,
)
from dungeonworks.jobs.queue import JobQueue

__all__ = [
    # Models
    "Job",
    "JobKind",
    "JobType",
    "SkillType",
    "SkillSet",
    "StatsProfile",
    "SkilledWorker",
    "skill_value",
    "DIG_JOB",
    "CONQUER_JOB",
    "FIGHT_JOB",
    "DEFAULT_JOB_TYPES",
    # Queue
    "JobQueue",
    # Planners
    "DigPlanner",
    "ResourceDrop",
    "ConquestPlanner",
]
