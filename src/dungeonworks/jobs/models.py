"""Job data model, job types and worker skill scoring.

Usage:
    job = Job(DIG_JOB, GridPos(4, 2))
    job.kind              # JobKind.DIG
    skill_value(SkillType.DIGGING, skills, stats)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dungeonworks.core.geometry import GridPos, Vec3
    from dungeonworks.core.identity import AgentId


class JobKind(Enum):
    """Closed set of job kinds. Behaviors are looked up by kind."""

    DIG = auto()
    CONQUER = auto()
    FIGHT = auto()


class SkillType(Enum):
    DIGGING = auto()
    CONQUERING = auto()
    FIGHTING = auto()


@dataclass(frozen=True, slots=True)
class JobType:
    """Static description shared by every job of one kind."""

    name: str
    kind: JobKind
    base_difficulty: float = 1.0
    base_priority: int = 1
    required_skill: SkillType = SkillType.DIGGING


DIG_JOB = JobType("Dig", JobKind.DIG, required_skill=SkillType.DIGGING)
CONQUER_JOB = JobType("Conquer", JobKind.CONQUER, required_skill=SkillType.CONQUERING)
FIGHT_JOB = JobType("Fight", JobKind.FIGHT, required_skill=SkillType.FIGHTING)

DEFAULT_JOB_TYPES: dict[JobKind, JobType] = {
    JobKind.DIG: DIG_JOB,
    JobKind.CONQUER: CONQUER_JOB,
    JobKind.FIGHT: FIGHT_JOB,
}


@dataclass(eq=False, slots=True)
class Job:
    """One unit of work at a grid location.

    Jobs compare by identity: two dig jobs at the same tile are different jobs.

    Attributes:
        job_type: Kind, difficulty, priority and required skill.
        location: Target grid cell.
        assigned: True while bound to an executing agent.
        completed: True once finished or discarded. Completed jobs are never
            handed out again.
        progress: Free-form progress scalar (work cycles applied).
        agent: Agent the job is bound to, if any.
        assigned_at: Clock time of the last assignment.
    """

    job_type: JobType
    location: GridPos
    assigned: bool = False
    completed: bool = False
    progress: float = 0.0
    agent: AgentId | None = None
    assigned_at: float | None = None

    @property
    def kind(self) -> JobKind:
        return self.job_type.kind

    @property
    def is_open(self) -> bool:
        return not self.completed

    def bind(self, agent: AgentId, now: float) -> None:
        self.assigned = True
        self.agent = agent
        self.assigned_at = now

    def unbind(self) -> None:
        self.assigned = False
        self.agent = None
        self.assigned_at = None

    def __repr__(self) -> str:
        flags = "completed" if self.completed else ("assigned" if self.assigned else "open")
        return f"Job({self.job_type.name}@{self.location}, {flags}, agent={self.agent})"


@dataclass(slots=True)
class SkillSet:
    """Per-skill base values in [0, 10]."""

    digging: float = 1.0
    conquering: float = 1.0
    fighting: float = 1.0

    def base_value(self, skill: SkillType) -> float:
        if skill is SkillType.DIGGING:
            return self.digging
        if skill is SkillType.CONQUERING:
            return self.conquering
        if skill is SkillType.FIGHTING:
            return self.fighting
        return 1.0


@dataclass(slots=True)
class StatsProfile:
    strength: int = 0
    agility: int = 0
    intelligence: int = 0
    health: int = 0
    dexterity: int = 0
    defence: int = 0
    luck: int = 0


STAT_BONUS_PER_POINT: dict[SkillType, tuple[str, float]] = {
    SkillType.DIGGING: ("strength", 0.05),
    SkillType.CONQUERING: ("agility", 0.03),
    SkillType.FIGHTING: ("defence", 0.04),
}
LUCK_BONUS_PER_POINT = 0.01


def skill_value(skill: SkillType, skills: SkillSet, stats: StatsProfile) -> float:
    """Combined skill of a worker: base x stat bonus x luck bonus."""
    base = skills.base_value(skill)
    stat_name, per_point = STAT_BONUS_PER_POINT[skill]
    stat_bonus = 1.0 + getattr(stats, stat_name) * per_point
    luck_bonus = 1.0 + stats.luck * LUCK_BONUS_PER_POINT
    return base * stat_bonus * luck_bonus


@runtime_checkable
class SkilledWorker(Protocol):
    """What the fallback job scorer needs to know about a worker."""

    @property
    def position(self) -> Vec3: ...

    @property
    def skills(self) -> SkillSet: ...

    @property
    def stats(self) -> StatsProfile: ...
