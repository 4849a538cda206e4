"""Job behaviors: per-kind state machines executed by worker agents."""

from dungeonworks.behaviors.combat import CombatBehavior, CombatTarget
from dungeonworks.behaviors.conquer import ConquerBehavior
from dungeonworks.behaviors.dig import CycleDetector, DigBehavior, DigPhase
from dungeonworks.behaviors.idle import IdleBehavior, SleepBehavior
from dungeonworks.behaviors.protocol import BaseBehavior, BehaviorKind, JobBehavior, WorkContext
from dungeonworks.behaviors.registry import BehaviorFactory, BehaviorRegistry, UnknownJobKindError
from dungeonworks.behaviors.wander import WanderBehavior, find_wander_target, is_wanderable

__all__ = [
    # Protocol
    "JobBehavior",
    "BaseBehavior",
    "BehaviorKind",
    "WorkContext",
    # Registry
    "BehaviorRegistry",
    "BehaviorFactory",
    "UnknownJobKindError",
    # Behaviors
    "DigBehavior",
    "DigPhase",
    "CycleDetector",
    "ConquerBehavior",
    "WanderBehavior",
    "find_wander_target",
    "is_wanderable",
    "IdleBehavior",
    "SleepBehavior",
    "CombatBehavior",
    "CombatTarget",
]
