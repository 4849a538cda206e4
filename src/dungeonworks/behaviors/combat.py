"""Minimal combat: close in on a target and hit it on a cooldown."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from dungeonworks.behaviors.protocol import BaseBehavior, BehaviorKind

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.config.settings import BehaviorSettings
    from dungeonworks.core.geometry import Vec3


@runtime_checkable
class CombatTarget(Protocol):
    """Anything that can be attacked."""

    @property
    def position(self) -> Vec3: ...

    @property
    def is_alive(self) -> bool: ...

    def take_damage(self, amount: float) -> None: ...


class CombatBehavior(BaseBehavior):
    """Chase ``target`` into ``attack_range`` and damage it every ``cooldown`` seconds.

    Finishes once the target is dead.
    """

    kind = BehaviorKind.COMBAT

    def __init__(self, target: CombatTarget, attack_range: float = 2.0, cooldown: float = 1.0, damage: float = 1.0):
        super().__init__()
        self.target = target
        self.attack_range = attack_range
        self.cooldown = cooldown
        self.damage = damage
        self.timer = 0.0
        self.hits = 0

    @classmethod
    def from_settings(cls, target: CombatTarget, settings: BehaviorSettings) -> CombatBehavior:
        """Combat tuned by the ``combat_*`` settings."""
        return cls(target, settings.combat_range, settings.combat_cooldown, settings.combat_damage)

    @property
    def target_position(self) -> Vec3:
        return self.target.position

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        if not self.target.is_alive:
            return True
        if agent.distance_to(self.target.position) > self.attack_range:
            agent.move_to(self.target.position)
            return False
        agent.stop()
        self.timer -= dt
        if self.timer <= 0.0:
            self.target.take_damage(self.damage)
            self.hits += 1
            self.timer = self.cooldown
        return not self.target.is_alive

    def _release(self, agent: WorkerAgent) -> None:
        agent.stop()
