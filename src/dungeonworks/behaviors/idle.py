"""Holding behaviors: idling in place and sleeping in a bed."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dungeonworks.behaviors.protocol import BaseBehavior, BehaviorKind

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent
    from dungeonworks.config.settings import BehaviorSettings
    from dungeonworks.core.geometry import Vec3


class IdleBehavior(BaseBehavior):
    """Do nothing for ``duration`` seconds, or until real work is queued."""

    kind = BehaviorKind.IDLE

    def __init__(self, duration: float):
        super().__init__()
        self.remaining = duration
        self.interrupted = False

    def is_preemptible(self) -> bool:
        return True

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        if agent.has_pending_work():
            self.interrupted = True
            return True
        self.remaining -= dt
        return self.remaining <= 0.0


class SleepBehavior(BaseBehavior):
    """Walk to a bed, then sleep for ``duration`` seconds."""

    kind = BehaviorKind.SLEEP

    def __init__(self, bed: Vec3, duration: float, arrival_distance: float = 0.5):
        super().__init__()
        self.bed = bed
        self.remaining = duration
        self.arrival_distance = arrival_distance

    @classmethod
    def from_settings(cls, bed: Vec3, settings: BehaviorSettings) -> SleepBehavior:
        return cls(bed, settings.sleep_duration)

    @property
    def target_position(self) -> Vec3:
        return self.bed

    def is_preemptible(self) -> bool:
        return True

    def on_enter(self, agent: WorkerAgent) -> None:
        super().on_enter(agent)
        if not agent.move_to(self.bed):
            self.abort(agent, "bed unreachable")

    def update(self, agent: WorkerAgent, dt: float) -> bool:
        if self.aborted:
            return True
        if not (agent.has_truly_arrived() or agent.is_at_destination(self.bed, self.arrival_distance)):
            return False
        self.remaining -= dt
        return self.remaining <= 0.0
