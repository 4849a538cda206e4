"""Stuck detection and graduated recovery for navigating agents.

An agent that has a path but has not moved for ``stuck_time`` seconds gets,
in order: a gentle reposition away from crowding agents, a reposition to a
free probe point around it, and finally a short teleport. The agent's
destination is re-issued after a short delay. Too many recoveries without
progress make the monitor report failure so the agent can abandon its job.
"""

from __future__ import annotations

import logging
import math
import random
from enum import Enum, auto
from typing import TYPE_CHECKING

from dungeonworks.config.settings import WorkerSettings
from dungeonworks.core.geometry import ZERO, Vec3

if TYPE_CHECKING:
    from dungeonworks.agents.worker import WorkerAgent

logger = logging.getLogger(__name__)

SAMPLE_PERIOD = 0.5
SLOW_SPEED_SQR = 0.05
PROBE_DIRECTIONS = 8


class StuckOutcome(Enum):
    NONE = auto()
    RECOVERED = auto()
    FAILED = auto()


class StuckMonitor:
    """Per-agent stuck detector.

    Args:
        settings: Thresholds and recovery distances.
        rng: Random source for teleport offsets.
    """

    def __init__(self, settings: WorkerSettings, rng: random.Random | None = None):
        self.settings = settings
        self.rng = rng if rng is not None else random.Random()
        self.timer = 0.0
        self.is_stuck = False
        self.attempts = 0
        self._last_position: Vec3 | None = None
        self._since_sample = 0.0
        self._restore_destination: Vec3 | None = None
        self._restore_timer = 0.0

    def reset(self, position: Vec3) -> None:
        self.timer = 0.0
        self.is_stuck = False
        self._last_position = position
        self._since_sample = 0.0

    def update(self, agent: WorkerAgent, dt: float) -> StuckOutcome:
        self._tick_restore(agent, dt)

        nav = agent.navigator
        active = agent.active
        if active is None or active.is_critical() or not nav.has_path or not agent.is_correctly_oriented():
            self.reset(agent.position)
            if active is None:
                self.attempts = 0
            return StuckOutcome.NONE

        if self._last_position is None:
            self._last_position = agent.position
        moved = agent.position.distance_to(self._last_position)
        slow = moved < self.settings.stuck_distance and nav.velocity.sqr_length() < SLOW_SPEED_SQR
        has_destination = nav.has_path and not nav.path_pending

        outcome = StuckOutcome.NONE
        if slow and has_destination:
            self.timer += dt
            if self.timer > self.settings.stuck_time and not self.is_stuck:
                logger.warning("%s stuck for %.1fs, attempting recovery", agent.id, self.timer)
                self.is_stuck = True
                self.attempts += 1
                recovered = self.recover(agent)
                if not recovered or self.attempts > self.settings.max_recovery_attempts:
                    outcome = StuckOutcome.FAILED
                    self.attempts = 0
                else:
                    outcome = StuckOutcome.RECOVERED
                self.timer = 0.0
        elif moved > self.settings.stuck_distance * 2.0:
            self.timer = max(0.0, self.timer - dt * 2.0)
            self.is_stuck = False
            self.attempts = 0

        self._since_sample += dt
        if self._since_sample >= SAMPLE_PERIOD:
            self._since_sample = 0.0
            self._last_position = agent.position
            self.is_stuck = False
        return outcome

    def recover(self, agent: WorkerAgent) -> bool:
        """Run the graduated response. Returns False if nothing worked."""
        destination = agent.navigator.destination
        if self._gentle(agent):
            logger.info("%s repositioned gently", agent.id)
            self._schedule_restore(destination, self.settings.gentle_restore_delay)
            return True
        if self._teleport(agent):
            logger.info("%s teleported a short distance", agent.id)
            self._schedule_restore(destination, self.settings.teleport_restore_delay)
            return True
        logger.error("%s recovery failed", agent.id)
        return False

    def _gentle(self, agent: WorkerAgent) -> bool:
        nav = agent.navigator
        position = agent.position
        s = self.settings

        if agent.spatial is not None:
            push = ZERO
            for _, other in agent.spatial.agents_near(position, s.avoidance_radius * 2.0, exclude=agent.id):
                push = push + (position - other).flattened().normalized()
            if not push.is_zero():
                target = nav.sample_position(position + push.normalized() * s.gentle_push, 2.0)
                if target is not None and nav.warp(target):
                    return True

        for i in range(PROBE_DIRECTIONS):
            angle = math.radians(i * 360.0 / PROBE_DIRECTIONS)
            probe = position + Vec3(math.cos(angle), 0.0, math.sin(angle)) * s.probe_distance
            target = nav.sample_position(probe, 2.0)
            if target is None:
                continue
            if agent.spatial is not None and agent.spatial.is_occupied(target, s.probe_clearance, exclude=agent.id):
                continue
            if nav.warp(target):
                return True
        return False

    def _teleport(self, agent: WorkerAgent) -> bool:
        nav = agent.navigator
        s = self.settings
        target = nav.sample_position(agent.position + self._random_offset(s.teleport_offset), 2.0)
        if target is not None:
            crowded = agent.spatial is not None and agent.spatial.is_occupied(
                target, s.teleport_clearance, exclude=agent.id
            )
            if not crowded and nav.warp(target):
                return True
        target = nav.sample_position(agent.position + self._random_offset(s.teleport_short_offset), 1.5)
        return target is not None and nav.warp(target)

    def _random_offset(self, radius: float) -> Vec3:
        angle = self.rng.uniform(0.0, 2.0 * math.pi)
        distance = self.rng.uniform(0.0, radius)
        return Vec3(math.cos(angle) * distance, 0.0, math.sin(angle) * distance)

    def _schedule_restore(self, destination: Vec3 | None, delay: float) -> None:
        self._restore_destination = destination
        self._restore_timer = delay

    def _tick_restore(self, agent: WorkerAgent, dt: float) -> None:
        if self._restore_destination is None:
            return
        self._restore_timer -= dt
        if self._restore_timer > 0.0:
            return
        destination, self._restore_destination = self._restore_destination, None
        if agent.active is not None:
            agent.move_to(destination)
