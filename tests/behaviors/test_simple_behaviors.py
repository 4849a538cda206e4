"""Tests for wander, idle, sleep and combat behaviors and the behavior registry."""

import random
from dataclasses import dataclass

import pytest

from dungeonworks import (
    BehaviorRegistry,
    BehaviorSettings,
    GridPos,
    Job,
    JobKind,
    TileStore,
    UnknownJobKindError,
    Vec3,
    cell_center,
)
from dungeonworks.behaviors import (
    CombatBehavior,
    CombatTarget,
    ConquerBehavior,
    DigBehavior,
    IdleBehavior,
    JobBehavior,
    SleepBehavior,
    WanderBehavior,
    find_wander_target,
    is_wanderable,
)
from dungeonworks.jobs import CONQUER_JOB, DIG_JOB, FIGHT_JOB


@dataclass
class Dummy:
    position: Vec3
    health: float = 3.0

    @property
    def is_alive(self):
        return self.health > 0

    def take_damage(self, amount):
        self.health -= amount


@pytest.fixture
def agent(make_agent):
    return make_agent()


class TestWander:
    def test_finishes_on_arrival(self, agent):
        wander = WanderBehavior(Vec3(5.0, 0.0, 0.0))
        wander.on_enter(agent)

        assert not wander.update(agent, 0.1)

        agent.navigator.arrive()
        assert wander.update(agent, 0.1)

    def test_gives_up_when_stuck(self, agent):
        wander = WanderBehavior(Vec3(5.0, 0.0, 0.0), stuck_time=0.5)
        wander.on_enter(agent)
        agent.navigator.velocity = Vec3(1.0, 0.0, 0.0)

        done = [wander.update(agent, 0.1) for _ in range(7)]

        assert done[:5] == [False] * 5
        assert done[-1]

    def test_unreachable_target_aborts(self, make_agent, navigator_cls):
        agent = make_agent(navigator_cls(on_surface=False, sample=None))
        wander = WanderBehavior(Vec3(5.0, 0.0, 0.0))
        wander.on_enter(agent)

        assert wander.aborted
        assert wander.update(agent, 0.1)

    def test_is_preemptible(self):
        assert WanderBehavior(Vec3()).is_preemptible()


class TestWanderTargets:
    @pytest.fixture
    def store(self):
        return TileStore.from_ascii([
            "#####",
            "#_.c#",
            "#####",
        ])

    @pytest.mark.parametrize(
        ("cell", "include_conquered", "expected"),
        [
            (GridPos(1, 1), True, True),
            (GridPos(2, 1), True, False),
            (GridPos(3, 1), True, True),
            (GridPos(3, 1), False, False),
            (GridPos(0, 0), True, False),
            (GridPos(9, 9), True, True),
        ],
        ids=["dug", "neutral", "conquered", "conquered_excluded", "wall", "unknown"],
    )
    def test_is_wanderable(self, store, cell, include_conquered, expected):
        assert is_wanderable(store, cell_center(cell), include_conquered) is expected

    def test_find_target_uses_sampled_point(self, store, navigator_cls):
        hit = cell_center(GridPos(1, 1))
        nav = navigator_cls(sample=hit)

        target = find_wander_target(nav, Vec3(), store, BehaviorSettings(), random.Random(1))

        assert target == hit

    def test_find_target_without_surface(self, store, navigator_cls):
        nav = navigator_cls(sample=None)

        assert find_wander_target(nav, Vec3(), store, BehaviorSettings(), random.Random(1)) is None


class TestIdleAndSleep:
    def test_idle_runs_out(self, agent):
        idle = IdleBehavior(0.25)

        assert not idle.update(agent, 0.1)
        assert not idle.update(agent, 0.1)
        assert idle.update(agent, 0.1)
        assert not idle.interrupted

    def test_idle_gives_way_to_queued_work(self, agent):
        agent.enqueue(IdleBehavior(5.0))
        idle = IdleBehavior(10.0)

        assert idle.update(agent, 0.1)
        assert idle.interrupted

    def test_sleep_waits_for_arrival_then_sleeps(self, agent):
        bed = Vec3(4.0, 0.0, 0.0)
        sleep = SleepBehavior(bed, duration=0.3)
        sleep.on_enter(agent)

        assert agent.navigator.destination == bed
        for _ in range(5):
            assert not sleep.update(agent, 0.1), "Not asleep before reaching the bed"

        agent.navigator.arrive()
        assert not sleep.update(agent, 0.1)
        assert not sleep.update(agent, 0.1)
        assert sleep.update(agent, 0.15)
        assert sleep.target_position == bed

    def test_sleep_duration_from_settings(self):
        sleep = SleepBehavior.from_settings(Vec3(), BehaviorSettings(sleep_duration=4.0))

        assert sleep.remaining == 4.0


class TestCombat:
    def test_closes_in_then_attacks_on_cooldown(self, agent):
        target = Dummy(Vec3(5.0, 0.0, 0.0))
        combat = CombatBehavior(target, attack_range=1.0, cooldown=0.5, damage=1.0)

        assert not combat.update(agent, 0.1)
        assert agent.navigator.destination == target.position

        agent.navigator.arrive()
        assert not combat.update(agent, 0.1)
        assert combat.hits == 1

        assert not combat.update(agent, 0.1)
        assert combat.hits == 1, "Still cooling down"

        combat.update(agent, 0.5)
        assert combat.hits == 2

    def test_finishes_when_target_dies(self, agent):
        target = Dummy(Vec3(0.5, 0.0, 0.0), health=1.0)
        combat = CombatBehavior(target, attack_range=1.0)

        assert combat.update(agent, 0.1)
        assert not target.is_alive

    def test_combat_tuned_from_settings(self, agent):
        settings = BehaviorSettings(combat_range=3.0, combat_cooldown=0.25, combat_damage=2.0)
        target = Dummy(Vec3(2.5, 0.0, 0.0), health=5.0)
        combat = CombatBehavior.from_settings(target, settings)

        assert not combat.update(agent, 0.1), "Already within range, first hit lands"
        assert target.health == 3.0
        assert combat.cooldown == 0.25

    def test_dummy_is_combat_target(self):
        assert isinstance(Dummy(Vec3()), CombatTarget)


class TestRegistry:
    def test_default_builds_dig_and_conquer(self, make_context, pocket_store):
        context = make_context(pocket_store)
        registry = BehaviorRegistry.default()

        dig = registry.create(Job(DIG_JOB, GridPos(1, 1)), context)
        conquer = registry.create(Job(CONQUER_JOB, GridPos(1, 2)), context)

        assert isinstance(dig, DigBehavior)
        assert isinstance(conquer, ConquerBehavior)
        assert isinstance(dig, JobBehavior)

    def test_fight_is_not_registered_by_default(self, make_context, pocket_store):
        registry = BehaviorRegistry.default()

        assert not registry.supports(JobKind.FIGHT)
        with pytest.raises(UnknownJobKindError, match="FIGHT"):
            registry.create(Job(FIGHT_JOB, GridPos(1, 2)), make_context(pocket_store))

    def test_register_and_unregister(self, make_context, pocket_store):
        registry = BehaviorRegistry()
        registry.register(JobKind.FIGHT, lambda context, job: IdleBehavior(1.0))

        assert isinstance(registry.create(Job(FIGHT_JOB, GridPos(1, 2)), make_context(pocket_store)), IdleBehavior)

        registry.unregister(JobKind.FIGHT)
        assert not registry.supports(JobKind.FIGHT)
