"""Tests for the headless navigator, animator and spatial index.

Focus: the headless adapters are what the world runs on by default, so they
must honor the same protocols an engine binding would.
"""

import pytest

from dungeonworks import AgentId, GridPos, KinematicNavigator, RosterSpatialIndex, ScriptedAnimator, TileStore, Vec3
from dungeonworks.adapters import Navigator, SpatialIndex, Steppable, WorkAnimator
from dungeonworks.core.geometry import cell_center


@pytest.fixture
def store():
    return TileStore.from_ascii([
        "######",
        "#____#",
        "######",
    ])


@pytest.fixture
def nav(store):
    return KinematicNavigator(store, cell_center(GridPos(1, 1)), speed=2.0)


class TestKinematicNavigator:
    def test_satisfies_protocols(self, nav):
        assert isinstance(nav, Navigator)
        assert isinstance(nav, Steppable)

    def test_moves_in_a_straight_line_and_stops_on_arrival(self, nav):
        target = cell_center(GridPos(4, 1))
        assert nav.move_to(target)

        nav.advance(0.5)
        assert nav.position.x == pytest.approx(2.5)
        assert nav.position.z == pytest.approx(1.5)
        assert nav.velocity.length() == pytest.approx(2.0)
        assert nav.remaining_distance == pytest.approx(2.0)

        nav.advance(2.0)
        assert nav.position.x == pytest.approx(4.5)
        assert not nav.has_path
        assert nav.velocity.is_zero()

    def test_refuses_walls(self, nav):
        assert not nav.move_to(cell_center(GridPos(0, 0)))
        assert not nav.warp(cell_center(GridPos(0, 0)))
        assert nav.destination is None

    def test_stopped_navigator_keeps_destination(self, nav):
        target = cell_center(GridPos(4, 1))
        nav.move_to(target)
        nav.stop()
        nav.advance(1.0)

        assert nav.position == cell_center(GridPos(1, 1))
        assert nav.destination == target

        nav.resume()
        nav.advance(1.0)
        assert nav.position.x == pytest.approx(3.5)

    def test_sample_position_snaps_to_walkable_cell(self, nav):
        inside = Vec3(2.2, 0.0, 1.4)
        assert nav.sample_position(inside, 1.0) == inside
        assert nav.sample_position(Vec3(2.5, 0.0, 0.5), 1.5) == cell_center(GridPos(2, 1))
        assert nav.sample_position(Vec3(20.0, 0.0, 20.0), 1.0) is None

    def test_off_surface_detection(self, store):
        nav = KinematicNavigator(store, cell_center(GridPos(0, 0)))
        assert not nav.is_on_surface

    def test_unknown_cells_when_allowed(self, store):
        nav = KinematicNavigator(store, Vec3(50.0, 0.0, 50.0), allow_unknown=True)
        assert nav.is_on_surface


class TestScriptedAnimator:
    def test_satisfies_protocols(self):
        animator = ScriptedAnimator()
        assert isinstance(animator, WorkAnimator)
        assert isinstance(animator, Steppable)

    def test_rejects_non_positive_clip(self):
        with pytest.raises(ValueError, match="clip_length"):
            ScriptedAnimator(clip_length=0.0)

    def test_single_cycle_plays_once(self):
        animator = ScriptedAnimator(clip_length=1.0)
        animator.trigger_cycle()

        animator.advance(0.1)
        assert animator.in_work_state()
        assert animator.normalized_time() == 0.0

        animator.advance(0.5)
        assert animator.normalized_time() == pytest.approx(0.5)

        animator.advance(0.6)
        assert not animator.in_work_state()
        assert animator.cycles_played == 1

    def test_keep_working_loops(self):
        animator = ScriptedAnimator(clip_length=1.0)
        animator.set_keep_working(True)
        animator.trigger_cycle()
        animator.advance(0.0)

        for _ in range(5):
            animator.advance(0.5)

        assert animator.in_work_state()
        assert animator.cycles_played == 2
        assert animator.normalized_time() == pytest.approx(0.5)

    def test_reset_clears_pending_trigger(self):
        animator = ScriptedAnimator()
        animator.trigger_cycle()
        animator.reset_cycle_trigger()

        animator.advance(0.1)
        assert not animator.in_work_state()


class TestRosterSpatialIndex:
    def test_queries_exclude_self_and_far_agents(self):
        me, near, far = AgentId(index=0), AgentId(index=1), AgentId(index=2)
        positions = [(me, Vec3()), (near, Vec3(0.5, 3.0, 0.0)), (far, Vec3(5.0, 0.0, 0.0))]
        index = RosterSpatialIndex(lambda: positions)

        assert isinstance(index, SpatialIndex)
        assert index.agents_near(Vec3(), 1.0, exclude=me) == [(near, Vec3(0.5, 3.0, 0.0))]
        assert index.is_occupied(Vec3(5.0, 0.0, 0.5), 1.0)
        assert not index.is_occupied(Vec3(), 0.1, exclude=me)

    def test_reads_roster_on_every_query(self):
        roster = []
        index = RosterSpatialIndex(lambda: roster)
        assert not index.is_occupied(Vec3(), 1.0)

        roster.append((AgentId(index=3), Vec3()))
        assert index.is_occupied(Vec3(), 1.0)
