"""Tests for recursive bolt growth and lifecycle."""
import math
import random

import pytest

from lightning_sim.bolt import Bolt, BoltState
from lightning_sim.config import DIRECTIONAL, BoltConfig, ParticleConfig
from lightning_sim.geometry import Point
from lightning_sim.metrics import count_branches

DT = 1000.0 / 60.0


class FixedRandom(random.Random):
    """random() always returns the same value."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def make_config(**overrides):
    base = dict(
        min_length=3.0,
        max_length=5.0,
        segments_per_tick=2.0,
        angular_stddev=0.0,
        branching_chance=0.0,
        segment_lifetime=None,
    )
    base.update(overrides)
    return BoltConfig(**base)


NO_PARTICLES = ParticleConfig(spawn_chance=0.0)


def test_bolt_requires_exactly_one_of_target_or_heading():
    with pytest.raises(ValueError):
        Bolt(Point(0, 0), make_config())
    with pytest.raises(ValueError):
        Bolt(Point(0, 0), make_config(), target=Point(1, 1), heading=0.0)


def test_target_within_reach_is_hit_in_one_segment():
    config = make_config(max_length=8.0)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, target=Point(6.0, 0.0))

    bolt.update(DT)

    assert bolt.segments_emitted == 1
    assert bolt.reached_target
    assert bolt.pieces[0].end == Point(6.0, 0.0)
    assert bolt.state is BoltState.DRAINING
    assert not bolt.growing
    assert bolt.alive


def test_target_mode_closes_in_monotonically():
    config = make_config(min_length=3.0, max_length=8.0, angular_stddev=0.2)
    target = Point(1000.0, 0.0)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, random.Random(7), target=target)

    distance = bolt.previous_point.distance_to(target)
    ticks = 0
    while not bolt.reached_target and ticks < 1000:
        bolt.update(DT)
        ticks += 1
        new_distance = bolt.previous_point.distance_to(target)
        assert new_distance <= distance
        distance = new_distance

    assert bolt.reached_target
    assert ticks <= 200
    assert bolt.pieces[-1].end == target


def test_straight_strike_end_to_end():
    """Zero spread and full-length segments: ceil(300 / 5) segments, exact landing."""
    target = Point(800.0, 500.0)
    bolt = Bolt(Point(500.0, 500.0), make_config(), NO_PARTICLES, FixedRandom(1.0), target=target)

    ticks = 0
    while not bolt.reached_target and ticks < 100:
        bolt.update(DT)
        ticks += 1

    assert bolt.segments_emitted == math.ceil(300 / 5) == 60
    assert len(bolt.pieces) == 60
    assert bolt.pieces[-1].end == Point(800.0, 500.0)
    assert all(piece.end.y == 500.0 for piece in bolt.pieces)
    assert ticks == 30


def test_growth_stops_after_target_reached():
    bolt = Bolt(Point(0.0, 0.0), make_config(), NO_PARTICLES, target=Point(4.0, 0.0))
    bolt.update(DT)
    bolt.update(DT)
    bolt.update(DT)

    assert bolt.segments_emitted == 1


def test_growth_buffer_handles_fractional_rate():
    config = make_config(segments_per_tick=0.5)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), target=Point(1000.0, 0.0))

    emitted = []
    for _ in range(6):
        bolt.update(DT)
        emitted.append(bolt.segments_emitted)
        assert 0.0 <= bolt.growth_buffer < 1.0

    assert emitted == [0, 1, 1, 2, 2, 3]


def test_branch_fan_out_with_one_generation_cap():
    """Every segment forks twice; children cannot fork again."""
    config = make_config(
        segments_per_tick=1.0, min_length=5.0, branching_chance=1.0,
        branching_length_modifier=0.5, max_depth=1,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), target=Point(1000.0, 0.0))

    for t in range(1, 5):
        bolt.update(DT)
        assert count_branches(bolt) == 2 * t
    assert all(not branch.branches for branch in bolt.branches)


def test_branch_fan_out_with_two_generation_cap():
    config = make_config(
        segments_per_tick=1.0, min_length=5.0, branching_chance=1.0,
        branching_length_modifier=0.5, max_depth=2,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), target=Point(1000.0, 0.0))

    for t in range(1, 4):
        bolt.update(DT)
        # 2T first-generation branches, 2T(T-1) second-generation ones
        assert count_branches(bolt) == 2 * t * t
    assert max(b.depth for b in bolt.iter_bolts()) == 2


def test_no_branches_when_depth_cap_is_zero():
    config = make_config(branching_chance=1.0, max_depth=0)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), target=Point(1000.0, 0.0))
    for _ in range(5):
        bolt.update(DT)
    assert bolt.branches == []


def test_branches_start_on_parent_path():
    config = make_config(segments_per_tick=1.0, branching_chance=1.0, max_depth=1)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, random.Random(3), target=Point(500.0, 200.0))
    for _ in range(5):
        bolt.update(DT)

    path = {piece.start.as_tuple() for piece in bolt.pieces}
    assert bolt.branches
    assert {branch.start.as_tuple() for branch in bolt.branches} <= path


def test_target_branches_aim_at_shortened_offset_targets():
    config = make_config(
        segments_per_tick=1.0, branching_chance=1.0, max_depth=1,
        branching_angle_mean=math.pi / 6, branching_length_modifier=0.2,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), target=Point(300.0, 0.0))
    bolt.update(DT)

    left, right = bolt.branches
    assert left.start.distance_to(left.target) == pytest.approx(60.0)
    assert left.start.angle_to(left.target) == pytest.approx(math.pi / 6)
    assert right.start.angle_to(right.target) == pytest.approx(-math.pi / 6)


def test_survival_probability_halves_every_generation():
    config = make_config(
        mode=DIRECTIONAL, segments_per_tick=1.0, branching_chance=1.0,
        branching_survivability_modifier=0.5, max_depth=3,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.25),
                heading=0.0, survival_probability=0.9)

    for _ in range(4):
        bolt.update(DT)
        for parent in bolt.iter_bolts():
            for child in parent.branches:
                assert child.survival_probability == pytest.approx(parent.survival_probability * 0.5)
                assert child.survival_probability <= parent.survival_probability

    assert any(b.depth == 2 for b in bolt.iter_bolts())


def test_failed_survival_stops_growth_but_children_keep_growing():
    config = make_config(
        mode=DIRECTIONAL, segments_per_tick=1.0, branching_chance=1.0,
        branching_survivability_modifier=1.0, max_depth=1,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.25),
                heading=0.0, survival_probability=0.9)
    bolt.update(DT)
    bolt.update(DT)

    assert bolt.growing
    bolt.survival_probability = 0.1
    bolt.update(DT)
    assert bolt.state is BoltState.DRAINING
    assert bolt.alive

    emitted = bolt.segments_emitted
    branch_emitted = [b.segments_emitted for b in bolt.branches]
    bolt.update(DT)

    assert bolt.segments_emitted == emitted
    assert [b.segments_emitted for b in bolt.branches] == [n + 1 for n in branch_emitted]


def test_bolt_drains_before_dying():
    config = make_config(max_length=8.0, segment_lifetime=50.0)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, target=Point(5.0, 0.0))

    bolt.update(25.0)  # emits the only piece
    bolt.update(25.0)  # piece at 25 ms left
    assert bolt.alive
    assert bolt.state is BoltState.DRAINING

    bolt.update(25.0)  # piece expires, nothing left
    assert not bolt.alive
    assert bolt.pieces == []


def test_countdown_kills_whole_bolt_and_branches_inherit_it():
    config = make_config(
        mode=DIRECTIONAL, survival_probability=1.0, branching_chance=1.0, max_depth=1,
        segments_per_tick=1.0,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), heading=0.0, lifetime=50.0)

    bolt.update(25.0)
    assert bolt.alive
    assert [b.remaining_life for b in bolt.branches] == [25.0, 25.0]

    bolt.update(25.0)
    assert bolt.state is BoltState.DEAD
    assert not bolt.alive


def test_dead_branches_are_dropped():
    config = make_config(
        mode=DIRECTIONAL, segments_per_tick=1.0, branching_chance=1.0, max_depth=1,
        branching_survivability_modifier=0.1, segment_lifetime=20.0,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.25),
                heading=0.0, survival_probability=1.0)
    bolt.update(DT)
    assert len(bolt.branches) == 2

    # Branches (survival 0.1) stop at once, have nothing to drain and die
    config.branching_chance = 0.0
    bolt.update(DT)
    bolt.update(DT)
    assert bolt.branches == []


def test_directional_growth_follows_heading():
    config = make_config(
        mode=DIRECTIONAL, survival_probability=1.0, segments_per_tick=1.0, min_length=5.0,
    )
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), heading=math.pi / 2)
    for _ in range(3):
        bolt.update(DT)

    assert bolt.previous_point.x == pytest.approx(0.0, abs=1e-9)
    assert bolt.previous_point.y == pytest.approx(-15.0)


def test_growing_bolt_sheds_particles_at_segment_ends():
    particles = ParticleConfig(spawn_chance=1.0)
    bolt = Bolt(Point(0.0, 0.0), make_config(), particles, FixedRandom(0.5), target=Point(100.0, 0.0))

    spawned = bolt.update(DT)

    assert len(spawned) == 2
    ends = [piece.end for piece in bolt.pieces]
    assert [p.position for p in spawned] == ends
    assert all(p.position is not end for p, end in zip(spawned, ends))


def test_iter_pieces_draws_branches_before_trunk():
    config = make_config(segments_per_tick=1.0, branching_chance=1.0, max_depth=1)
    bolt = Bolt(Point(0.0, 0.0), config, NO_PARTICLES, FixedRandom(0.5), target=Point(500.0, 0.0))
    bolt.update(DT)
    bolt.update(DT)

    pieces = list(bolt.iter_pieces())
    n_own = len(bolt.pieces)
    assert pieces[-n_own:] == bolt.pieces
    assert pieces[0] is bolt.branches[0].pieces[0]
