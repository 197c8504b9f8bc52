"""
Recursive bolt growth.

A bolt grows a path of pieces from its cursor (``previous_point``) a few
pieces per step, either towards a target or along a mean heading, and forks
child bolts off the cursor as it goes. Each bolt owns its pieces and its
branches outright; dropping a bolt drops its whole subtree.
"""
from __future__ import annotations

import random
from enum import Enum
from typing import Iterator, List, Optional

from .config import DIRECTIONAL, TARGET, BoltConfig, ParticleConfig
from .geometry import Piece, Point, build_piece, gaussian
from .particles import Particle


class BoltState(Enum):
    GROWING = "growing"    # still emitting pieces
    DRAINING = "draining"  # done growing, waiting for pieces and branches to die
    DEAD = "dead"          # ready to be dropped by its owner


class Bolt:
    """
    One lightning path and its sub-branches.

    Exactly one of ``target`` (target mode) or ``heading`` (directional mode)
    must be given.

    Args:
        start: Root of the path
        config: Growth parameters
        particle_config: Parameters for sparks shed while growing
        rng: Random source (``random.Random`` or the ``random`` module)
        target: Destination point (target mode)
        heading: Mean heading in radians (directional mode)
        survival_probability: Per-step chance to keep growing (directional)
        lifetime: Countdown in ms after which the whole subtree dies
        depth: Branch generation, 0 for roots
    """

    def __init__(
        self,
        start: Point,
        config: BoltConfig,
        particle_config: Optional[ParticleConfig] = None,
        rng=random,
        *,
        target: Optional[Point] = None,
        heading: Optional[float] = None,
        survival_probability: Optional[float] = None,
        lifetime: Optional[float] = None,
        depth: int = 0,
    ):
        if (target is None) == (heading is None):
            raise ValueError("Bolt needs exactly one of 'target' or 'heading'")

        self.config = config
        self.particle_config = particle_config or ParticleConfig(spawn_chance=0.0)
        self.rng = rng

        self.mode = TARGET if target is not None else DIRECTIONAL
        self.target = target
        self.heading = heading
        if survival_probability is None:
            survival_probability = config.survival_probability
        self.survival_probability = survival_probability
        self.remaining_life = lifetime
        self.depth = depth

        self.start = start
        self.previous_point = start
        self.pieces: List[Piece] = []
        self.branches: List["Bolt"] = []
        self.growth_buffer = 0.0
        self.state = BoltState.GROWING
        self.reached_target = False
        self.segments_emitted = 0

    @property
    def alive(self) -> bool:
        return self.state is not BoltState.DEAD

    @property
    def growing(self) -> bool:
        return self.state is BoltState.GROWING

    def update(self, dt: float) -> List[Particle]:
        """
        Advance the subtree by one simulation step.

        Branches are updated before this bolt decides whether it is finished,
        so a bolt only dies once everything it owns has drained.

        Returns:
            Particles spawned anywhere in the subtree during this step
        """
        spawned: List[Particle] = []
        if self.state is BoltState.DEAD:
            return spawned

        if self.remaining_life is not None:
            self.remaining_life -= dt
            if self.remaining_life <= 0:
                self.state = BoltState.DEAD
                return spawned

        for branch in self.branches:
            spawned.extend(branch.update(dt))
        self.branches = [branch for branch in self.branches if branch.alive]

        for piece in self.pieces:
            piece.update(dt)
        self.pieces = [piece for piece in self.pieces if piece.alive]

        if self.state is not BoltState.GROWING:
            if not self.pieces and not self.branches:
                self.state = BoltState.DEAD
            return spawned

        if self.mode == DIRECTIONAL and self.rng.random() >= self.survival_probability:
            self.state = BoltState.DRAINING
            return spawned

        self.growth_buffer += self.config.segments_per_tick
        while self.growth_buffer >= 1:
            self.growth_buffer -= 1
            if not self._grow_once(spawned):
                break

        return spawned

    def _grow_once(self, spawned: List[Particle]) -> bool:
        """Emit one piece from the cursor. Returns False once the target is reached."""
        cfg = self.config
        origin = self.previous_point

        if self.target is not None:
            distance = origin.distance_to(self.target)
            base_angle = origin.angle_to(self.target)
            if distance <= cfg.max_length:
                self._add_piece(origin, self.target.copy(), base_angle)
                self.reached_target = True
                self.state = BoltState.DRAINING
                return False
        else:
            distance = 0.0
            base_angle = self.heading

        heading = gaussian(base_angle, cfg.angular_stddev, self.rng)
        length = cfg.min_length + self.rng.random() * (cfg.max_length - cfg.min_length)
        next_point = origin.translate(length, 0.0).rotate(origin, heading)
        self._add_piece(origin, next_point, heading)

        if self.rng.random() < self.particle_config.spawn_chance:
            spawned.append(Particle.spawn(next_point, heading, self.particle_config, self.rng))

        # One chance on each side of the parent's course
        for side in (1.0, -1.0):
            if self._can_branch() and self.rng.random() < cfg.branching_chance:
                angle = base_angle + side * cfg.branching_angle_mean
                self.branches.append(self._make_branch(origin, angle, distance))

        self.previous_point = next_point
        return True

    def _add_piece(self, start: Point, end: Point, heading: float) -> None:
        cfg = self.config
        self.pieces.append(
            build_piece(cfg.piece, start, end, heading, cfg.width, cfg.segment_lifetime)
        )
        self.segments_emitted += 1

    def _can_branch(self) -> bool:
        return self.config.max_depth is None or self.depth < self.config.max_depth

    def _make_branch(self, origin: Point, angle: float, distance: float) -> "Bolt":
        cfg = self.config
        kwargs = dict(
            rng=self.rng,
            lifetime=self.remaining_life,
            depth=self.depth + 1,
        )
        if self.mode == TARGET:
            reach = distance * cfg.branching_length_modifier
            branch_target = origin.translate(reach, 0.0).rotate(origin, angle)
            return Bolt(origin.copy(), cfg, self.particle_config, target=branch_target, **kwargs)

        return Bolt(
            origin.copy(),
            cfg,
            self.particle_config,
            heading=angle,
            survival_probability=self.survival_probability * cfg.branching_survivability_modifier,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_pieces(self) -> Iterator[Piece]:
        """Pieces in draw order: branch subtrees first, then this bolt's own."""
        for branch in self.branches:
            yield from branch.iter_pieces()
        yield from self.pieces

    def iter_bolts(self) -> Iterator["Bolt"]:
        """This bolt and every live descendant, depth first."""
        yield self
        for branch in self.branches:
            yield from branch.iter_bolts()

    def __repr__(self) -> str:
        return (
            f"Bolt(mode={self.mode!r}, state={self.state.value!r}, depth={self.depth}, "
            f"pieces={len(self.pieces)}, branches={len(self.branches)})"
        )
