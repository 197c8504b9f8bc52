"""Lightning world: fixed-timestep clock, spawning, update dispatch and pruning."""
from __future__ import annotations

import logging
import math
import random
from typing import Any, Dict, Iterator, List, Optional

from .bolt import Bolt
from .config import TARGET, SimConfig
from .geometry import Piece, Point
from .particles import Particle

log = logging.getLogger(__name__)


class FixedTimestepClock:
    """
    Converts display-rate frame timestamps into whole simulation steps.

    Elapsed time accumulates across frames and is paid out one ``timestep``
    at a time. Once ``max_pending_steps`` worth of time has piled up (e.g.
    after the window was hidden) the backlog is thrown away instead of being
    simulated.
    """

    def __init__(self, timestep: float, max_pending_steps: int = 25):
        self.timestep = timestep
        self.max_pending_steps = max_pending_steps
        self.accumulator = 0.0
        self.last_timestamp: Optional[float] = None
        self.frame_time = 0.0
        self.dropped = 0.0

    def tick(self, timestamp: float) -> int:
        """Register a frame timestamp (ms) and return how many steps are due."""
        if self.last_timestamp is None:
            self.last_timestamp = timestamp
            return 0

        self.frame_time = timestamp - self.last_timestamp
        self.last_timestamp = timestamp
        self.accumulator += self.frame_time

        if self.accumulator / self.timestep >= self.max_pending_steps:
            self.dropped += self.accumulator
            self.accumulator = 0.0
            return 0

        steps = 0
        while self.accumulator >= self.timestep:
            self.accumulator -= self.timestep
            steps += 1
        return steps

    @property
    def fps(self) -> float:
        if self.frame_time <= 0:
            return 0.0
        return 1000.0 / self.frame_time

    def reset(self) -> None:
        self.accumulator = 0.0
        self.last_timestamp = None
        self.frame_time = 0.0
        self.dropped = 0.0


class Simulation:
    """
    Owns every live bolt and particle and advances them in fixed steps.

    Frames call :meth:`advance` with their timestamp; each due step spawns
    root bolts from a fractional budget, updates everything, and then drops
    whatever died during that step.
    """

    def __init__(self, config: SimConfig, rng: Optional[random.Random] = None):
        self.config = config.validate()
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.clock = FixedTimestepClock(config.timestep, config.max_pending_steps)

        self.bolts: List[Bolt] = []
        self.particles: List[Particle] = []
        self.spawn_buffer = 0.0

        # Time
        self.t = 0.0
        self.steps = 0

    @property
    def origin(self) -> Point:
        return Point(self.config.origin_x, self.config.origin_y)

    def advance(self, timestamp: float) -> int:
        """Run every simulation step owed up to ``timestamp`` (ms)."""
        steps = self.clock.tick(timestamp)
        for _ in range(steps):
            self.step()
        return steps

    def step(self) -> None:
        """Advance simulation by one timestep."""
        dt = self.config.timestep

        if self.config.auto_spawn:
            self.spawn_buffer += self.config.spawn_per_step
            while self.spawn_buffer >= 1:
                self.spawn_buffer -= 1
                self.spawn_bolt()

        # Sparks born this step start moving next step
        existing = list(self.particles)
        for bolt in self.bolts:
            self.particles.extend(bolt.update(dt))
        for particle in existing:
            particle.update(dt)

        n_bolts, n_particles = len(self.bolts), len(self.particles)
        self.bolts = [bolt for bolt in self.bolts if bolt.alive]
        self.particles = [particle for particle in self.particles if particle.alive]
        if n_bolts != len(self.bolts) or n_particles != len(self.particles):
            log.debug(
                "step %d: pruned %d bolts, %d particles",
                self.steps,
                n_bolts - len(self.bolts),
                n_particles - len(self.particles),
            )

        self.t += dt
        self.steps += 1

    def spawn_bolt(self) -> Bolt:
        """Spawn one root bolt from the origin in a random direction."""
        cfg = self.config
        bolt_cfg = cfg.bolt
        origin = self.origin
        angle = self.rng.random() * 2 * math.pi

        lifetime = None
        if bolt_cfg.constant_lifetime is not None:
            lifetime = bolt_cfg.constant_lifetime + self.rng.random() * bolt_cfg.variable_lifetime

        if bolt_cfg.mode == TARGET:
            target = origin.translate(cfg.spawn_distance, 0.0).rotate(origin, angle)
            bolt = Bolt(origin, bolt_cfg, cfg.particles, self.rng, target=target, lifetime=lifetime)
        else:
            bolt = Bolt(origin, bolt_cfg, cfg.particles, self.rng, heading=angle, lifetime=lifetime)

        self.bolts.append(bolt)
        log.debug("spawned %s", bolt)
        return bolt

    def strike(self, x: float, y: float, start: Optional[Point] = None) -> Bolt:
        """Spawn a target-seeking bolt towards (x, y), e.g. from a pointer click."""
        bolt_cfg = self.config.bolt
        lifetime = None
        if bolt_cfg.constant_lifetime is not None:
            lifetime = bolt_cfg.constant_lifetime + self.rng.random() * bolt_cfg.variable_lifetime

        bolt = Bolt(
            start.copy() if start is not None else self.origin,
            bolt_cfg,
            self.config.particles,
            self.rng,
            target=Point(x, y),
            lifetime=lifetime,
        )
        self.bolts.append(bolt)
        return bolt

    def iter_pieces(self) -> Iterator[Piece]:
        """Every visible piece, one top-level bolt after another, in draw order."""
        for bolt in self.bolts:
            yield from bolt.iter_pieces()

    def get_state(self) -> Dict[str, Any]:
        """Get current state for visualization."""
        return {
            "width": self.config.width,
            "height": self.config.height,
            "t": self.t,
            "steps": self.steps,
            "bolts": [
                {
                    "id": i,
                    "mode": bolt.mode,
                    "state": bolt.state.value,
                    "pieces": [
                        {
                            "kind": piece.kind,
                            "points": [p.as_tuple() for p in piece.vertices()],
                        }
                        for piece in bolt.iter_pieces()
                    ],
                }
                for i, bolt in enumerate(self.bolts)
            ],
            "particles": [
                {
                    "x": particle.position.x,
                    "y": particle.position.y,
                    "radius": particle.radius,
                }
                for particle in self.particles
            ],
        }

    def reset(self) -> None:
        """Reset simulation to initial state."""
        if self.config.seed is not None:
            self.rng.seed(self.config.seed)

        self.bolts = []
        self.particles = []
        self.spawn_buffer = 0.0
        self.clock.reset()
        self.t = 0.0
        self.steps = 0
        log.info("simulation reset (seed=%s)", self.config.seed)
