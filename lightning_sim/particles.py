"""Sparks shed by growing bolts."""
from __future__ import annotations

import math
import random

from .config import ParticleConfig
from .geometry import Point


class Particle:
    """A spark that drifts along ``angle`` and slows down until its life runs out."""

    def __init__(
        self,
        position: Point,
        angle: float,
        speed: float,
        lifetime: float,
        acceleration: float = 0.1,
        radius: float = 1.0,
    ):
        self.position = position
        self.angle = angle
        self.speed = speed
        self.remaining_life = lifetime
        self.acceleration = acceleration
        self.radius = radius
        self.alive = True

    @classmethod
    def spawn(cls, position: Point, angle: float, config: ParticleConfig, rng=random) -> "Particle":
        """Create a particle with randomized speed and lifetime."""
        return cls(
            position=position.copy(),
            angle=angle,
            speed=config.constant_speed + rng.random() * config.variable_speed,
            lifetime=config.constant_lifetime + rng.random() * config.variable_lifetime,
            acceleration=config.acceleration,
            radius=config.radius,
        )

    def update(self, dt: float) -> None:
        if not self.alive:
            return

        self.remaining_life -= dt
        if self.remaining_life <= 0:
            self.alive = False
            return

        self.position = self.position.translate(
            self.speed * math.cos(self.angle),
            -self.speed * math.sin(self.angle),
        )
        # Slow to a stop, never reverse
        self.speed = max(0.0, self.speed - self.acceleration)
