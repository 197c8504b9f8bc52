"""2D primitives for bolt growth: Gaussian sampler, points and drawable pieces."""
from __future__ import annotations

import math
import random
from typing import List, Optional, Tuple


def gaussian(mean: float, stddev: float, rng=random) -> float:
    """
    Draw a normally distributed sample with the Marsaglia polar method.

    Args:
        mean: Centre of the distribution
        stddev: Standard deviation (0 returns ``mean`` exactly)
        rng: Anything with a ``random()`` method returning floats in [0, 1)

    Returns:
        Sample from Normal(mean, stddev^2)
    """
    if stddev < 0:
        raise ValueError(f"stddev must be >= 0, got {stddev}")
    if stddev == 0:
        return mean

    while True:
        v1 = 2.0 * rng.random() - 1.0
        v2 = 2.0 * rng.random() - 1.0
        s = v1 * v1 + v2 * v2
        # s == 0 is the singular point of the transform
        if 0.0 < s < 1.0:
            break

    return mean + stddev * v1 * math.sqrt(-2.0 * math.log(s) / s)


class Point:
    """
    Mutable 2D point in screen coordinates (y grows downwards).

    Angles are counter-clockwise as seen on screen, which is why both
    ``angle_to`` and ``rotate`` flip the sign of the y axis.
    """

    __slots__ = ("x", "y")

    def __init__(self, x: float, y: float):
        self.x = float(x)
        self.y = float(y)

    def __repr__(self) -> str:
        return f"Point({self.x!r}, {self.y!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def rotate(self, pivot: "Point", angle: float) -> "Point":
        """Rotate in place about ``pivot`` by ``angle`` radians; returns self."""
        dx = self.x - pivot.x
        dy = self.y - pivot.y
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        self.x = pivot.x + dx * cos_a + dy * sin_a
        self.y = pivot.y - dx * sin_a + dy * cos_a
        return self

    def translate(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def angle_to(self, other: "Point") -> float:
        return math.atan2(-(other.y - self.y), other.x - self.x)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def copy(self) -> "Point":
        return Point(self.x, self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


# ============================================================================
# Drawable pieces
# ============================================================================

class Piece:
    """One drawable unit of a bolt's path, optionally with a decay timer."""

    kind = "piece"

    def __init__(self, start: Point, end: Point, lifetime: Optional[float] = None):
        self.start = start
        self.end = end
        self.remaining_life = lifetime
        self.alive = True

    def update(self, dt: float) -> None:
        """Advance the decay timer; pieces without one never die on their own."""
        if not self.alive or self.remaining_life is None:
            return
        self.remaining_life -= dt
        if self.remaining_life <= 0:
            self.alive = False

    def vertices(self) -> List[Point]:
        raise NotImplementedError


class Segment(Piece):
    """Stroked line from ``start`` to ``end``."""

    kind = "line"

    def vertices(self) -> List[Point]:
        return [self.start, self.end]


class Rectangle(Piece):
    """
    Filled ribbon of fixed ``width`` laid along the growth heading.

    Corners are built axis-aligned from ``start`` and then rotated as one
    rigid body about ``start`` by ``heading``.
    """

    kind = "rectangle"

    def __init__(
        self,
        start: Point,
        end: Point,
        heading: float,
        width: float,
        lifetime: Optional[float] = None,
    ):
        super().__init__(start, end, lifetime)
        self.width = width
        self.heading = heading

        length = start.distance_to(end)
        half = width / 2.0
        self.corners = [
            start.translate(0.0, -half),
            start.translate(length, -half),
            start.translate(length, half),
            start.translate(0.0, half),
        ]
        for corner in self.corners:
            corner.rotate(start, heading)

    def vertices(self) -> List[Point]:
        return self.corners


def build_piece(
    kind: str,
    start: Point,
    end: Point,
    heading: float,
    width: float = 1.0,
    lifetime: Optional[float] = None,
) -> Piece:
    """Build the configured piece variant between two path points."""
    if kind == "line":
        return Segment(start, end, lifetime)
    if kind == "rectangle":
        return Rectangle(start, end, heading, width, lifetime)
    raise ValueError(f"Unknown piece kind '{kind}'. Available: ['line', 'rectangle']")
