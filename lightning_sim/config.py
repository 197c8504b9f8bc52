"""Configuration for the lightning simulation."""
from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

log = logging.getLogger(__name__)

TARGET = "target"
DIRECTIONAL = "directional"
MODES = (TARGET, DIRECTIONAL)
PIECES = ("line", "rectangle")


class ConfigError(ValueError):
    """Raised when parameters would hang the simulation or break its geometry."""


@dataclass
class BoltConfig:
    """Growth and branching parameters shared by every bolt in a world."""

    mode: str = TARGET  # "target" or "directional"

    # Segment length bounds (px)
    min_length: float = 3.0
    max_length: float = 5.0

    # Growth
    segments_per_tick: float = 2.0
    angular_stddev: float = math.pi / 7

    # Branching
    branching_chance: float = 0.1
    branching_angle_mean: float = math.pi / 6
    branching_length_modifier: float = 0.2         # target mode
    branching_survivability_modifier: float = 0.9  # directional mode
    max_depth: Optional[int] = None                # branch generations cap

    # Directional roots
    survival_probability: float = 0.97

    # Countdown for the whole bolt (ms); None = no countdown
    constant_lifetime: Optional[float] = None
    variable_lifetime: float = 0.0

    # Per-piece decay (ms); None = pieces live as long as their bolt
    segment_lifetime: Optional[float] = 100.0

    # Drawable
    piece: str = "line"  # "line" or "rectangle"
    width: float = 2.0


@dataclass
class ParticleConfig:
    """Decorative sparks shed from growing bolts."""

    constant_speed: float = 5.0
    variable_speed: float = 1.0
    acceleration: float = 0.1
    constant_lifetime: float = 100.0   # ms
    variable_lifetime: float = 300.0   # ms
    spawn_chance: float = 0.25
    radius: float = 1.0


@dataclass
class SimConfig:
    """Configuration for the lightning world."""

    # World
    width: float = 1000.0
    height: float = 1000.0

    # Clock
    timestep: float = 1000.0 / 60.0  # ms per simulation step
    max_pending_steps: int = 25

    # Spawning
    spawn_per_period: float = 1.0
    spawn_period: float = 1000.0 / 60.0  # ms
    auto_spawn: bool = True
    origin_x: float = 500.0
    origin_y: float = 500.0
    spawn_distance: float = 300.0

    seed: Optional[int] = None

    bolt: BoltConfig = field(default_factory=BoltConfig)
    particles: ParticleConfig = field(default_factory=ParticleConfig)

    @property
    def spawn_per_step(self) -> float:
        """Root bolts owed per simulation step."""
        return self.spawn_per_period * self.timestep / self.spawn_period

    def validate(self) -> "SimConfig":
        """Reject parameter sets that would hang or degenerate the simulation."""
        b = self.bolt
        p = self.particles

        if self.timestep <= 0:
            raise ConfigError(f"timestep must be positive, got {self.timestep}")
        if self.max_pending_steps < 1:
            raise ConfigError(f"max_pending_steps must be >= 1, got {self.max_pending_steps}")
        if self.spawn_period <= 0:
            raise ConfigError(f"spawn_period must be positive, got {self.spawn_period}")
        if self.spawn_per_period < 0:
            raise ConfigError(f"spawn_per_period must be >= 0, got {self.spawn_per_period}")

        if b.mode not in MODES:
            raise ConfigError(f"Unknown bolt mode '{b.mode}'. Available: {list(MODES)}")
        if b.piece not in PIECES:
            raise ConfigError(f"Unknown piece '{b.piece}'. Available: {list(PIECES)}")
        if b.min_length <= 0:
            raise ConfigError(f"min_length must be positive, got {b.min_length}")
        if b.min_length > b.max_length:
            raise ConfigError(
                f"min_length ({b.min_length}) is greater than max_length ({b.max_length})"
            )
        if b.segments_per_tick <= 0:
            raise ConfigError(f"segments_per_tick must be positive, got {b.segments_per_tick}")
        if b.angular_stddev < 0:
            raise ConfigError(f"angular_stddev must be >= 0, got {b.angular_stddev}")
        if b.piece == "rectangle" and b.width <= 0:
            raise ConfigError(f"rectangle width must be positive, got {b.width}")
        if b.max_depth is not None and b.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {b.max_depth}")
        if b.branching_length_modifier < 0:
            raise ConfigError(
                f"branching_length_modifier must be >= 0, got {b.branching_length_modifier}"
            )

        for name, value in (
            ("branching_chance", b.branching_chance),
            ("branching_survivability_modifier", b.branching_survivability_modifier),
            ("survival_probability", b.survival_probability),
            ("particles.spawn_chance", p.spawn_chance),
        ):
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")

        for name, value in (
            ("constant_lifetime", b.constant_lifetime),
            ("segment_lifetime", b.segment_lifetime),
            ("variable_lifetime", b.variable_lifetime),
            ("particles.constant_lifetime", p.constant_lifetime),
            ("particles.variable_lifetime", p.variable_lifetime),
        ):
            if value is not None and value < 0:
                raise ConfigError(f"{name} must be >= 0, got {value}")

        has_countdown = b.constant_lifetime is not None
        if b.mode == DIRECTIONAL and b.survival_probability >= 1.0 and not has_countdown:
            raise ConfigError(
                "directional bolts with survival_probability 1 and no "
                "constant_lifetime would grow forever"
            )
        if (
            b.mode == DIRECTIONAL
            and b.branching_chance > 0
            and b.branching_survivability_modifier >= 1.0
            and b.max_depth is None
            and not has_countdown
        ):
            raise ConfigError(
                "directional branches that keep their parent's survival_probability "
                "multiply without bound; lower branching_survivability_modifier or "
                "set max_depth or constant_lifetime"
            )
        if b.segment_lifetime is None and not has_countdown:
            raise ConfigError(
                "pieces without segment_lifetime need a bolt constant_lifetime, "
                "otherwise bolts never despawn"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimConfig":
        """Create a validated SimConfig from a (possibly partial) dictionary."""
        try:
            model = SimConfigModel.model_validate(data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e

        values = model.model_dump()
        bolt = BoltConfig(**values.pop("bolt"))
        particles = ParticleConfig(**values.pop("particles"))
        return cls(bolt=bolt, particles=particles, **values).validate()

    def save(self, filepath: str) -> None:
        """Save configuration to JSON file"""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else '.', exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        log.info("Configuration saved to %s", filepath)

    @classmethod
    def load(cls, filepath: str) -> "SimConfig":
        """Load configuration from JSON file"""
        with open(filepath, 'r') as f:
            data = json.load(f)
        log.info("Configuration loaded from %s", filepath)
        return cls.from_dict(data)


# ============================================================================
# Pydantic Models (validation of user-supplied config files)
# ============================================================================

class BoltConfigModel(BaseModel):
    """Field constraints for BoltConfig."""
    mode: Literal["target", "directional"] = TARGET
    min_length: float = Field(default=3.0, gt=0.0)
    max_length: float = Field(default=5.0, gt=0.0)
    segments_per_tick: float = Field(default=2.0, gt=0.0)
    angular_stddev: float = Field(default=math.pi / 7, ge=0.0)
    branching_chance: float = Field(default=0.1, ge=0.0, le=1.0)
    branching_angle_mean: float = math.pi / 6
    branching_length_modifier: float = Field(default=0.2, ge=0.0)
    branching_survivability_modifier: float = Field(default=0.9, ge=0.0, le=1.0)
    max_depth: Optional[int] = Field(default=None, ge=0)
    survival_probability: float = Field(default=0.97, ge=0.0, le=1.0)
    constant_lifetime: Optional[float] = Field(default=None, ge=0.0)
    variable_lifetime: float = Field(default=0.0, ge=0.0)
    segment_lifetime: Optional[float] = Field(default=100.0, ge=0.0)
    piece: Literal["line", "rectangle"] = "line"
    width: float = Field(default=2.0, gt=0.0)


class ParticleConfigModel(BaseModel):
    """Field constraints for ParticleConfig."""
    constant_speed: float = 5.0
    variable_speed: float = Field(default=1.0, ge=0.0)
    acceleration: float = 0.1
    constant_lifetime: float = Field(default=100.0, ge=0.0)
    variable_lifetime: float = Field(default=300.0, ge=0.0)
    spawn_chance: float = Field(default=0.25, ge=0.0, le=1.0)
    radius: float = Field(default=1.0, gt=0.0)


class SimConfigModel(BaseModel):
    """Field constraints for SimConfig."""
    width: float = Field(default=1000.0, gt=0.0)
    height: float = Field(default=1000.0, gt=0.0)
    timestep: float = Field(default=1000.0 / 60.0, gt=0.0)
    max_pending_steps: int = Field(default=25, ge=1)
    spawn_per_period: float = Field(default=1.0, ge=0.0)
    spawn_period: float = Field(default=1000.0 / 60.0, gt=0.0)
    auto_spawn: bool = True
    origin_x: float = 500.0
    origin_y: float = 500.0
    spawn_distance: float = Field(default=300.0, gt=0.0)
    seed: Optional[int] = None
    bolt: BoltConfigModel = Field(default_factory=BoltConfigModel)
    particles: ParticleConfigModel = Field(default_factory=ParticleConfigModel)


DEFAULT_CONFIG = SimConfig()
