"""Preset configurations, one per bolt variant."""
from __future__ import annotations

import copy
import math
from dataclasses import dataclass, replace
from typing import Dict, List

from .config import DIRECTIONAL, TARGET, BoltConfig, ParticleConfig, SimConfig


@dataclass
class Preset:
    """A named world configuration."""
    name: str
    description: str
    config: SimConfig

    def build_config(self, **overrides) -> SimConfig:
        """Deep copy of the preset config with top-level fields replaced."""
        return replace(copy.deepcopy(self.config), **overrides)


# ============================================================================
# Preset Definitions
# ============================================================================

# Target-seeking strokes with sparks
STRIKE = Preset(
    name="strike",
    description="Target-seeking strokes that fork towards shorter sub-targets and shed sparks",
    config=SimConfig(),
)

# Target-seeking filled ribbons, no sparks
RIBBON = Preset(
    name="ribbon",
    description="Target-seeking bolts drawn as filled ribbons of fixed width",
    config=SimConfig(
        spawn_per_period=1.0,
        spawn_period=250.0,
        bolt=BoltConfig(
            mode=TARGET,
            min_length=4.0,
            max_length=9.0,
            segments_per_tick=3.0,
            angular_stddev=math.pi / 8,
            branching_chance=0.08,
            branching_length_modifier=0.3,
            segment_lifetime=250.0,
            piece="rectangle",
            width=3.0,
        ),
        particles=ParticleConfig(spawn_chance=0.0),
    ),
)

# Open-ended growth that dies out by coin flip
STORM = Preset(
    name="storm",
    description="Directional bolts that stop growing by chance; branches are ever less likely to survive",
    config=SimConfig(
        spawn_per_period=1.0,
        spawn_period=100.0,
        bolt=BoltConfig(
            mode=DIRECTIONAL,
            min_length=3.0,
            max_length=6.0,
            segments_per_tick=1.5,
            angular_stddev=math.pi / 9,
            branching_chance=0.05,
            branching_angle_mean=math.pi / 5,
            branching_survivability_modifier=0.9,
            survival_probability=0.97,
            segment_lifetime=400.0,
        ),
        particles=ParticleConfig(spawn_chance=0.05),
    ),
)

# Open-ended growth cut off by a countdown, pieces persist until then
TIMED = Preset(
    name="timed",
    description="Directional bolts that live for a fixed countdown and vanish all at once",
    config=SimConfig(
        spawn_per_period=1.0,
        spawn_period=500.0,
        bolt=BoltConfig(
            mode=DIRECTIONAL,
            min_length=3.0,
            max_length=5.0,
            segments_per_tick=2.0,
            angular_stddev=math.pi / 7,
            branching_chance=0.04,
            branching_survivability_modifier=0.95,
            survival_probability=1.0,
            constant_lifetime=600.0,
            variable_lifetime=400.0,
            segment_lifetime=None,
        ),
        particles=ParticleConfig(spawn_chance=0.0),
    ),
)


# ============================================================================
# Preset Registry
# ============================================================================

PRESETS: Dict[str, Preset] = {
    "strike": STRIKE,
    "ribbon": RIBBON,
    "storm": STORM,
    "timed": TIMED,
}


def list_presets() -> List[Preset]:
    """Return list of all available presets."""
    return list(PRESETS.values())


def get_preset(name: str) -> Preset:
    """Get preset by name."""
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]
