"""
Engine configuration.

Each component keeps its own dataclass next to its implementation;
EngineConfig bundles them with the canvas and the two live tunables.
"""

from dataclasses import dataclass, field

from pulsefield.core.analyzer import FeatureConfig
from pulsefield.core.beat import BeatConfig
from pulsefield.core.transient import TransientConfig
from pulsefield.visualizers.particles import ParticleConfig
from pulsefield.visualizers.renderer import RENDER_MODES

# Canvas presets: (width, height, fps, encode quality)
PROFILES = {
    "low": {"width": 1280, "height": 720, "fps": 30, "quality": "fast"},
    "medium": {"width": 1920, "height": 1080, "fps": 60, "quality": "medium"},
    "high": {"width": 3840, "height": 2160, "fps": 60, "quality": "high"},
}


@dataclass
class EngineConfig:
    width: int = 1280
    height: int = 720
    fps: int = 60
    mode: str = "particles"
    seed: int | None = None

    # Live tunables (also settable on a running Scheduler)
    accent: str = "#00fff7"
    sensitivity: float = 5.0

    # Pending pointer/resize events; the oldest are dropped when full
    event_queue_size: int = 256

    features: FeatureConfig = field(default_factory=FeatureConfig)
    beat: BeatConfig = field(default_factory=BeatConfig)
    transient: TransientConfig = field(default_factory=TransientConfig)
    particles: ParticleConfig = field(default_factory=ParticleConfig)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas dimensions must be positive, got {self.width}x{self.height}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.mode not in RENDER_MODES:
            raise ValueError(f"unknown render mode {self.mode!r}, expected one of {RENDER_MODES}")

    @classmethod
    def from_profile(cls, profile: str, **overrides) -> "EngineConfig":
        """Start from a named profile; ``None`` overrides are ignored."""
        if profile not in PROFILES:
            raise ValueError(f"unknown profile {profile!r}, expected one of {sorted(PROFILES)}")
        preset = PROFILES[profile]
        values = {"width": preset["width"], "height": preset["height"], "fps": preset["fps"]}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
