"""Particle simulation and drawing."""

from pulsefield.visualizers.colorgrade import AccentColor
from pulsefield.visualizers.particles import Particle, ParticleConfig, ParticleField
from pulsefield.visualizers.renderer import ParticleRenderer, RenderConfig

__all__ = [
    "AccentColor",
    "Particle",
    "ParticleConfig",
    "ParticleField",
    "ParticleRenderer",
    "RenderConfig",
]
