"""Audio-reactive particle field engine."""

from pulsefield.config import EngineConfig
from pulsefield.core.analyzer import FeatureExtractor, FeatureSet
from pulsefield.core.beat import BeatTracker
from pulsefield.core.spectrum import SpectrumAnalyser, SpectrumSnapshot
from pulsefield.core.transient import TransientDetector
from pulsefield.scheduler import PointerDown, PointerMove, Resize, Scheduler
from pulsefield.visualizers.particles import ParticleField
from pulsefield.visualizers.renderer import ParticleRenderer

__version__ = "0.1.0"
__all__ = [
    "BeatTracker",
    "EngineConfig",
    "FeatureExtractor",
    "FeatureSet",
    "ParticleField",
    "ParticleRenderer",
    "PointerDown",
    "PointerMove",
    "Resize",
    "Scheduler",
    "SpectrumAnalyser",
    "SpectrumSnapshot",
    "TransientDetector",
]
