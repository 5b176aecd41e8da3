"""Feature extraction and tracking for the particle engine."""

from pulsefield.core.analyzer import FeatureConfig, FeatureExtractor, FeatureSet
from pulsefield.core.beat import BeatConfig, BeatTracker, BeatTrackerState
from pulsefield.core.spectrum import SpectrumAnalyser, SpectrumSnapshot
from pulsefield.core.transient import TransientConfig, TransientDetector, TransientState

__all__ = [
    "BeatConfig",
    "BeatTracker",
    "BeatTrackerState",
    "FeatureConfig",
    "FeatureExtractor",
    "FeatureSet",
    "SpectrumAnalyser",
    "SpectrumSnapshot",
    "TransientConfig",
    "TransientDetector",
    "TransientState",
]
