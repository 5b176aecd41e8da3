"""
Per-frame feature extraction.

Derives the visual drivers from a single spectrum snapshot:
bass/mid/treble band means, overall energy, dominant frequency,
and the loudness-threshold beat flag.
"""

import math
from dataclasses import dataclass, field

import numpy as np

from pulsefield.core.spectrum import SpectrumSnapshot


@dataclass
class FeatureConfig:
    """Band layout and beat thresholds (empirical defaults, 0-255 scale)."""

    bass_fraction: float = 0.15
    mid_fraction: float = 0.35
    beat_bass_threshold: float = 140.0
    beat_energy_threshold: float = 120.0

    def __post_init__(self):
        if self.bass_fraction < 0 or self.mid_fraction < 0:
            raise ValueError("band fractions must be non-negative")
        if self.bass_fraction + self.mid_fraction > 1.0:
            raise ValueError("bass_fraction + mid_fraction must not exceed 1.0")


@dataclass(frozen=True)
class FeatureSet:
    """Features for one frame. Band values are means on the 0-255 byte scale."""

    bass: float
    mid: float
    treble: float
    overall_energy: float
    dominant_frequency_hz: float
    is_beat: bool
    is_transient: bool = False

    # Filled in by the scheduler once the trackers have run
    is_accepted_beat: bool = False
    tempo_bpm: float = 120.0

    spectrum: SpectrumSnapshot | None = field(default=None, repr=False, compare=False)


def band_edges(bin_count: int, config: FeatureConfig | None = None) -> tuple[int, int]:
    """
    Return (bass_end, mid_end) bin indices for a spectrum of ``bin_count`` bins.

    Bass is [0, bass_end), mid is [bass_end, mid_end), treble is
    [mid_end, bin_count). Bin i belongs to bass when i < bin_count * 0.15,
    so the edges are ceilings of the fractional boundaries.
    """
    cfg = config or FeatureConfig()
    # Rounding first keeps values like 20 * 0.15 from landing a hair above 3
    bass_end = math.ceil(round(bin_count * cfg.bass_fraction, 9))
    mid_end = math.ceil(round(bin_count * (cfg.bass_fraction + cfg.mid_fraction), 9))
    bass_end = min(bass_end, bin_count)
    mid_end = min(max(mid_end, bass_end), bin_count)
    return bass_end, mid_end


def _mean(values: np.ndarray) -> float:
    return float(values.mean()) if len(values) else 0.0


def dominant_bin(bins: np.ndarray) -> int:
    """Index of the loudest bin; the lowest index wins ties."""
    return int(np.argmax(bins)) if len(bins) else 0


def key_hue(frequency_hz: float) -> float:
    """
    Map a dominant frequency to a base hue in degrees.

    Middle C (~261 Hz) lands on hue 200 and every 360 Hz above or below it
    wraps the color wheel once.
    """
    return (200.0 + math.fmod(frequency_hz - 261.0, 360.0)) % 360.0


class FeatureExtractor:
    """
    Extracts a FeatureSet from a SpectrumSnapshot.

    Stateless: the only thing it remembers is the band partition for the
    last bin count it saw.
    """

    def __init__(self, config: FeatureConfig | None = None):
        self.config = config or FeatureConfig()
        self._edges_for: tuple[int, tuple[int, int]] | None = None

    def _edges(self, bin_count: int) -> tuple[int, int]:
        if self._edges_for is None or self._edges_for[0] != bin_count:
            self._edges_for = (bin_count, band_edges(bin_count, self.config))
        return self._edges_for[1]

    def band_means(self, snapshot: SpectrumSnapshot) -> tuple[float, float, float]:
        bins = snapshot.bins.astype(np.float64)
        bass_end, mid_end = self._edges(len(bins))
        return (
            _mean(bins[:bass_end]),
            _mean(bins[bass_end:mid_end]),
            _mean(bins[mid_end:]),
        )

    def dominant_frequency(self, snapshot: SpectrumSnapshot) -> float:
        """Dominant frequency in Hz: bin index * sample_rate / window_size."""
        return dominant_bin(snapshot.bins) * snapshot.sample_rate / snapshot.window_size

    def extract(self, snapshot: SpectrumSnapshot) -> FeatureSet:
        cfg = self.config
        bass, mid, treble = self.band_means(snapshot)
        overall = _mean(snapshot.bins.astype(np.float64))

        # Heuristic loudness gate, not a physically derived onset measure
        is_beat = bass > cfg.beat_bass_threshold or overall > cfg.beat_energy_threshold

        return FeatureSet(
            bass=bass,
            mid=mid,
            treble=treble,
            overall_energy=overall,
            dominant_frequency_hz=self.dominant_frequency(snapshot),
            is_beat=is_beat,
            spectrum=snapshot,
        )
