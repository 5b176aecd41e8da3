"""
Drum-crash detection.

Flags sudden spikes in the top of the spectrum: a loud peak together with
a raised band mean, rate-limited so a single crash cannot retrigger.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from pulsefield.core.spectrum import SpectrumSnapshot

logger = logging.getLogger(__name__)


@dataclass
class TransientConfig:
    high_band_start: float = 0.85  # fraction of the bin range
    peak_threshold: float = 220.0
    mean_threshold: float = 80.0
    refractory_ms: float = 400.0


@dataclass(frozen=True)
class TransientState:
    last_transient_ms: float | None = None


def high_band(snapshot: SpectrumSnapshot, config: TransientConfig | None = None) -> np.ndarray:
    """Bins at index >= floor(high_band_start * bin_count)."""
    cfg = config or TransientConfig()
    start = int(math.floor(round(snapshot.bin_count * cfg.high_band_start, 9)))
    return snapshot.bins[start:]


def is_spike(snapshot: SpectrumSnapshot, config: TransientConfig | None = None) -> bool:
    """Threshold test alone, without rate limiting."""
    cfg = config or TransientConfig()
    band = high_band(snapshot, cfg)
    if len(band) == 0:
        return False
    return float(band.max()) > cfg.peak_threshold and float(band.mean()) > cfg.mean_threshold


def advance_transient_state(
    state: TransientState,
    snapshot: SpectrumSnapshot,
    now_ms: float,
    config: TransientConfig | None = None,
) -> tuple[TransientState, bool]:
    """Return (new_state, fired) for one frame."""
    cfg = config or TransientConfig()
    if not is_spike(snapshot, cfg):
        return state, False
    if state.last_transient_ms is not None and now_ms - state.last_transient_ms < cfg.refractory_ms:
        return state, False
    return TransientState(last_transient_ms=now_ms), True


class TransientDetector:
    """Owns a TransientState for the lifetime of a session."""

    def __init__(self, config: TransientConfig | None = None):
        self.config = config or TransientConfig()
        self.state = TransientState()

    def update(self, snapshot: SpectrumSnapshot, now_ms: float) -> bool:
        self.state, fired = advance_transient_state(self.state, snapshot, now_ms, self.config)
        if fired:
            logger.debug("transient at %.0f ms", now_ms)
        return fired

    def reset(self):
        self.state = TransientState()
