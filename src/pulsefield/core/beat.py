"""
Tempo estimation from per-frame beat flags.

Beats are debounced, their spacing is filtered to a plausible tempo range,
and the mean of the last few intervals gives the tempo. The state is an
immutable value; ``advance_beat_state`` is the pure transition and
``BeatTracker`` just holds the current state for the frame loop.
"""

import logging
import math
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)


@dataclass
class BeatConfig:
    """Debounce and interval-filter settings (milliseconds)."""

    debounce_ms: float = 200.0
    min_interval_ms: float = 250.0   # 240 BPM
    max_interval_ms: float = 2000.0  # 30 BPM
    history_size: int = 8
    min_samples: int = 3
    initial_bpm: float = 120.0


@dataclass(frozen=True)
class BeatTrackerState:
    last_beat_ms: float | None = None
    intervals: tuple[float, ...] = field(default_factory=tuple)
    tempo_bpm: float = 120.0
    # True when the most recent transition accepted a beat
    accepted: bool = False

    @property
    def is_armed(self) -> bool:
        """No beat has been accepted yet."""
        return self.last_beat_ms is None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def advance_beat_state(
    state: BeatTrackerState,
    is_beat_now: bool,
    now_ms: float,
    config: BeatConfig | None = None,
) -> BeatTrackerState:
    """Return the state after one frame's beat flag at ``now_ms``."""
    cfg = config or BeatConfig()

    if not is_beat_now:
        return replace(state, accepted=False) if state.accepted else state

    if state.last_beat_ms is not None and now_ms - state.last_beat_ms < cfg.debounce_ms:
        return replace(state, accepted=False) if state.accepted else state

    intervals = state.intervals
    tempo = state.tempo_bpm
    if state.last_beat_ms is not None:
        interval = now_ms - state.last_beat_ms
        if cfg.min_interval_ms <= interval <= cfg.max_interval_ms:
            intervals = (intervals + (interval,))[-cfg.history_size:]
            if len(intervals) >= cfg.min_samples:
                tempo = float(_round_half_up(60000.0 / (sum(intervals) / len(intervals))))

    return BeatTrackerState(
        last_beat_ms=now_ms,
        intervals=intervals,
        tempo_bpm=tempo,
        accepted=True,
    )


class BeatTracker:
    """Owns a BeatTrackerState for the lifetime of a session."""

    def __init__(self, config: BeatConfig | None = None):
        self.config = config or BeatConfig()
        self.state = BeatTrackerState(tempo_bpm=self.config.initial_bpm)

    @property
    def tempo_bpm(self) -> float:
        return self.state.tempo_bpm

    @property
    def beat_accepted(self) -> bool:
        return self.state.accepted

    def update(self, is_beat_now: bool, now_ms: float) -> float:
        """Feed one frame's beat flag; returns the current tempo estimate."""
        previous = self.state.tempo_bpm
        self.state = advance_beat_state(self.state, is_beat_now, now_ms, self.config)
        if self.state.tempo_bpm != previous:
            logger.debug("tempo %.0f -> %.0f BPM", previous, self.state.tempo_bpm)
        return self.state.tempo_bpm

    def reset(self):
        self.state = BeatTrackerState(tempo_bpm=self.config.initial_bpm)
