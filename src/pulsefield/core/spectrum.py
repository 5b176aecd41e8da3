"""
Spectrum snapshots and the byte-spectrum analyser.

A SpectrumSnapshot is one frame's 8-bit view of the audio: N frequency
bins (N = window_size / 2) plus the time-domain waveform over the same
analysis window. The SpectrumAnalyser turns raw float sample blocks into
snapshots using the same scaling a browser AnalyserNode applies, so the
fixed detector thresholds downstream keep their meaning.
"""

from dataclasses import dataclass, field

import numpy as np
from scipy import signal as scipy_signal


def _as_bytes(values, name: str) -> np.ndarray:
    """Coerce a sequence to a read-only uint8 array, rejecting out-of-range values."""
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError(f"{name} values must lie in 0..255")
        arr = arr.astype(np.uint8)
    else:
        arr = arr.copy()
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class SpectrumSnapshot:
    """One frame of frequency-domain and time-domain byte data."""

    bins: np.ndarray
    sample_rate: int
    window_size: int
    waveform: np.ndarray = field(default=None, repr=False)

    def __post_init__(self):
        if self.window_size <= 0 or self.window_size % 2:
            raise ValueError(f"window_size must be a positive even number, got {self.window_size}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")

        bins = _as_bytes(self.bins, "bins")
        if len(bins) != self.window_size // 2:
            raise ValueError(
                f"expected {self.window_size // 2} bins for window {self.window_size}, got {len(bins)}"
            )
        object.__setattr__(self, "bins", bins)

        if self.waveform is None:
            waveform = np.full(self.window_size, 128, dtype=np.uint8)
            waveform.setflags(write=False)
        else:
            waveform = _as_bytes(self.waveform, "waveform")
            if len(waveform) != self.window_size:
                raise ValueError(
                    f"expected {self.window_size} waveform samples, got {len(waveform)}"
                )
        object.__setattr__(self, "waveform", waveform)

    @property
    def bin_count(self) -> int:
        return len(self.bins)

    @property
    def bin_width_hz(self) -> float:
        """Frequency span covered by one bin."""
        return self.sample_rate / self.window_size

    @classmethod
    def silent(cls, sample_rate: int = 44100, window_size: int = 2048) -> "SpectrumSnapshot":
        """All-zero spectrum with a flat (centered) waveform."""
        return cls(
            bins=np.zeros(window_size // 2, dtype=np.uint8),
            sample_rate=sample_rate,
            window_size=window_size,
        )


class SpectrumAnalyser:
    """
    Converts float sample blocks into byte spectra.

    Mirrors the browser analyser pipeline: Blackman window, magnitude
    normalised by FFT size, exponential smoothing across frames, then a
    linear map of the [min_db, max_db] decibel range onto 0..255.
    """

    def __init__(
        self,
        sample_rate: int,
        fft_size: int = 2048,
        smoothing: float = 0.8,
        min_db: float = -100.0,
        max_db: float = -30.0,
    ):
        """
        Initialize the analyser.

        Args:
            sample_rate: Sample rate of the incoming blocks.
            fft_size: Analysis window length (power of two).
            smoothing: Time constant in [0, 1); higher keeps more of the previous frame.
            min_db: Decibel level mapped to byte 0.
            max_db: Decibel level mapped to byte 255.
        """
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must lie in [0, 1), got {smoothing}")
        if max_db <= min_db:
            raise ValueError("max_db must be greater than min_db")

        self.sample_rate = int(sample_rate)
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db

        self._window = scipy_signal.get_window("blackman", fft_size, fftbins=False)
        self._previous = np.zeros(fft_size // 2, dtype=np.float64)

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self):
        """Forget the smoothing history (used when the input source changes)."""
        self._previous[:] = 0.0

    def _fit_block(self, block: np.ndarray) -> np.ndarray:
        """Take the most recent fft_size samples, zero-padding short blocks at the front."""
        block = np.asarray(block, dtype=np.float64)
        if block.ndim > 1:
            block = block.mean(axis=1)
        if len(block) >= self.fft_size:
            return block[-self.fft_size:]
        return np.pad(block, (self.fft_size - len(block), 0))

    def frequency_bytes(self, block: np.ndarray) -> np.ndarray:
        """Smoothed byte spectrum for one block (updates smoothing state)."""
        samples = self._fit_block(block)
        spectrum = np.fft.rfft(samples * self._window)[: self.bin_count]
        magnitude = np.abs(spectrum) / self.fft_size

        self._previous = self.smoothing * self._previous + (1.0 - self.smoothing) * magnitude

        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(self._previous)
        scaled = (db - self.min_db) * (255.0 / (self.max_db - self.min_db))
        return np.clip(np.floor(np.nan_to_num(scaled, neginf=0.0)), 0, 255).astype(np.uint8)

    def time_domain_bytes(self, block: np.ndarray) -> np.ndarray:
        samples = self._fit_block(block)
        return np.clip(np.floor(128.0 * (1.0 + samples)), 0, 255).astype(np.uint8)

    def analyse(self, block: np.ndarray) -> SpectrumSnapshot:
        """Build a snapshot from the latest block of float samples in [-1, 1]."""
        return SpectrumSnapshot(
            bins=self.frequency_bytes(block),
            sample_rate=self.sample_rate,
            window_size=self.fft_size,
            waveform=self.time_domain_bytes(block),
        )
