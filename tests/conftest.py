"""Pytest configuration and shared fixtures."""

import os

# Surfaces and gfxdraw need no window, but keep SDL off any real display
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest

from pulsefield.core.spectrum import SpectrumSnapshot

# Default sample rate for test audio
TEST_SR = 22050

# Byte-spectrum geometry used by most tests
SNAPSHOT_SR = 44100
SNAPSHOT_WINDOW = 2048


def make_snapshot(
    values=None,
    *,
    fill: int = 0,
    sample_rate: int = SNAPSHOT_SR,
    window_size: int = SNAPSHOT_WINDOW,
    waveform=None,
) -> SpectrumSnapshot:
    """Build a snapshot from explicit bins, or a flat one at ``fill``."""
    if values is None:
        values = np.full(window_size // 2, fill, dtype=np.uint8)
    return SpectrumSnapshot(
        bins=np.asarray(values, dtype=np.uint8),
        sample_rate=sample_rate,
        window_size=window_size,
        waveform=waveform,
    )


def crash_snapshot(window_size: int = SNAPSHOT_WINDOW) -> SpectrumSnapshot:
    """Quiet lows with a loud, dense top band (qualifies as a transient)."""
    bins = np.zeros(window_size // 2, dtype=np.uint8)
    start = int(len(bins) * 0.85)
    bins[start:] = 120
    bins[-1] = 250
    return make_snapshot(bins, window_size=window_size)


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def silent_snapshot() -> SpectrumSnapshot:
    return SpectrumSnapshot.silent(SNAPSHOT_SR, SNAPSHOT_WINDOW)


@pytest.fixture
def loud_snapshot() -> SpectrumSnapshot:
    """Every bin at 200: loud enough to flag a beat."""
    return make_snapshot(fill=200)


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def click_track(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a simple click track at 120 BPM.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0
    samples_per_beat = int(sample_rate * 60 / 120)
    total_samples = int(sample_rate * duration)

    y = np.zeros(total_samples, dtype=np.float32)
    click_duration = int(sample_rate * 0.01)  # 10ms click
    for beat_start in range(0, total_samples, samples_per_beat):
        click_end = min(beat_start + click_duration, total_samples)
        decay = np.exp(-np.linspace(0, 5, click_end - beat_start))
        y[beat_start:click_end] = 0.8 * decay

    return y, sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path
