"""
Spectrum sources.

The frame loop pulls one SpectrumSnapshot per frame from a source and never
waits on it. Signal and file sources step through decoded audio (on a frame
clock or an external playback clock); the microphone source keeps a ring
buffer filled from the audio callback thread.
"""

import abc
import logging
import threading
from pathlib import Path
from typing import Callable, Union

import librosa
import numpy as np

from pulsefield.core.spectrum import SpectrumAnalyser, SpectrumSnapshot

logger = logging.getLogger(__name__)


class SpectrumSource(abc.ABC):
    """Supplies one snapshot per frame until it runs dry."""

    @property
    @abc.abstractmethod
    def is_active(self) -> bool:
        pass

    @abc.abstractmethod
    def read(self) -> SpectrumSnapshot | None:
        """Latest snapshot, or None once the source is no longer active."""
        pass

    def close(self):
        pass


class SignalSpectrumSource(SpectrumSource):
    """
    Walks an in-memory mono signal.

    Without a clock, each read advances by ``sample_rate / fps`` samples
    (deterministic, for offline export). With ``clock`` (a callable
    returning playback position in seconds) reads follow that clock.
    """

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: int,
        fps: int = 60,
        fft_size: int = 2048,
        clock: Callable[[], float] | None = None,
    ):
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim > 1:
            # librosa layout: (channels, samples)
            samples = samples.mean(axis=0)
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.samples = samples
        self.sample_rate = int(sample_rate)
        self.fps = fps
        self.clock = clock
        self.analyser = SpectrumAnalyser(self.sample_rate, fft_size=fft_size)
        self.frame_index = 0
        self._closed = False

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    @property
    def position(self) -> float:
        """Current read position in seconds."""
        if self.clock is not None:
            return max(0.0, float(self.clock()))
        return self.frame_index / self.fps

    @property
    def is_active(self) -> bool:
        return not self._closed and self.position < self.duration

    @property
    def total_frames(self) -> int:
        return int(self.duration * self.fps)

    def read(self) -> SpectrumSnapshot | None:
        if not self.is_active:
            return None
        end = int(self.position * self.sample_rate)
        start = max(0, end - self.analyser.fft_size)
        snapshot = self.analyser.analyse(self.samples[start:end])
        self.frame_index += 1
        return snapshot

    def close(self):
        self._closed = True


class FileSpectrumSource(SignalSpectrumSource):
    """SignalSpectrumSource over a decoded audio file."""

    def __init__(self, path: Path, samples: np.ndarray, sample_rate: int, **kwargs):
        super().__init__(samples, sample_rate, **kwargs)
        self.path = path

    @classmethod
    def from_path(cls, audio_path: Union[str, Path], **kwargs) -> "FileSpectrumSource":
        """
        Decode an audio file (wav, mp3, flac) at its native rate, mono.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If no audio backend can decode it.
        """
        path = Path(audio_path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")
        try:
            y, sr = librosa.load(path, sr=None, mono=True)
        except Exception as e:
            # soundfile and audioread raise unrelated types for the same failure
            raise ValueError(f"Could not decode {path}: {e}") from e
        if len(y) == 0:
            raise ValueError(f"No audio samples in {path}")
        logger.info("loaded %s (%.1fs @ %d Hz)", path.name, len(y) / sr, sr)
        return cls(path, y, sr, **kwargs)


class MicrophoneSpectrumSource(SpectrumSource):
    """
    Live input through sounddevice.

    The PortAudio callback runs on its own thread and only appends to the
    ring buffer under the lock; ``read`` copies the newest window out.
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        fft_size: int = 2048,
        device: int | str | None = None,
        block_size: int = 512,
    ):
        self.sample_rate = sample_rate
        self.device = device
        self.block_size = block_size
        self.analyser = SpectrumAnalyser(sample_rate, fft_size=fft_size)

        self._ring = np.zeros(fft_size, dtype=np.float32)
        self._lock = threading.Lock()
        self._stream = None

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.warning("input stream status: %s", status)
        block = indata.mean(axis=1) if indata.ndim > 1 else indata
        with self._lock:
            n = min(len(block), len(self._ring))
            self._ring = np.roll(self._ring, -n)
            self._ring[-n:] = block[-n:]

    def start(self):
        if self._stream is not None:
            return
        import sounddevice as sd

        try:
            stream = sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise RuntimeError(f"Could not open input device {self.device!r}: {e}") from e
        self._stream = stream
        logger.info("microphone stream started (%d Hz)", self.sample_rate)

    @property
    def is_active(self) -> bool:
        return self._stream is not None and self._stream.active

    def read(self) -> SpectrumSnapshot | None:
        if not self.is_active:
            return None
        with self._lock:
            block = self._ring.copy()
        return self.analyser.analyse(block)

    def close(self):
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("microphone stream closed")
