"""Audio sources and video output."""

from pulsefield.io.encoder import encode_video
from pulsefield.io.sources import (
    FileSpectrumSource,
    MicrophoneSpectrumSource,
    SignalSpectrumSource,
    SpectrumSource,
)

__all__ = [
    "FileSpectrumSource",
    "MicrophoneSpectrumSource",
    "SignalSpectrumSource",
    "SpectrumSource",
    "encode_video",
]
