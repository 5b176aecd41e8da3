"""
Offline rendering of an audio file to MP4.

Runs the same frame pipeline as the live window, but on a fixed frame
clock so the output is frame-accurate and independent of machine speed.
"""

import logging
from pathlib import Path
from typing import Callable, Iterator

import numpy as np

from pulsefield.config import EngineConfig
from pulsefield.io.encoder import encode_video
from pulsefield.io.sources import FileSpectrumSource
from pulsefield.scheduler import Scheduler
from pulsefield.visualizers.colorgrade import add_glow

logger = logging.getLogger(__name__)


def iter_frames(
    scheduler: Scheduler,
    max_frames: int | None = None,
    glow: float = 0.0,
) -> Iterator[np.ndarray]:
    """Yield (H, W, 3) uint8 frames from an attached scheduler."""
    for index, _ in enumerate(scheduler.frames()):
        if max_frames is not None and index >= max_frames:
            scheduler.stop()
            return
        frame = scheduler.renderer.surface_to_array()
        if glow > 0:
            frame = add_glow(frame, intensity=glow)
        yield frame


def render_video(
    audio_path: Path,
    output_path: Path,
    config: EngineConfig | None = None,
    quality: str = "medium",
    max_duration: float | None = None,
    glow: float = 0.0,
    progress_callback: Callable[[int, int], None] | None = None,
) -> Path:
    """
    Render ``audio_path`` to ``output_path`` with the original audio muxed in.

    Args:
        config: Engine settings (canvas, fps, accent, sensitivity, seed).
        quality: Encoder preset: "high", "medium" or "fast".
        max_duration: Stop after this many seconds.
        glow: Bloom intensity (0 disables).
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the written file.
    """
    cfg = config or EngineConfig()
    source = FileSpectrumSource.from_path(audio_path, fps=cfg.fps)

    total_frames = source.total_frames
    if max_duration is not None:
        total_frames = min(total_frames, int(max_duration * cfg.fps))
    logger.info(
        "rendering %d frames at %dx%d @ %dfps", total_frames, cfg.width, cfg.height, cfg.fps
    )

    scheduler = Scheduler(cfg)
    scheduler.attach(source)
    try:
        return encode_video(
            iter_frames(scheduler, max_frames=total_frames, glow=glow),
            output_path,
            width=cfg.width,
            height=cfg.height,
            fps=cfg.fps,
            audio_path=Path(audio_path),
            quality=quality,
            duration=max_duration,
            total_frames=total_frames,
            progress_callback=progress_callback,
        )
    finally:
        scheduler.detach()
