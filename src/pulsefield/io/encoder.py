"""
FFmpeg video encoder.

Streams raw RGB frames into ffmpeg's stdin and optionally muxes the
source audio, so rendered frames never touch the disk as images.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable

import numpy as np

logger = logging.getLogger(__name__)

# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def build_ffmpeg_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    audio_path: Path | None = None,
    quality: str = "medium",
    duration: float | None = None,
) -> list[str]:
    """Assemble the ffmpeg argument list for a raw rgb24 pipe."""
    if quality not in QUALITY_PRESETS:
        raise ValueError(f"unknown quality {quality!r}, expected one of {sorted(QUALITY_PRESETS)}")
    preset, crf, pix_fmt = QUALITY_PRESETS[quality]

    cmd = [
        "ffmpeg", "-y",
        # Keep stderr small; it is only read after the last frame
        "-loglevel", "error",
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
    ]
    if audio_path is not None:
        cmd += ["-i", str(audio_path)]

    cmd += ["-c:v", "libx264", "-preset", preset, "-crf", crf, "-pix_fmt", pix_fmt]

    if audio_path is not None:
        cmd += ["-c:a", "aac", "-b:a", "192k", "-shortest"]
    if duration is not None:
        cmd += ["-t", str(duration)]

    cmd.append(str(output_path))
    return cmd


def encode_video(
    frames: Iterable[np.ndarray],
    output_path: Path,
    width: int,
    height: int,
    fps: int = 60,
    audio_path: Path | None = None,
    quality: str = "medium",
    duration: float | None = None,
    total_frames: int | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> Path:
    """
    Encode frames to MP4, muxing ``audio_path`` when given.

    Args:
        frames: Yields (height, width, 3) uint8 arrays.
        output_path: Output MP4 path (parent directories are created).
        quality: "high", "medium" or "fast".
        duration: Hard limit on output length in seconds.
        total_frames: Frame count used for progress reporting.
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the output file.

    Raises:
        RuntimeError: If ffmpeg is missing or exits with an error.
    """
    if not ffmpeg_available():
        raise RuntimeError("ffmpeg not found on PATH")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = build_ffmpeg_command(output_path, width, height, fps, audio_path, quality, duration)
    logger.debug("running %s", " ".join(cmd))

    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
    )

    written = 0
    try:
        for frame in frames:
            if frame.shape != (height, width, 3):
                raise ValueError(f"frame shape {frame.shape} does not match {(height, width, 3)}")
            proc.stdin.write(np.ascontiguousarray(frame, dtype=np.uint8).tobytes())
            written += 1
            if progress_callback and total_frames:
                progress_callback(written, total_frames)
    except BrokenPipeError:
        # ffmpeg died early; its stderr explains why
        pass
    finally:
        proc.stdin.close()

    stderr = proc.stderr.read().decode("utf-8", errors="replace")
    proc.wait()

    if proc.returncode != 0:
        error_lines = [
            line for line in stderr.split("\n")
            if "error" in line.lower() or "invalid" in line.lower()
        ]
        error_msg = "\n".join(error_lines[-5:]) if error_lines else stderr[-500:]
        raise RuntimeError(f"ffmpeg exited with code {proc.returncode}: {error_msg}")

    logger.info("wrote %d frames to %s", written, output_path)
    return output_path
