"""
CLI entry points.

Usage:
    pulsefield <audio_file> [options]        # live window
    pulsefield --mic [options]               # live window on the microphone
    pulsefield-render <audio_file> [options] # MP4 export
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import pygame

from pulsefield.config import PROFILES, EngineConfig
from pulsefield.visualizers.colorgrade import AccentColor
from pulsefield.visualizers.renderer import RENDER_MODES


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    elif current % max(1, total // 20) == 0 or current >= total:
        print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _accent(value: str) -> str:
    try:
        AccentColor.from_hex(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    return value


def _add_engine_arguments(parser: argparse.ArgumentParser, default_profile: str):
    parser.add_argument(
        "-p", "--profile", type=str, default=default_profile,
        choices=sorted(PROFILES),
        help="Canvas profile (low: 720p 30fps, medium: 1080p 60fps, high: 4k 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Canvas width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Canvas height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")
    parser.add_argument(
        "-m", "--mode", type=str, default="particles", choices=RENDER_MODES,
        help="What to draw (default: particles)",
    )
    parser.add_argument(
        "-c", "--accent", type=_accent, default="#00fff7",
        help="Accent color as #rrggbb (default: #00fff7)",
    )
    parser.add_argument(
        "-s", "--sensitivity", type=float, default=5.0,
        help="Particle/bar responsiveness multiplier (default: 5)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible field")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def _engine_config(args: argparse.Namespace) -> EngineConfig:
    return EngineConfig.from_profile(
        args.profile,
        width=args.width,
        height=args.height,
        fps=args.fps,
        mode=args.mode,
        accent=args.accent,
        sensitivity=args.sensitivity,
        seed=args.seed,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pulsefield",
        description="Audio-reactive particle field in a live window",
    )
    parser.add_argument("audio", type=Path, nargs="?", help="Input audio file (wav, mp3, flac, ogg)")
    parser.add_argument("--mic", action="store_true", help="Listen to the default input device instead of a file")
    parser.add_argument("--device", type=str, default=None, help="Input device name or index for --mic")
    _add_engine_arguments(parser, default_profile="low")
    args = parser.parse_args(argv)

    if args.audio is None and not args.mic:
        parser.error("give an audio file or --mic")
    if args.audio is not None and not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        return 1

    _configure_logging(args.verbose)

    from pulsefield.app import run_live
    from pulsefield.scheduler import Scheduler

    device = int(args.device) if args.device is not None and args.device.isdigit() else args.device
    try:
        scheduler = Scheduler(_engine_config(args))
        run_live(None if args.mic else args.audio, scheduler, device=device)
    except (ValueError, RuntimeError, OSError, pygame.error) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def render_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pulsefield-render",
        description="Render an audio-reactive particle video",
    )
    parser.add_argument("audio", type=Path, help="Input audio file (wav, mp3, flac)")
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output MP4 path (default: <audio>_pulsefield.mp4)",
    )
    parser.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )
    parser.add_argument("--max-duration", type=float, default=None, help="Limit output to N seconds")
    parser.add_argument(
        "--glow", type=float, default=0.0,
        help="Bloom intensity 0-1 applied to every frame (default: off)",
    )
    _add_engine_arguments(parser, default_profile="medium")
    args = parser.parse_args(argv)

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        return 1

    _configure_logging(args.verbose)

    from pulsefield.render_video import render_video

    try:
        config = _engine_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    quality = args.quality or PROFILES[args.profile]["quality"]
    output = args.output or args.audio.with_name(f"{args.audio.stem}_pulsefield.mp4")

    print(f"Rendering {args.audio} at {config.width}x{config.height} @ {config.fps}fps ({quality})")
    t0 = time.time()
    try:
        render_video(
            args.audio,
            output,
            config=config,
            quality=quality,
            max_duration=args.max_duration,
            glow=args.glow,
            progress_callback=_progress_bar,
        )
    except (ValueError, RuntimeError, OSError, pygame.error) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    elapsed = time.time() - t0
    file_size_mb = output.stat().st_size / 1024 / 1024
    print(f"\nDone! {file_size_mb:.1f} MB in {elapsed:.1f}s")
    print(f"  Output: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
