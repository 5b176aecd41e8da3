"""
Frame scheduler.

Runs the per-frame pipeline in a fixed order:
drain input events -> read snapshot -> extract features -> beat tracker
-> transient detector -> advance particles -> render.

Input handlers never touch the particle field directly; they post events
into a bounded queue that the next frame drains before the physics step.
"""

import logging
import random
from collections import deque
from dataclasses import dataclass, replace
from typing import Iterator, Union

import pygame

from pulsefield.config import EngineConfig
from pulsefield.core.analyzer import FeatureExtractor, FeatureSet, key_hue
from pulsefield.core.beat import BeatTracker
from pulsefield.core.spectrum import SpectrumSnapshot
from pulsefield.core.transient import TransientDetector
from pulsefield.io.sources import SpectrumSource
from pulsefield.visualizers.colorgrade import AccentColor
from pulsefield.visualizers.particles import ParticleField
from pulsefield.visualizers.renderer import ParticleRenderer, RenderConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


InputEvent = Union[PointerMove, PointerDown, Resize]


class Scheduler:
    """
    Owns every per-session component and drives one frame per ``step``.

    Re-attaching a source rebuilds feature extraction but keeps the
    particles and tracker history.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.cfg = config or EngineConfig()
        cfg = self.cfg

        self.extractor = FeatureExtractor(cfg.features)
        self.beat_tracker = BeatTracker(cfg.beat)
        self.transient_detector = TransientDetector(cfg.transient)

        self.field = ParticleField(
            cfg.particles,
            width=cfg.width,
            height=cfg.height,
            seed=cfg.seed,
            sensitivity=cfg.sensitivity,
        )
        self.field.initialize()
        self.renderer = ParticleRenderer(RenderConfig(width=cfg.width, height=cfg.height, mode=cfg.mode))

        self.rng = random.Random(cfg.seed)
        self.events: deque = deque(maxlen=cfg.event_queue_size)
        self.source: SpectrumSource | None = None
        self.running = False
        self.frame_count = 0
        self.last_features: FeatureSet | None = None
        # Timestamp of the last rendered frame; trackers must never see time run backwards
        self.last_step_ms: float | None = None

        self.accent = AccentColor.from_hex(cfg.accent)
        self.renderer.accent = self.accent
        self.set_sensitivity(cfg.sensitivity)

    # -- wiring ---------------------------------------------------------

    def attach(self, source: SpectrumSource):
        """Connect a new source, closing the previous one."""
        if self.source is not None and self.source is not source:
            self.source.close()
        self.source = source
        self.extractor = FeatureExtractor(self.cfg.features)
        logger.info("attached %s", type(source).__name__)

    def detach(self):
        if self.source is not None:
            self.source.close()
            self.source = None
        self.running = False

    def start(self) -> bool:
        """Begin (or keep) running; False when there is nothing to run on."""
        if self.running:
            return True
        if self.source is None or not self.source.is_active:
            logger.info("no active source; not starting")
            return False
        self.running = True
        return True

    def stop(self):
        self.running = False

    # -- tunables -------------------------------------------------------

    def set_accent(self, color: Union[AccentColor, str]):
        """Recolor every particle and future bursts from the accent hue."""
        if isinstance(color, str):
            color = AccentColor.from_hex(color)
        self.accent = color
        self.renderer.accent = color
        self.field.retint(color.hue)

    def set_sensitivity(self, value: float):
        value = float(value)
        self.sensitivity = value
        self.field.sensitivity = value
        self.renderer.sensitivity = value

    # -- input ----------------------------------------------------------

    def post_event(self, event: InputEvent):
        self.events.append(event)

    def _energy_hint(self, snapshot: SpectrumSnapshot) -> float:
        if snapshot.bin_count == 0:
            return 0.5
        return snapshot.bins[self.rng.randrange(snapshot.bin_count)] / 255.0

    def _drain_events(self, snapshot: SpectrumSnapshot):
        while self.events:
            event = self.events.popleft()
            if isinstance(event, PointerMove):
                self.field.apply_pointer_repulsion(event.x, event.y)
            elif isinstance(event, PointerDown):
                self.field.spawn_burst(
                    event.x,
                    event.y,
                    self.field.cfg.max_burst,
                    self._energy_hint(snapshot),
                    base_hue=self.accent.hue,
                )
            elif isinstance(event, Resize):
                self.field.resize(event.width, event.height)
                self.renderer.resize(event.width, event.height)

    # -- frame loop -----------------------------------------------------

    def step(self, now_ms: float) -> pygame.Surface | None:
        """Run one frame at ``now_ms``; None once the loop has stopped."""
        if not self.running:
            return None

        snapshot = self.source.read() if self.source is not None else None
        if snapshot is None:
            logger.info("source exhausted after %d frames", self.frame_count)
            self.running = False
            return None

        self._drain_events(snapshot)

        features = self.extractor.extract(snapshot)
        tempo = self.beat_tracker.update(features.is_beat, now_ms)
        is_transient = self.transient_detector.update(snapshot, now_ms)
        features = replace(
            features,
            is_transient=is_transient,
            is_accepted_beat=self.beat_tracker.beat_accepted,
            tempo_bpm=tempo,
        )
        hue = key_hue(features.dominant_frequency_hz)

        self.field.advance(features, hue, tempo, now_ms)

        mode = self.renderer.config.mode
        if mode == "waveform":
            surface = self.renderer.render_waveform(features)
        elif mode == "spectrum":
            surface = self.renderer.render_spectrum(features)
        else:
            surface = self.renderer.render(self.field.particles, features, hue, is_transient)

        self.last_features = features
        self.frame_count += 1
        self.last_step_ms = now_ms
        return surface

    def frames(self, fps: int | None = None) -> Iterator[pygame.Surface]:
        """
        Run on a fixed frame clock until the source runs dry.

        The clock carries on from the last rendered frame, so a re-attached
        source keeps the beat and transient rate limits meaningful.
        """
        fps = fps or self.cfg.fps
        start_ms = 0.0 if self.last_step_ms is None else self.last_step_ms + 1000.0 / fps
        self.start()
        index = 0
        while True:
            surface = self.step(start_ms + index * 1000.0 / fps)
            if surface is None:
                return
            yield surface
            index += 1
