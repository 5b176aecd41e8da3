"""
Interactive pygame window.

Translates window input into scheduler events, plays the audio file
through the mixer (so the spectrum follows what you hear) and paces the
loop to the configured frame rate.
"""

import logging
from pathlib import Path

import pygame

from pulsefield.io.sources import FileSpectrumSource, MicrophoneSpectrumSource, SpectrumSource
from pulsefield.scheduler import PointerDown, PointerMove, Resize, Scheduler

logger = logging.getLogger(__name__)


class MixerClock:
    """Playback position of pygame.mixer.music in seconds; infinite once playback ends."""

    def __call__(self) -> float:
        pos = pygame.mixer.music.get_pos()
        return pos / 1000.0 if pos >= 0 else float("inf")


class LiveApp:
    """Runs a Scheduler inside a resizable window until the music stops or the window closes."""

    def __init__(self, scheduler: Scheduler, source: SpectrumSource, title: str = "pulsefield"):
        self.scheduler = scheduler
        self.source = source
        self.title = title
        self.show_overlay = False
        self._font: pygame.font.Font | None = None

    def _start_playback(self):
        if not isinstance(self.source, FileSpectrumSource):
            return
        # pygame.init() already opened the mixer at its default rate
        pygame.mixer.quit()
        pygame.mixer.init(frequency=self.source.sample_rate)
        pygame.mixer.music.load(str(self.source.path))
        pygame.mixer.music.play()
        self.source.clock = MixerClock()

    def _handle(self, event: pygame.event.Event) -> bool:
        """Dispatch one window event; False means quit."""
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                return False
            if event.key == pygame.K_h:
                self.show_overlay = not self.show_overlay
            elif event.key == pygame.K_UP:
                self.scheduler.set_sensitivity(self.scheduler.sensitivity + 1)
            elif event.key == pygame.K_DOWN:
                self.scheduler.set_sensitivity(max(0.0, self.scheduler.sensitivity - 1))
        elif event.type == pygame.MOUSEMOTION:
            self.scheduler.post_event(PointerMove(*event.pos))
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button in (1, 2, 3):
            self.scheduler.post_event(PointerDown(*event.pos))
        elif event.type == pygame.VIDEORESIZE:
            self.scheduler.post_event(Resize(event.w, event.h))
        return True

    def _draw_overlay(self, screen: pygame.Surface):
        features = self.scheduler.last_features
        if features is None:
            return
        text = (
            f"{features.tempo_bpm:.0f} BPM  "
            f"{features.dominant_frequency_hz:.0f} Hz  "
            f"sens {self.scheduler.sensitivity:.0f}"
        )
        screen.blit(self._font.render(text, True, self.scheduler.accent.rgb), (12, 12))

    def run(self) -> int:
        """Open the window and loop. Returns the number of frames shown."""
        cfg = self.scheduler.cfg
        pygame.init()
        pygame.display.set_mode((cfg.width, cfg.height), pygame.RESIZABLE)
        pygame.display.set_caption(self.title)
        self._font = pygame.font.Font(None, 24)
        clock = pygame.time.Clock()
        # Ticks restart with pygame.init(); continue from any earlier session
        base_ms = 0.0 if self.scheduler.last_step_ms is None else self.scheduler.last_step_ms + 1.0

        try:
            self._start_playback()
            self.scheduler.attach(self.source)
            if not self.scheduler.start():
                return 0

            while True:
                if not all(self._handle(event) for event in pygame.event.get()):
                    break
                frame = self.scheduler.step(base_ms + pygame.time.get_ticks())
                if frame is None:
                    break
                screen = pygame.display.get_surface()
                screen.blit(frame, (0, 0))
                if self.show_overlay:
                    self._draw_overlay(screen)
                pygame.display.flip()
                clock.tick(cfg.fps)
        finally:
            self.scheduler.detach()
            if pygame.mixer.get_init():
                pygame.mixer.music.stop()
            pygame.quit()

        logger.info("shown %d frames", self.scheduler.frame_count)
        return self.scheduler.frame_count


def run_live(audio_path: Path | None, scheduler: Scheduler, device: int | str | None = None) -> int:
    """Open a window on an audio file, or on the microphone when ``audio_path`` is None."""
    if audio_path is not None:
        source: SpectrumSource = FileSpectrumSource.from_path(audio_path, fps=scheduler.cfg.fps)
    else:
        source = MicrophoneSpectrumSource(device=device)
        source.start()
    return LiveApp(scheduler, source).run()
