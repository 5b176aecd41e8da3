"""
Particle field renderer.

Paints onto a persistent pygame Surface so each frame overlays the last:
- Low-alpha diagonal gradient wash hued from the key (trails, slow drift)
- Particle discs sized, tinted and faded by their spectrum slice
- Faint links between nearby particles, reach widening with mids
- A brief white flash on crash transients

Also carries the simpler waveform and spectrum-bar modes.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pygame
import pygame.gfxdraw

from pulsefield.core.analyzer import FeatureSet
from pulsefield.visualizers.colorgrade import (
    DEFAULT_ACCENT,
    AccentColor,
    hsl_to_rgb,
)
from pulsefield.visualizers.particles import Particle, sample_particle_energy

RENDER_MODES = ("particles", "waveform", "spectrum")


@dataclass
class RenderConfig:
    """Configuration for the renderer."""

    width: int = 1280
    height: int = 720
    mode: str = "particles"  # "particles", "waveform", "spectrum"

    # Background wash
    wash_alpha: float = 0.12
    wash_bass_alpha: float = 0.08

    # Links
    link_distance: float = 18.0
    link_mid_reach: float = 8.0

    # Crash flash
    flash_alpha: float = 0.18

    background_color: tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self):
        if self.mode not in RENDER_MODES:
            raise ValueError(f"unknown render mode {self.mode!r}, expected one of {RENDER_MODES}")


class ParticleRenderer:
    """
    Draws the particle field and its backdrop.

    Reads particles and features only; all drawing happens here.
    """

    def __init__(self, config: RenderConfig | None = None):
        self.config = config or RenderConfig()
        self.accent: AccentColor = DEFAULT_ACCENT
        self.sensitivity = 5.0
        self.surface: pygame.Surface | None = None
        self._gradient_t: np.ndarray | None = None
        self.resize(self.config.width, self.config.height)

    def resize(self, width: int, height: int):
        """Reallocate the canvas, keeping whatever fits of the old picture."""
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas dimensions must be positive, got {width}x{height}")
        cfg = self.config
        cfg.width, cfg.height = width, height

        previous = self.surface
        self.surface = pygame.Surface((width, height))
        self.surface.fill(cfg.background_color)
        if previous is not None:
            self.surface.blit(previous, (0, 0))

        # Projection of each pixel onto the top-left to bottom-right diagonal,
        # laid out (width, height) to match surfarray
        x = np.arange(width, dtype=np.float32)[:, None]
        y = np.arange(height, dtype=np.float32)[None, :]
        self._gradient_t = np.clip((x * width + y * height) / float(width ** 2 + height ** 2), 0.0, 1.0)

    def clear(self):
        self.surface.fill(self.config.background_color)

    def _paint_wash(self, features: FeatureSet, key_hue: float):
        cfg = self.config
        bass_level = features.bass / 255.0
        treble_level = features.treble / 255.0

        start = np.array(hsl_to_rgb(key_hue, 60, 7 + 4 * bass_level), dtype=np.float32)
        end = np.array(hsl_to_rgb(key_hue + 60, 60, 9 + 4 * treble_level), dtype=np.float32)

        t = self._gradient_t[:, :, None]
        pixels = (start * (1.0 - t) + end * t).astype(np.uint8)
        wash = pygame.surfarray.make_surface(pixels)
        wash.set_alpha(int(255 * (cfg.wash_alpha + cfg.wash_bass_alpha * bass_level)))
        self.surface.blit(wash, (0, 0))

    def _draw_particles(self, particles: Sequence[Particle], features: FeatureSet):
        bins = features.spectrum.bins if features.spectrum is not None else np.zeros(0, dtype=np.uint8)
        for i, p in enumerate(particles):
            energy, bass_energy = sample_particle_energy(bins, i)
            radius = p.size + energy * 1.2 + bass_energy * 1.2
            color = hsl_to_rgb(p.hue + energy * 80 + features.bass / 2.0, 100, 35 + 15 * energy)
            alpha = int(255 * (0.32 + 0.18 * energy + 0.08 * bass_energy))
            pygame.gfxdraw.filled_circle(
                self.surface,
                int(p.x),
                int(p.y),
                max(1, int(round(radius))),
                (*color, alpha),
            )

    def link_pairs(self, particles: Sequence[Particle], mid: float) -> list[tuple[int, int]]:
        """Index pairs (i < j) closer than the mid-widened link distance."""
        if len(particles) < 2:
            return []
        cfg = self.config
        threshold = cfg.link_distance + cfg.link_mid_reach * (mid / 255.0)

        pos = np.array([(p.x, p.y) for p in particles], dtype=np.float64)
        delta = pos[:, None, :] - pos[None, :, :]
        dist = np.sqrt((delta ** 2).sum(axis=-1))
        i_idx, j_idx = np.nonzero(np.triu(dist < threshold, k=1))
        return list(zip(i_idx.tolist(), j_idx.tolist()))

    def _draw_links(self, particles: Sequence[Particle], features: FeatureSet, key_hue: float):
        color = hsl_to_rgb(key_hue, 100, 60)
        alpha = int(255 * (0.06 + 0.06 * (features.treble / 255.0)))
        rgba = (*color, max(1, alpha))
        for i, j in self.link_pairs(particles, features.mid):
            a, b = particles[i], particles[j]
            pygame.gfxdraw.line(self.surface, int(a.x), int(a.y), int(b.x), int(b.y), rgba)

    def _flash(self):
        flash = pygame.Surface(self.surface.get_size())
        flash.fill((255, 255, 255))
        flash.set_alpha(int(255 * self.config.flash_alpha))
        self.surface.blit(flash, (0, 0))

    def render(
        self,
        particles: Sequence[Particle],
        features: FeatureSet,
        key_hue: float,
        is_transient: bool,
    ) -> pygame.Surface:
        """Render one particle frame onto the persistent surface and return it."""
        self._paint_wash(features, key_hue)
        self._draw_particles(particles, features)
        self._draw_links(particles, features, key_hue)
        if is_transient:
            self._flash()
        return self.surface

    def render_waveform(self, features: FeatureSet) -> pygame.Surface:
        """Time-domain trace across the full width in the accent color."""
        cfg = self.config
        self.clear()
        if features.spectrum is None:
            return self.surface
        samples = features.spectrum.waveform.astype(np.float32)
        xs = np.linspace(0, cfg.width, len(samples), endpoint=False)
        ys = samples / 128.0 * cfg.height / 2.0
        points = list(zip(xs.tolist(), ys.tolist()))
        points.append((float(cfg.width), cfg.height / 2.0))
        if len(points) >= 2:
            pygame.draw.lines(self.surface, self.accent.rgb, False, points, 3)
        return self.surface

    def render_spectrum(self, features: FeatureSet) -> pygame.Surface:
        """Bars rising from the bottom edge, height scaled by sensitivity."""
        cfg = self.config
        self.clear()
        if features.spectrum is None:
            return self.surface
        bins = features.spectrum.bins
        bar_width = cfg.width / len(bins) * 2.5
        x = 0.0
        for value in bins.tolist():
            if x >= cfg.width:
                break
            bar_height = value * self.sensitivity
            if bar_height > 0:
                rect = pygame.Rect(int(x), int(cfg.height - bar_height), max(1, int(bar_width)), int(bar_height))
                self.surface.fill(self.accent.rgb, rect)
            x += bar_width + 1
        return self.surface

    def surface_to_array(self) -> np.ndarray:
        """Current canvas as an (H, W, 3) uint8 array for video encoding."""
        # pygame uses (width, height) but numpy expects (height, width)
        return np.transpose(pygame.surfarray.array3d(self.surface), (1, 0, 2)).copy()
