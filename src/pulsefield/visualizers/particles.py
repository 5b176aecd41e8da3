"""
Audio-reactive particle field.

Each particle reads its own slice of the spectrum (index mod bin count),
so the field moves with the music without every particle doing the same
thing. The per-frame step in ``advance``:
- Orbit particles circle a drifting center, staggered and tempo-locked.
- Velocity is applied with an energy-, bass- and rhythm-scaled multiplier.
- Damping tightens during loud bass; walls reflect.
- Accepted beats and crash transients kick, grow and retint particles.
- Sizes breathe with the bass and relax toward a floor.
- The oldest particles are evicted past the population ceiling.
"""

import math
import random
from dataclasses import dataclass
from typing import Iterator, List

import numpy as np

from pulsefield.core.analyzer import FeatureSet


@dataclass
class Particle:
    """A single point in the field."""
    x: float
    y: float
    vx: float
    vy: float
    size: float
    hue: float  # degrees, 0-360
    is_orbiting: bool = False
    orbit_angle: float = 0.0
    orbit_radius: float = 0.0
    serial: int = 0  # insertion order, used for FIFO eviction


@dataclass
class ParticleConfig:
    """Population, kinematics and reactivity settings."""
    count: int = 120
    max_particles: int = 120
    min_size: float = 0.5

    # Seeding
    initial_speed: float = 2.0
    initial_size_range: tuple[float, float] = (0.5, 1.7)
    orbit_probability: float = 0.3
    orbit_radius_range: tuple[float, float] = (10.0, 50.0)

    # Pointer interaction
    repulsion_radius: float = 100.0
    repulsion_strength: float = 0.5
    max_burst: int = 10

    # Motion
    orbit_base_rate: float = 0.008
    damping: float = 0.98
    bass_damping: float = 0.01
    size_decay: float = 0.97
    bass_size_pull: float = 1.2

    # Events
    beat_base_probability: float = 0.012
    crash_probability: float = 0.5
    crash_hue_range: tuple[float, float] = (60.0, 120.0)


def sample_particle_energy(bins: np.ndarray, index: int) -> tuple[float, float]:
    """
    Return (energy, bass_energy) in [0, 1] for the particle at ``index``.

    Energy reads bin ``index mod N``; bass energy reads the bin at 20% of
    that position, keeping it in the low end of the spectrum.
    """
    n = len(bins)
    if n == 0:
        return 0.0, 0.0
    idx = index % n
    return bins[idx] / 255.0, bins[int(idx * 0.2)] / 255.0


def rhythm_modulation(now_ms: float, tempo_bpm: float, index: int) -> float:
    """Tempo-locked oscillation in [0.5, 1.5], phase-shifted per particle."""
    return math.sin(now_ms / 1000.0 * (tempo_bpm / 60.0) + index) * 0.5 + 1.0


class ParticleField:
    """
    Owns the particle list and advances it one frame at a time.

    Local random state keeps seeded fields reproducible.
    """

    def __init__(
        self,
        config: ParticleConfig | None = None,
        width: int = 1280,
        height: int = 720,
        seed: int | None = None,
        sensitivity: float = 5.0,
    ):
        self.cfg = config or ParticleConfig()
        self.rng = random.Random(seed)
        self.width = width
        self.height = height
        self.sensitivity = sensitivity
        self.particles: List[Particle] = []
        self._next_serial = 0

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self.particles)

    def _append(self, p: Particle):
        p.serial = self._next_serial
        self._next_serial += 1
        self.particles.append(p)

    def _enforce_ceiling(self):
        excess = len(self.particles) - self.cfg.max_particles
        if excess > 0:
            del self.particles[:excess]

    def resize(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height

    def initialize(self, count: int | None = None, width: int | None = None, height: int | None = None):
        """Replace the field with ``count`` freshly seeded particles."""
        cfg = self.cfg
        if width is not None or height is not None:
            self.resize(
                self.width if width is None else width,
                self.height if height is None else height,
            )
        count = cfg.count if count is None else count

        self.particles = []
        lo, hi = cfg.initial_size_range
        r_lo, r_hi = cfg.orbit_radius_range
        for _ in range(count):
            self._append(Particle(
                x=self.rng.random() * self.width,
                y=self.rng.random() * self.height,
                vx=(self.rng.random() - 0.5) * cfg.initial_speed,
                vy=(self.rng.random() - 0.5) * cfg.initial_speed,
                size=self.rng.uniform(lo, hi),
                hue=self.rng.random() * 360.0,
                is_orbiting=self.rng.random() < cfg.orbit_probability,
                orbit_angle=self.rng.random() * 2 * math.pi,
                orbit_radius=self.rng.uniform(r_lo, r_hi),
            ))
        self._enforce_ceiling()

    def apply_pointer_repulsion(self, pointer_x: float, pointer_y: float):
        """Push particles within the repulsion radius away from the pointer."""
        radius = self.cfg.repulsion_radius
        strength = self.cfg.repulsion_strength
        for p in self.particles:
            dx = p.x - pointer_x
            dy = p.y - pointer_y
            dist = math.hypot(dx, dy)
            if dist == 0.0 or dist >= radius:
                continue
            # Twice the base strength at the pointer, falling to the base at the rim
            impulse = strength * 2.0 * radius / (dist + radius)
            p.vx += dx / dist * impulse
            p.vy += dy / dist * impulse

    def spawn_burst(self, x: float, y: float, count: int, energy_hint: float, base_hue: float = 180.0) -> int:
        """
        Append up to ``max_burst`` particles at (x, y).

        Args:
            energy_hint: 0-1, usually one random bin at click time.
            base_hue: Accent hue the burst is tinted from.

        Returns:
            Number of particles spawned.
        """
        energy = min(max(float(energy_hint), 0.0), 1.0)
        count = max(0, min(int(count), self.cfg.max_burst))
        for _ in range(count):
            self._append(Particle(
                x=x,
                y=y,
                vx=(self.rng.random() - 0.5) * 6 * (1 + energy),
                vy=(self.rng.random() - 0.5) * 6 * (1 + energy),
                size=self.rng.random() * 6 + 2 + energy * 10,
                hue=(base_hue + energy * 120) % 360.0,
                orbit_radius=self.rng.random() * 60 + 10,
            ))
        self._enforce_ceiling()
        return count

    def retint(self, hue: float):
        for p in self.particles:
            p.hue = hue % 360.0

    def _orbit(self, p: Particle, energy: float, bass_energy: float, tempo_bpm: float, rhythm: float):
        p.orbit_angle += self.cfg.orbit_base_rate + energy * 0.06 + bass_energy * 0.08 + tempo_bpm / 10000.0
        drift = p.orbit_radius * 0.006 * (1 + bass_energy) * rhythm
        p.x += math.cos(p.orbit_angle) * drift
        p.y += math.sin(p.orbit_angle) * drift

    def _reflect(self, p: Particle):
        # Only flip when heading outward so a particle past the edge cannot jitter in place
        if (p.x < 0 and p.vx < 0) or (p.x > self.width and p.vx > 0):
            p.vx = -p.vx
        if (p.y < 0 and p.vy < 0) or (p.y > self.height and p.vy > 0):
            p.vy = -p.vy

    def advance(self, features: FeatureSet, key_hue: float, tempo_bpm: float, now_ms: float):
        """Run one physics step over every particle."""
        cfg = self.cfg
        bins = features.spectrum.bins if features.spectrum is not None else np.zeros(0, dtype=np.uint8)
        bass = features.bass
        beat_probability = cfg.beat_base_probability + bass / 2000.0
        crash_lo, crash_hi = cfg.crash_hue_range

        for i, p in enumerate(self.particles):
            energy, bass_energy = sample_particle_energy(bins, i)
            rhythm = rhythm_modulation(now_ms, tempo_bpm, i)

            if p.is_orbiting:
                self._orbit(p, energy, bass_energy, tempo_bpm, rhythm)

            speed = (0.7 + energy * self.sensitivity * 0.08 + bass_energy * 0.18) * rhythm
            p.x += p.vx * speed
            p.y += p.vy * speed

            damping = cfg.damping - bass_energy * cfg.bass_damping
            p.vx *= damping
            p.vy *= damping

            self._reflect(p)

            if features.is_accepted_beat and self.rng.random() < beat_probability:
                kick = 4 * (1 + bass / 255.0)
                p.vx += (self.rng.random() - 0.5) * kick
                p.vy += (self.rng.random() - 0.5) * kick
                p.size += 0.5 + bass / 400.0
                p.hue = (key_hue + 60 + bass / 8.0) % 360.0

            if features.is_transient and self.rng.random() < cfg.crash_probability:
                p.size += 2
                p.hue = self.rng.uniform(crash_lo, crash_hi)
                p.vx += (self.rng.random() - 0.5) * 8
                p.vy += (self.rng.random() - 0.5) * 8

            p.size = max(cfg.min_size, p.size * cfg.size_decay + cfg.bass_size_pull * bass_energy)

        self._enforce_ceiling()
