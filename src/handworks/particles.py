"""Firework particles and a twinkling starfield.

The simulation is stylized rather than physical: per-frame velocity
damping, constant gravity, and linear alpha decay. All randomness comes
from an injectable numpy Generator so bursts can be reproduced in tests.

Usage:
    system = ParticleSystem(rng=np.random.default_rng(42))
    system.spawn_burst(320, 240)
    # Every frame:
    system.advance_and_render(surface, surface.width, surface.height)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from handworks.surface import CompositeMode, Surface

logger = logging.getLogger("handworks.particles")

PALETTE = [
    "#ff0040",  # red
    "#00ff80",  # green
    "#4000ff",  # blue
    "#ffff00",  # yellow
    "#ff8000",  # orange
    "#ff00ff",  # magenta
    "#00ffff",  # cyan
    "#ffffff",  # white
]

GRAVITY = 0.15
FRICTION = 0.96
TRAIL_ALPHA = 0.2
STAR_COUNT = 150
DISSIPATE_DECAY = 0.1
DISSIPATE_BOOST = 1.1

STAR_MIN_OPACITY = 0.2
STAR_MAX_OPACITY = 1.0

# Tolerance for "alpha has reached zero" after float accumulation
ALPHA_EPSILON = 1e-9


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    color: str
    alpha: float = 1.0
    radius: float = 2.0
    decay: float = 0.01
    life: float = 1.0
    max_life: float = 1.0

    @property
    def alive(self) -> bool:
        return self.alpha > ALPHA_EPSILON


@dataclass
class Star:
    x: float
    y: float
    size: float
    opacity: float
    twinkle_speed: float

    def twinkle(self):
        """Step opacity and bounce off the [0.2, 1.0] band."""
        self.opacity += self.twinkle_speed
        if self.opacity > STAR_MAX_OPACITY:
            self.twinkle_speed = -abs(self.twinkle_speed)
        elif self.opacity < STAR_MIN_OPACITY:
            self.twinkle_speed = abs(self.twinkle_speed)


class ParticleSystem:
    """Owns live particles and background stars.

    Particles are created in bursts, updated and drawn once per frame,
    and removed as soon as their alpha runs out. Stars live for the whole
    session and are created lazily at the first known surface size.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        gravity: float = GRAVITY,
        friction: float = FRICTION,
        trail_alpha: float = TRAIL_ALPHA,
        star_count: int = STAR_COUNT,
        palette: Optional[list[str]] = None,
        max_particles: Optional[int] = None,
    ):
        self.rng = rng or np.random.default_rng()
        self.gravity = gravity
        self.friction = friction
        self.trail_alpha = trail_alpha
        self.star_count = star_count
        self.palette = list(palette or PALETTE)
        self.max_particles = max_particles

        self.particles: list[Particle] = []
        self.stars: list[Star] = []
        self._bursts = 0

    def _pick_color(self) -> str:
        return self.palette[int(self.rng.integers(len(self.palette)))]

    def spawn_burst(self, x: float, y: float):
        """Add one radial burst of 80-119 particles at (x, y)."""
        count = 80 + int(self.rng.integers(0, 40))
        base_color = self._pick_color()
        # Half the bursts are multicolored, the rest share one color
        mixed = bool(self.rng.random() < 0.5)

        for _ in range(count):
            speed = self.rng.uniform(2.0, 10.0)
            angle = self.rng.uniform(0.0, 2.0 * math.pi)
            self.particles.append(Particle(
                x=float(x),
                y=float(y),
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
                color=self._pick_color() if mixed else base_color,
                alpha=1.0,
                radius=float(self.rng.uniform(1.0, 4.0)),
                decay=float(self.rng.uniform(0.005, 0.02)),
                life=1.0,
                max_life=1.0,
            ))

        self._bursts += 1
        logger.debug(
            "Burst at (%.0f, %.0f): %d particles, %s",
            x, y, count, "mixed" if mixed else base_color,
        )

        if self.max_particles is not None and len(self.particles) > self.max_particles:
            # Oldest particles sit at the front of the list
            del self.particles[:len(self.particles) - self.max_particles]

    def dissipate(self):
        """Make every live particle flash outward and fade within ~10 frames."""
        for p in self.particles:
            p.decay = DISSIPATE_DECAY
            p.vx *= DISSIPATE_BOOST
            p.vy *= DISSIPATE_BOOST
        logger.debug("Dissipating %d particles", len(self.particles))

    def init_stars(self, width: int, height: int):
        """Scatter a fresh starfield over a width x height area."""
        self.stars = []
        for _ in range(self.star_count):
            speed = self.rng.uniform(0.005, 0.025)
            if self.rng.random() < 0.5:
                speed = -speed
            self.stars.append(Star(
                x=float(self.rng.uniform(0, width)),
                y=float(self.rng.uniform(0, height)),
                size=float(self.rng.uniform(0.5, 2.5)),
                opacity=float(self.rng.uniform(STAR_MIN_OPACITY, STAR_MAX_OPACITY)),
                twinkle_speed=float(speed),
            ))

    def advance_and_render(self, surface: Surface, width: int, height: int):
        """Advance one frame of simulation and draw it onto `surface`."""
        if not self.stars:
            self.init_stars(width, height)

        # Translucent black instead of a hard clear leaves motion trails
        surface.reset_state()
        surface.fill_rect(0, 0, width, height, "#000000", alpha=self.trail_alpha)

        for star in self.stars:
            star.twinkle()
            surface.fill_circle(star.x, star.y, star.size, "#ffffff", alpha=abs(star.opacity))

        surface.composite = CompositeMode.LIGHTER
        # Reverse sweep: removing index i never shifts an unvisited particle
        for i in range(len(self.particles) - 1, -1, -1):
            p = self.particles[i]

            p.x += p.vx
            p.y += p.vy
            p.vx *= self.friction
            p.vy *= self.friction
            p.vy += self.gravity
            p.alpha -= p.decay
            p.life = p.alpha

            surface.global_alpha = max(0.0, p.alpha)
            surface.fill_circle(p.x, p.y, p.radius, p.color)

            if not p.alive:
                del self.particles[i]

        surface.reset_state()

    def clear(self):
        self.particles.clear()

    @property
    def particle_count(self) -> int:
        return len(self.particles)

    @property
    def burst_count(self) -> int:
        return self._bursts
