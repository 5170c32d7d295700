"""Headless scripted session: no camera, no window.

Feeds synthetic hands through the real classifier, controller and frame
loop on a simulated clock, so a full session can be rendered to an image
in CI or on a machine without a webcam.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from handworks.controller import AnimationController, FrameLoop
from handworks.gestures import GestureType, HandSample
from handworks.particles import ParticleSystem
from handworks.surface import OpenCVSurface
from handworks.tracking import SampleSlot, make_sample

# (start_time, gesture); each entry holds until the next one
DEMO_SCRIPT = [
    (0.0, GestureType.NEUTRAL),
    (0.3, GestureType.OPEN),
    (0.8, GestureType.NEUTRAL),
    (1.1, GestureType.OPEN),
    (1.6, GestureType.CLOSED),
    (2.0, None),  # hand leaves the frame
    (2.8, GestureType.OPEN),
]

_FINGER_ANGLES = [-0.3, -0.1, 0.1, 0.3]  # index, middle, ring, pinky
_KNUCKLE_OFFSETS = [-0.3, 0.0, 0.25, 0.5]


def synthetic_hand(gesture: GestureType, cx: float, cy: float, size: float = 0.1) -> np.ndarray:
    """Build a plausible (21, 3) landmark set for an upright hand.

    The middle knuckle sits at (cx, cy) and the wrist `size` below it, so
    `size` is exactly the hand size the classifier measures.
    """
    lm = np.zeros((21, 3), dtype=np.float32)
    wrist = np.array([cx, cy + size])
    lm[0, :2] = wrist

    if gesture is GestureType.OPEN:
        reach = [2.0, 2.0, 2.0, 2.0]
    elif gesture is GestureType.CLOSED:
        reach = [0.8, 0.8, 0.8, 0.8]
    else:
        reach = [2.0, 2.0, 0.8, 0.8]

    for finger, (angle, offset, r) in enumerate(zip(_FINGER_ANGLES, _KNUCKLE_OFFSETS, reach)):
        mcp_idx = 5 + finger * 4
        knuckle = np.array([cx + offset * size, cy + (0.05 * size if finger != 1 else 0.0)])
        tip = wrist + r * size * np.array([math.sin(angle), -math.cos(angle)])
        for j in range(4):
            lm[mcp_idx + j, :2] = knuckle + (tip - knuckle) * (j / 3)

    index_knuckle = lm[5, :2]
    if gesture is GestureType.OPEN:
        thumb_tip = index_knuckle + np.array([-0.9 * size, 0.2 * size])
    else:
        thumb_tip = index_knuckle + np.array([0.2 * size, 0.0])
    for j in range(1, 5):
        lm[j, :2] = wrist + (thumb_tip - wrist) * (j / 4)

    return lm


def scripted_gesture(t: float) -> Optional[GestureType]:
    current = None
    for start, gesture in DEMO_SCRIPT:
        if t >= start:
            current = gesture
    return current


def scripted_sample(t: float) -> Optional[HandSample]:
    """Hand drifting left to right, making the scripted gesture at time t."""
    gesture = scripted_gesture(t)
    if gesture is None:
        return None
    cx = 0.75 - 0.5 * ((t / 3.5) % 1.0)  # camera space; mirrored on screen
    cy = 0.45 + 0.1 * math.sin(t * 2.0)
    return make_sample(synthetic_hand(gesture, cx, cy), t)


class SimulatedClock:
    """Manual clock whose sleep() just advances time."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.now += seconds


@dataclass
class DemoResult:
    surface: OpenCVSurface
    frames: int
    bursts: int
    particles: int
    duration: float


def run_demo(
    frames: int = 240,
    width: int = 640,
    height: int = 480,
    fps: float = 60.0,
    seed: Optional[int] = 0,
) -> DemoResult:
    """Render `frames` frames of the scripted session."""
    clock = SimulatedClock()
    slot = SampleSlot()
    surface = OpenCVSurface(width, height)
    particles = ParticleSystem(rng=np.random.default_rng(seed))
    controller = AnimationController(
        particles,
        slot=slot,
        surface_provider=lambda: surface,
        clock=clock,
    )

    def frame():
        slot.put(scripted_sample(clock()))
        controller.step()

    loop = FrameLoop(frame, fps=fps, clock=clock, sleep=clock.sleep)
    loop.run(max_frames=frames)

    return DemoResult(
        surface=surface,
        frames=loop.frame_count,
        bursts=particles.burst_count,
        particles=particles.particle_count,
        duration=clock(),
    )
