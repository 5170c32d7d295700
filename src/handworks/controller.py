"""Per-frame animation driver.

`AnimationController` turns the latest hand sample into particle events
(an open hand launches a burst, a fist dissipates everything) and runs the
particle system once per frame. `FrameLoop` is the scheduler that calls it
at a fixed target rate until stopped.

Usage:
    controller = AnimationController(ParticleSystem(), slot=slot,
                                     surface_provider=lambda: surface)
    loop = FrameLoop(controller.step, fps=60)
    loop.run()          # blocks until loop.stop()
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Optional

from handworks.gestures import GestureType, HandSample
from handworks.particles import ParticleSystem
from handworks.surface import Surface, SurfaceUnavailable
from handworks.tracking import SampleSlot

logger = logging.getLogger("handworks.controller")

EXPLOSION_DEBOUNCE = 0.2  # seconds
HAND_LOST_RESET = 0.5  # seconds

CURSOR_RADIUS = 10
CURSOR_THICKNESS = 2
CURSOR_OPEN_COLOR = "#ffffff"
CURSOR_IDLE_COLOR = "#444444"


class AnimationController:
    """Detects gesture edges and drives the particle system each frame.

    Only rising edges act: NEUTRAL → OPEN spawns a burst at the hand,
    anything → CLOSED dissipates live particles. Bursts are debounced so
    classifier flicker around the OPEN threshold does not double-fire.

    When no hand is seen for longer than `reset_after` seconds the last
    gesture is forgotten, so the next open hand counts as a new edge. A
    single dropped frame never resets it. Pass `reset_after=None` to keep
    the last gesture forever.
    """

    def __init__(
        self,
        particles: ParticleSystem,
        slot: Optional[SampleSlot] = None,
        surface_provider: Optional[Callable[[], Optional[Surface]]] = None,
        viewport: Optional[Callable[[], Optional[tuple[int, int]]]] = None,
        debounce: float = EXPLOSION_DEBOUNCE,
        reset_after: Optional[float] = HAND_LOST_RESET,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.particles = particles
        self.slot = slot
        self.surface_provider = surface_provider
        self.viewport = viewport
        self.debounce = debounce
        self.reset_after = reset_after
        self._clock = clock

        self.last_gesture = GestureType.UNKNOWN
        self.last_explosion: Optional[float] = None
        self._last_seen: Optional[float] = None
        self._skipped_frames = 0

    def on_frame(
        self,
        now: float,
        sample: Optional[HandSample],
        surface: Optional[Surface],
        viewport: Optional[tuple[int, int]] = None,
    ) -> bool:
        """Run one animation frame. Returns False if the frame was skipped."""
        if surface is None:
            self._skipped_frames += 1
            logger.debug("No surface, skipping frame at %.3f", now)
            return False

        if viewport is not None:
            width, height = viewport
            if width > 0 and height > 0 and (surface.width, surface.height) != (width, height):
                logger.debug("Resizing surface to %dx%d", width, height)
                surface.resize(width, height)

        self.particles.advance_and_render(surface, surface.width, surface.height)

        if sample is None:
            self._handle_absent(now)
            return True

        self._last_seen = now
        screen_x = sample.x * surface.width
        screen_y = sample.y * surface.height
        gesture = sample.gesture

        cursor_color = CURSOR_OPEN_COLOR if gesture is GestureType.OPEN else CURSOR_IDLE_COLOR
        surface.stroke_circle(screen_x, screen_y, CURSOR_RADIUS, cursor_color, CURSOR_THICKNESS)

        if gesture is GestureType.OPEN and self.last_gesture is not GestureType.OPEN:
            if self.last_explosion is None or now - self.last_explosion >= self.debounce:
                self.particles.spawn_burst(screen_x, screen_y)
                self.last_explosion = now
            else:
                logger.debug("Burst debounced (%.3fs since last)", now - self.last_explosion)

        if gesture is GestureType.CLOSED and self.last_gesture is not GestureType.CLOSED:
            self.particles.dissipate()

        self.last_gesture = gesture
        return True

    def _handle_absent(self, now: float):
        if self.reset_after is None or self._last_seen is None:
            return
        if now - self._last_seen > self.reset_after and self.last_gesture is not GestureType.UNKNOWN:
            logger.debug("Hand lost for %.2fs, resetting gesture state", now - self._last_seen)
            self.last_gesture = GestureType.UNKNOWN

    def step(self, now: Optional[float] = None) -> bool:
        """Pull the latest sample, surface and viewport, then run a frame."""
        now = self._clock() if now is None else now
        sample = self.slot.get() if self.slot is not None else None

        surface = None
        if self.surface_provider is not None:
            try:
                surface = self.surface_provider()
            except SurfaceUnavailable as e:
                logger.debug("Surface unavailable: %s", e)

        viewport = None
        if surface is not None and self.viewport is not None:
            viewport = self.viewport()
        return self.on_frame(now, sample, surface, viewport)

    def reset(self):
        """Forget gesture history and drop all particles."""
        self.last_gesture = GestureType.UNKNOWN
        self.last_explosion = None
        self._last_seen = None
        self.particles.clear()

    @property
    def skipped_frames(self) -> int:
        return self._skipped_frames


class FrameLoop:
    """Calls `callback` once per frame at a target rate until stopped.

    Runs in the caller's thread. `stop()` may be called from the callback
    itself or from another thread; once it returns no further callback
    starts.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        fps: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.callback = callback
        self.interval = 1.0 / fps
        self._clock = clock
        self._sleep = sleep
        self._stop = threading.Event()
        self._stop.set()
        self._frame_count = 0
        self._frame_times: deque = deque(maxlen=60)
        # Reentrant so the callback itself may call stop()
        self._lock = threading.RLock()

    def start(self):
        self._stop.clear()
        logger.info("Frame loop started (%.0f fps target)", 1.0 / self.interval)

    def stop(self):
        """Stop the loop, waiting for an in-flight frame on another thread."""
        with self._lock:
            if not self._stop.is_set():
                logger.info("Frame loop stopped after %d frames", self._frame_count)
            self._stop.set()

    @property
    def running(self) -> bool:
        return not self._stop.is_set()

    def step(self) -> bool:
        """Run a single frame if the loop is running."""
        with self._lock:
            if not self.running:
                return False
            self._frame_times.append(self._clock())
            self._frame_count += 1
            self.callback()
            return True

    def run(self, max_frames: Optional[int] = None):
        """Block, stepping every frame interval until stopped."""
        self.start()
        try:
            next_frame = self._clock()
            while self.running:
                if max_frames is not None and self._frame_count >= max_frames:
                    break
                self.step()
                next_frame += self.interval
                delay = next_frame - self._clock()
                if delay > 0:
                    self._sleep(delay)
                else:
                    # Fell behind; don't try to catch up with a burst of frames
                    next_frame = self._clock()
        finally:
            self.stop()

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def fps(self) -> float:
        """Measured frame rate over the last second or so."""
        if len(self._frame_times) < 2:
            return 0.0
        span = self._frame_times[-1] - self._frame_times[0]
        return (len(self._frame_times) - 1) / span if span > 0 else 0.0
