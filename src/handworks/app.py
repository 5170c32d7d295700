"""Live HandWorks session: webcam in, fireworks window out."""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from handworks.config import AppConfig
from handworks.controller import AnimationController, FrameLoop
from handworks.particles import ParticleSystem
from handworks.surface import OpenCVSurface, SurfaceUnavailable
from handworks.tracking import HandDetector, SampleSlot, TrackingWorker

logger = logging.getLogger("handworks.app")

FONT = cv2.FONT_HERSHEY_SIMPLEX
TITLE_COLOR = (247, 85, 168)  # BGR purple-pink
TEXT_COLOR = (255, 255, 255)
MUTED_COLOR = (140, 140, 140)
OPEN_COLOR = (94, 197, 34)
CLOSED_COLOR = (68, 68, 239)


def draw_hud(frame: np.ndarray, ready: bool, fps: float, particle_count: int) -> np.ndarray:
    """Title, controls and stats drawn over a finished frame."""
    h, w = frame.shape[:2]

    cv2.putText(frame, "HandWorks", (20, 40), FONT, 1.0, TITLE_COLOR, 2, cv2.LINE_AA)
    cv2.putText(frame, "Interactive Gesture Fireworks", (20, 65), FONT, 0.5, MUTED_COLOR, 1, cv2.LINE_AA)

    if ready:
        x = max(20, w - 260)
        cv2.putText(frame, "CONTROLS", (x, 35), FONT, 0.4, MUTED_COLOR, 1, cv2.LINE_AA)
        cv2.circle(frame, (x + 4, 56), 4, OPEN_COLOR, -1, cv2.LINE_AA)
        cv2.putText(frame, "Open hand to explode", (x + 16, 61), FONT, 0.5, TEXT_COLOR, 1, cv2.LINE_AA)
        cv2.circle(frame, (x + 4, 80), 4, CLOSED_COLOR, -1, cv2.LINE_AA)
        cv2.putText(frame, "Closed fist to clear", (x + 16, 85), FONT, 0.5, TEXT_COLOR, 1, cv2.LINE_AA)

    stats = f"{fps:.0f} FPS | {particle_count} particles"
    (tw, _), _ = cv2.getTextSize(stats, FONT, 0.4, 1)
    cv2.putText(frame, stats, (w - tw - 12, h - 12), FONT, 0.4, MUTED_COLOR, 1, cv2.LINE_AA)
    return frame


def draw_preview(frame: np.ndarray, preview: Optional[np.ndarray], width: int, margin: int = 16) -> np.ndarray:
    """Paste the mirrored camera preview into the bottom-left corner.

    Shows a placeholder until the first camera frame arrives.
    """
    h, w = frame.shape[:2]
    pw = min(width, w - 2 * margin)
    ph = pw * 3 // 4
    if pw <= 0 or ph <= 0 or ph > h - 2 * margin:
        return frame

    y0, x0 = h - margin - ph, margin
    if preview is None:
        frame[y0:y0 + ph, x0:x0 + pw] = (24, 24, 24)
        cv2.putText(frame, "INITIALIZING VISION", (x0 + 12, y0 + ph // 2), FONT, 0.4, MUTED_COLOR, 1, cv2.LINE_AA)
    else:
        frame[y0:y0 + ph, x0:x0 + pw] = cv2.resize(preview, (pw, ph), interpolation=cv2.INTER_AREA)
        cv2.putText(frame, "PREVIEW", (x0 + 6, y0 + ph - 6), FONT, 0.35, MUTED_COLOR, 1, cv2.LINE_AA)

    cv2.rectangle(frame, (x0, y0), (x0 + pw, y0 + ph), (80, 80, 80), 1)
    return frame


class HandWorksApp:
    """Wires the tracking worker, animation controller and OpenCV window.

    Animation and window events run on the calling thread; tracking runs on
    the worker's thread and hands over samples through a SampleSlot.
    """

    def __init__(self, config: Optional[AppConfig] = None, worker: Optional[TrackingWorker] = None):
        self.config = config or AppConfig()
        cfg = self.config

        self.slot = SampleSlot()
        self.surface = OpenCVSurface(cfg.window_width, cfg.window_height)
        self.particles = ParticleSystem(
            rng=np.random.default_rng(cfg.seed),
            gravity=cfg.gravity,
            friction=cfg.friction,
            trail_alpha=cfg.trail_alpha,
            star_count=cfg.star_count,
            max_particles=cfg.max_particles,
        )
        self.controller = AnimationController(
            self.particles,
            slot=self.slot,
            surface_provider=self._get_surface,
            viewport=self._viewport,
            debounce=cfg.explosion_debounce,
            reset_after=cfg.hand_lost_reset,
        )
        self.loop = FrameLoop(self._frame, fps=cfg.fps)
        self.worker = worker or TrackingWorker(
            self.slot,
            camera=cfg.camera_index,
            width=cfg.camera_width,
            height=cfg.camera_height,
            detector_factory=lambda: HandDetector(
                model_complexity=cfg.model_complexity,
                min_detection_confidence=cfg.min_detection_confidence,
                min_tracking_confidence=cfg.min_tracking_confidence,
            ),
        )
        self._window_open = False

    def _get_surface(self) -> OpenCVSurface:
        if not self._window_open:
            raise SurfaceUnavailable("window is not open")
        return self.surface

    def _viewport(self) -> Optional[tuple[int, int]]:
        if not self._window_open:
            return None
        try:
            _, _, w, h = cv2.getWindowImageRect(self.config.window_name)
        except cv2.error:
            return None
        if w <= 0 or h <= 0:
            return None
        return w, h

    def compose(self) -> np.ndarray:
        """Final display image: animation plus preview and HUD."""
        frame = self.surface.image.copy()
        if self.config.show_preview:
            draw_preview(frame, self.slot.get_frame(), self.config.preview_width)
        if self.config.show_hud:
            draw_hud(frame, self.worker.ready, self.loop.fps, self.particles.particle_count)
        return frame

    def _frame(self):
        name = self.config.window_name
        self.controller.step()
        cv2.imshow(name, self.compose())

        key = cv2.waitKey(1) & 0xFF
        if key in (ord("q"), 27):
            self.loop.stop()
        elif cv2.getWindowProperty(name, cv2.WND_PROP_VISIBLE) < 1:
            self._window_open = False
            self.loop.stop()

    def run(self):
        """Open the window and camera and animate until the user quits."""
        name = self.config.window_name
        cv2.namedWindow(name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(name, self.config.window_width, self.config.window_height)
        self._window_open = True

        try:
            self.worker.start()
            self.loop.run()
        finally:
            self.worker.stop()
            self._window_open = False
            cv2.destroyAllWindows()
            logger.info(
                "Session ended: %d frames, %d bursts",
                self.loop.frame_count, self.particles.burst_count,
            )
