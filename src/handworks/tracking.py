"""Hand tracking boundary: camera + MediaPipe in, HandSample out.

Tracking runs on its own thread at camera speed while the animation runs
at display speed. The two meet in a `SampleSlot`, which only ever holds
the newest sample: older ones are overwritten, never queued.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import cv2
import numpy as np

from handworks.gestures import MIDDLE_MCP, NUM_LANDMARKS, HandSample, classify

try:
    import mediapipe as mp
except ImportError:
    mp = None

logger = logging.getLogger("handworks.tracking")


def make_sample(landmarks: Optional[np.ndarray], timestamp: float) -> Optional[HandSample]:
    """Package one hand's landmarks as a HandSample.

    The position is the middle knuckle with x mirrored, so moving the hand
    right moves the cursor right on a selfie-view camera.
    """
    if landmarks is None:
        return None

    knuckle = np.asarray(landmarks)[MIDDLE_MCP]
    return HandSample(
        x=1.0 - float(knuckle[0]),
        y=float(knuckle[1]),
        gesture=classify(landmarks),
        timestamp=timestamp,
    )


class SampleSlot:
    """Single-slot, last-write-wins hand-off between threads.

    Holds the latest HandSample (or None for "no hand") and, optionally,
    the camera frame it came from for previewing.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sample: Optional[HandSample] = None
        self._frame: Optional[np.ndarray] = None
        self._writes = 0

    def put(self, sample: Optional[HandSample], frame: Optional[np.ndarray] = None):
        with self._lock:
            self._sample = sample
            if frame is not None:
                self._frame = frame
            self._writes += 1

    def get(self) -> Optional[HandSample]:
        with self._lock:
            return self._sample

    def get_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame

    @property
    def write_count(self) -> int:
        with self._lock:
            return self._writes


class HandDetector:
    """Extracts 21 hand landmarks for at most one hand using MediaPipe Hands.

    Each landmark is (x, y, z) with x and y normalized to [0, 1] relative
    to the image dimensions.
    """

    def __init__(
        self,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install 'handworks[tracking]'"
            )

        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame_rgb: np.ndarray) -> Optional[np.ndarray]:
        """Detect a hand and return its landmarks.

        Args:
            frame_rgb: RGB image as numpy array (H, W, 3), uint8.

        Returns:
            Landmark array of shape (21, 3), or None if no hand was found.
        """
        results = self._hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        hand = results.multi_hand_landmarks[0]
        landmarks = np.array(
            [[lm.x, lm.y, lm.z] for lm in hand.landmark],
            dtype=np.float32,
        )
        if landmarks.shape[0] != NUM_LANDMARKS:
            return None
        return landmarks

    def close(self):
        """Release MediaPipe resources."""
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class TrackingWorker:
    """Background thread: camera frame → landmarks → HandSample → slot.

    Usage:
        slot = SampleSlot()
        worker = TrackingWorker(slot, camera=0)
        worker.start()
        ...
        worker.stop()
    """

    def __init__(
        self,
        slot: SampleSlot,
        camera: int = 0,
        width: int = 640,
        height: int = 480,
        detector_factory: Optional[Callable[[], HandDetector]] = None,
        capture_factory: Optional[Callable[[int], "cv2.VideoCapture"]] = None,
        on_ready: Optional[Callable[[], None]] = None,
    ):
        self.slot = slot
        self.camera = camera
        self.width = width
        self.height = height
        self._detector_factory = detector_factory or HandDetector
        self._capture_factory = capture_factory or cv2.VideoCapture
        self._on_ready = on_ready

        self._capture = None
        self._detector: Optional[HandDetector] = None
        self._thread: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._ready = threading.Event()
        self._frames = 0
        self.join_timeout = 2.0

    def start(self):
        """Open the camera and start the tracking thread.

        If anything fails after the camera is opened, the camera and
        detector are released before the error propagates.
        """
        self._capture = self._capture_factory(self.camera)
        try:
            if not self._capture.isOpened():
                raise RuntimeError(f"Could not open camera {self.camera}")
            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

            self._detector = self._detector_factory()
            self._running.set()
            self._thread = threading.Thread(target=self._run, name="handworks-tracking", daemon=True)
            self._thread.start()
        except BaseException:
            self._running.clear()
            self._thread = None
            self._release()
            raise
        logger.info("Camera %d started (%dx%d)", self.camera, self.width, self.height)

    def process(self, frame_bgr: np.ndarray, timestamp: Optional[float] = None) -> Optional[HandSample]:
        """Run detection on one BGR frame and publish the result.

        `timestamp` is the capture time; defaults to now.
        """
        if timestamp is None:
            timestamp = time.monotonic()
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        landmarks = self._detector.detect(frame_rgb)
        sample = make_sample(landmarks, timestamp)
        self.slot.put(sample, frame=cv2.flip(frame_bgr, 1))
        self._frames += 1

        if not self._ready.is_set():
            self._ready.set()
            logger.info("Vision ready")
            if self._on_ready:
                self._on_ready()
        return sample

    def _run(self):
        while self._running.is_set():
            ret, frame = self._capture.read()
            captured_at = time.monotonic()
            if not ret:
                time.sleep(0.01)
                continue
            try:
                self.process(frame, captured_at)
            except Exception:
                logger.exception("Tracking failed on frame %d", self._frames)

    def stop(self):
        """Stop the thread and release the camera and detector.

        If the thread does not finish within the join timeout, the camera
        and detector are left open under it; calling stop() again retries.
        """
        self._running.clear()
        if self._thread is not None:
            self._thread.join(timeout=self.join_timeout)
            if self._thread.is_alive():
                logger.warning(
                    "Tracking thread still running after %.1fs, not releasing camera",
                    self.join_timeout,
                )
                return
            self._thread = None
        self._release()
        logger.info("Tracking stopped after %d frames", self._frames)

    def _release(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        if self._detector is not None:
            self._detector.close()
            self._detector = None

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    @property
    def frame_count(self) -> int:
        return self._frames

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()
