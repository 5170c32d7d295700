"""Gesture classification from hand landmark geometry.

A hand is classified by how far each fingertip sits from the wrist,
measured in units of the wrist → middle-knuckle distance. Using that
ratio instead of absolute distances makes the thresholds independent of
how close the hand is to the camera.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class GestureType(Enum):
    """Discrete hand state. UNKNOWN means no usable hand."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    NEUTRAL = "NEUTRAL"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class HandSample:
    """Latest hand position and gesture, as seen by the animation."""
    x: float  # normalized, mirrored
    y: float  # normalized
    gesture: GestureType
    timestamp: float


# MediaPipe hand landmark indices
WRIST = 0
THUMB_TIP = 4
INDEX_MCP = 5
MIDDLE_MCP = 9
FINGER_TIPS = [8, 12, 16, 20]  # index, middle, ring, pinky

NUM_LANDMARKS = 21

# Thresholds as multiples of hand size
CURL_RATIO = 1.1
EXTEND_RATIO = 1.3
THUMB_CURL_RATIO = 0.5


def _distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))


def classify(landmarks: Optional[np.ndarray]) -> GestureType:
    """Classify a single hand as open, closed or neutral.

    Args:
        landmarks: Hand landmarks, shape (21, 2) or (21, 3), or None if no
                   hand was found. Only x and y are used.

    Returns:
        The gesture. Missing, short, non-finite or degenerate input
        (wrist on top of the middle knuckle) yields UNKNOWN.
    """
    if landmarks is None:
        return GestureType.UNKNOWN

    points = np.asarray(landmarks, dtype=np.float64)
    if points.ndim != 2 or points.shape[0] < NUM_LANDMARKS or points.shape[1] < 2:
        return GestureType.UNKNOWN

    points = points[:NUM_LANDMARKS, :2]
    if not np.all(np.isfinite(points)):
        return GestureType.UNKNOWN

    wrist = points[WRIST]
    hand_size = _distance(wrist, points[MIDDLE_MCP])
    if hand_size <= 0.0:
        return GestureType.UNKNOWN

    curl_threshold = hand_size * CURL_RATIO
    extend_threshold = hand_size * EXTEND_RATIO

    curled = 0
    extended = 0

    for tip in FINGER_TIPS:
        dist = _distance(points[tip], wrist)
        if dist < curl_threshold:
            curled += 1
        elif dist > extend_threshold:
            extended += 1

    # Thumb moves sideways, so measure it against the index knuckle instead
    thumb_dist = _distance(points[THUMB_TIP], points[INDEX_MCP])
    if thumb_dist < hand_size * THUMB_CURL_RATIO:
        curled += 1
    else:
        extended += 1

    if curled >= 4:
        return GestureType.CLOSED
    if extended >= 4:
        return GestureType.OPEN
    return GestureType.NEUTRAL
