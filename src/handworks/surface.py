"""Raster drawing surface used by the animation.

The animation only needs a handful of canvas-style primitives: filled and
stroked circles, filled rectangles with alpha, and a switchable additive
("lighter") compositing mode. `Surface` names that contract and
`OpenCVSurface` implements it on a numpy BGR image that can be shown with
`cv2.imshow` or written with `cv2.imwrite`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from functools import lru_cache
from typing import Union

import cv2
import numpy as np

Color = Union[str, tuple[int, int, int]]


class CompositeMode(Enum):
    SOURCE_OVER = "source-over"
    LIGHTER = "lighter"


class SurfaceUnavailable(RuntimeError):
    """Raised by a surface provider when there is nothing to draw on."""


@lru_cache(maxsize=256)
def parse_color(color: Color) -> tuple[int, int, int]:
    """Convert '#rrggbb' / '#rgb' (RGB order) to an OpenCV BGR tuple.

    Tuples are taken as BGR already and passed through. Results are cached.
    """
    if isinstance(color, tuple):
        b, g, r = color
        return int(b), int(g), int(r)

    text = color.lstrip("#")
    if len(text) == 3:
        text = "".join(c * 2 for c in text)
    if len(text) != 6:
        raise ValueError(f"Invalid color: {color!r}")

    r, g, b = (int(text[i:i + 2], 16) for i in (0, 2, 4))
    return b, g, r


class Surface(ABC):
    """Minimal 2D canvas contract.

    `composite` and `global_alpha` behave like their HTML canvas
    counterparts: they apply to every subsequent fill until changed.
    """

    def __init__(self):
        self.composite = CompositeMode.SOURCE_OVER
        self.global_alpha = 1.0

    @property
    @abstractmethod
    def width(self) -> int: ...

    @property
    @abstractmethod
    def height(self) -> int: ...

    @abstractmethod
    def resize(self, width: int, height: int):
        """Reallocate the backing store. Clears the surface."""

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color, alpha: float = 1.0): ...

    @abstractmethod
    def fill_circle(self, x: float, y: float, radius: float, color: Color, alpha: float = 1.0): ...

    @abstractmethod
    def stroke_circle(self, x: float, y: float, radius: float, color: Color, thickness: int = 1): ...

    def reset_state(self):
        """Back to normal compositing at full opacity."""
        self.composite = CompositeMode.SOURCE_OVER
        self.global_alpha = 1.0


class OpenCVSurface(Surface):
    """Surface backed by a (height, width, 3) uint8 BGR array."""

    def __init__(self, width: int = 640, height: int = 480):
        super().__init__()
        self._image = np.zeros((max(1, height), max(1, width), 3), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self._image.shape[1]

    @property
    def height(self) -> int:
        return self._image.shape[0]

    @property
    def image(self) -> np.ndarray:
        return self._image

    def resize(self, width: int, height: int):
        self._image = np.zeros((max(1, height), max(1, width), 3), dtype=np.uint8)

    def clear(self):
        self._image[:] = 0

    def fill_rect(self, x, y, w, h, color, alpha=1.0):
        x0, y0 = max(0, int(x)), max(0, int(y))
        x1, y1 = min(self.width, int(x + w)), min(self.height, int(y + h))
        if x1 <= x0 or y1 <= y0:
            return
        if self.composite is CompositeMode.SOURCE_OVER:
            self._fade_rect(x0, y0, x1, y1, alpha, color)
        else:
            self._blend(x0, y0, x1, y1, alpha, color)

    def _fade_rect(self, x0, y0, x1, y1, alpha, color):
        """Uniform source-over fill in 8.8 fixed point.

        Covers the per-frame trail fade over the whole window. Results
        truncate, like `_blend`.
        """
        weight = min(max(float(alpha) * self.global_alpha, 0.0), 1.0)
        keep = int(round((1.0 - weight) * 256))
        roi = self._image[y0:y1, x0:x1]

        if keep == 0:
            roi[:] = parse_color(color)
            return

        out = roi.astype(np.uint16)
        out *= keep
        if keep < 256:
            out += np.array(parse_color(color), dtype=np.uint16) * (256 - keep)
        out >>= 8
        roi[:] = out.astype(np.uint8)

    def fill_circle(self, x, y, radius, color, alpha=1.0):
        self._draw_circle(x, y, radius, color, alpha, thickness=-1)

    def stroke_circle(self, x, y, radius, color, thickness=1):
        self._draw_circle(x, y, radius, color, 1.0, thickness=thickness)

    def _draw_circle(self, x, y, radius, color, alpha, thickness):
        if not (np.isfinite(x) and np.isfinite(y)):
            return
        r = max(1, int(round(radius)))
        pad = r + max(thickness, 1) + 1
        cx, cy = int(round(x)), int(round(y))

        x0, y0 = max(0, cx - pad), max(0, cy - pad)
        x1, y1 = min(self.width, cx + pad + 1), min(self.height, cy + pad + 1)
        if x1 <= x0 or y1 <= y0:
            return

        # Rasterize the circle into a coverage mask for the clipped box
        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        cv2.circle(mask, (cx - x0, cy - y0), r, 255, thickness, lineType=cv2.LINE_AA)
        coverage = mask.astype(np.float64) / 255.0
        self._blend(x0, y0, x1, y1, coverage * alpha, color)

    def _blend(self, x0, y0, x1, y1, weight, color):
        weight = np.clip(np.asarray(weight, dtype=np.float64) * self.global_alpha, 0.0, 1.0)
        if weight.ndim == 2:
            weight = weight[..., None]

        roi = self._image[y0:y1, x0:x1].astype(np.float64)
        bgr = np.array(parse_color(color), dtype=np.float64)

        if self.composite is CompositeMode.LIGHTER:
            out = roi + bgr * weight
        else:
            out = roi * (1.0 - weight) + bgr * weight

        # Truncate rather than round so repeated fades reach black
        self._image[y0:y1, x0:x1] = np.clip(out, 0, 255).astype(np.uint8)
