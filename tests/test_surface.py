"""Tests for the OpenCV-backed drawing surface."""

import time

import numpy as np
import pytest

from handworks.surface import CompositeMode, OpenCVSurface, parse_color


class TestParseColor:
    def test_hex_to_bgr(self):
        assert parse_color("#ff0040") == (64, 0, 255)

    def test_short_hex(self):
        assert parse_color("#fff") == (255, 255, 255)

    def test_tuple_passthrough(self):
        assert parse_color((1, 2, 3)) == (1, 2, 3)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_color("#12345")


class TestOpenCVSurface:
    def test_dimensions(self):
        s = OpenCVSurface(320, 200)
        assert (s.width, s.height) == (320, 200)
        assert s.image.shape == (200, 320, 3)
        assert s.image.dtype == np.uint8

    def test_resize_clears(self):
        s = OpenCVSurface(100, 100)
        s.fill_rect(0, 0, 100, 100, "#ffffff")
        s.resize(50, 40)
        assert (s.width, s.height) == (50, 40)
        assert s.image.max() == 0

    def test_fill_rect_opaque(self):
        s = OpenCVSurface(10, 10)
        s.fill_rect(2, 2, 3, 3, "#ff0000")
        assert tuple(s.image[3, 3]) == (0, 0, 255)
        assert tuple(s.image[0, 0]) == (0, 0, 0)

    def test_fill_rect_alpha_fades(self):
        s = OpenCVSurface(10, 10)
        s.fill_rect(0, 0, 10, 10, "#ffffff")
        s.fill_rect(0, 0, 10, 10, "#000000", alpha=0.2)
        assert s.image[5, 5, 0] == 204

    def test_repeated_fade_reaches_black(self):
        s = OpenCVSurface(4, 4)
        s.fill_rect(0, 0, 4, 4, "#ffffff")
        for _ in range(60):
            s.fill_rect(0, 0, 4, 4, "#000000", alpha=0.2)
        assert s.image.max() == 0

    def test_fill_rect_clipped(self):
        s = OpenCVSurface(10, 10)
        s.fill_rect(-5, -5, 100, 100, "#ffffff")
        assert s.image.min() == 255
        s.fill_rect(50, 50, 10, 10, "#000000")  # fully off-surface

    def test_fill_circle(self):
        s = OpenCVSurface(50, 50)
        s.fill_circle(25, 25, 5, "#00ff00")
        assert s.image[25, 25, 1] == 255
        assert s.image[0, 0].max() == 0

    def test_circle_off_surface_is_noop(self):
        s = OpenCVSurface(20, 20)
        s.fill_circle(-100, 500, 4, "#ffffff")
        s.fill_circle(float("nan"), 5, 4, "#ffffff")
        assert s.image.max() == 0

    def test_stroke_circle_leaves_center_empty(self):
        s = OpenCVSurface(60, 60)
        s.stroke_circle(30, 30, 10, "#ffffff", thickness=2)
        assert s.image[30, 30].max() == 0
        assert s.image[30, 40].max() > 0

    def test_lighter_adds(self):
        s = OpenCVSurface(20, 20)
        s.composite = CompositeMode.LIGHTER
        s.fill_circle(10, 10, 3, "#800000")
        s.fill_circle(10, 10, 3, "#800000")
        assert s.image[10, 10, 2] == 255  # 128 + 128 saturates

    def test_source_over_replaces(self):
        s = OpenCVSurface(20, 20)
        s.fill_circle(10, 10, 3, "#800000")
        s.fill_circle(10, 10, 3, "#800000")
        assert s.image[10, 10, 2] == 128

    def test_global_alpha(self):
        s = OpenCVSurface(20, 20)
        s.global_alpha = 0.5
        s.fill_rect(0, 0, 20, 20, "#ffffff")
        assert s.image[10, 10, 0] == 127

    def test_reset_state(self):
        s = OpenCVSurface(5, 5)
        s.composite = CompositeMode.LIGHTER
        s.global_alpha = 0.1
        s.reset_state()
        assert s.composite is CompositeMode.SOURCE_OVER
        assert s.global_alpha == 1.0


class TestTrailFadeCost:
    def test_matches_float_blend(self):
        rng = np.random.default_rng(0)
        s = OpenCVSurface(64, 48)
        s.image[:] = rng.integers(0, 256, size=s.image.shape, dtype=np.uint8)
        before = s.image.astype(np.float64)
        s.fill_rect(0, 0, 64, 48, "#204060", alpha=0.2)
        expected = before * 0.8 + np.array([0x60, 0x40, 0x20]) * 0.2
        assert np.abs(s.image.astype(np.float64) - expected).max() < 1.5

    def test_full_window_fade_fits_frame_budget(self):
        s = OpenCVSurface(1280, 720)
        s.fill_rect(0, 0, 1280, 720, "#ffffff")
        start = time.perf_counter()
        for _ in range(30):
            s.fill_rect(0, 0, 1280, 720, "#000000", alpha=0.2)
        per_frame = (time.perf_counter() - start) / 30
        assert per_frame < 0.025
        assert s.image.max() == 0

    def test_lighter_rect_still_adds(self):
        s = OpenCVSurface(4, 4)
        s.composite = CompositeMode.LIGHTER
        s.fill_rect(0, 0, 4, 4, "#800000")
        s.fill_rect(0, 0, 4, 4, "#800000")
        assert s.image[0, 0, 2] == 255

    def test_color_parsing_cached(self):
        parse_color.cache_clear()
        s = OpenCVSurface(20, 20)
        for _ in range(10):
            s.fill_circle(10, 10, 3, "#ff0040")
        assert parse_color.cache_info().misses == 1
