"""Tests for landmark → gesture classification."""

import numpy as np
import pytest

from handworks.gestures import GestureType, classify


def make_hand(reach=(2.0, 2.0, 2.0, 2.0), thumb_dist=1.0, size=0.1):
    """Upright hand with wrist at (0.5, 0.6) and middle knuckle `size` above.

    `reach` gives each fingertip's distance from the wrist in hand sizes,
    `thumb_dist` the thumb tip's distance from the index knuckle.
    """
    lm = np.zeros((21, 2), dtype=np.float32)
    wrist = np.array([0.5, 0.6])
    lm[0] = wrist
    lm[9] = wrist + [0.0, -size]
    lm[5] = wrist + [-0.3 * size, -0.95 * size]
    for tip, r, angle in zip([8, 12, 16, 20], reach, [-0.3, -0.1, 0.1, 0.3]):
        lm[tip] = wrist + r * size * np.array([np.sin(angle), -np.cos(angle)])
    lm[4] = lm[5] + [-thumb_dist * size, 0.0]
    return lm


class TestClassify:
    def test_open_hand(self):
        assert classify(make_hand()) is GestureType.OPEN

    def test_fist(self):
        lm = make_hand(reach=(0.8, 0.8, 0.8, 0.8), thumb_dist=0.2)
        assert classify(lm) is GestureType.CLOSED

    def test_two_curled_two_extended_is_neutral(self):
        for thumb_dist in (0.2, 1.0):
            lm = make_hand(reach=(2.0, 2.0, 0.8, 0.8), thumb_dist=thumb_dist)
            assert classify(lm) is GestureType.NEUTRAL

    def test_four_curled_with_thumb_out_is_closed(self):
        lm = make_hand(reach=(0.8, 0.8, 0.8, 0.8), thumb_dist=1.0)
        assert classify(lm) is GestureType.CLOSED

    def test_three_extended_plus_thumb_is_open(self):
        lm = make_hand(reach=(2.0, 2.0, 2.0, 1.2), thumb_dist=1.0)
        assert classify(lm) is GestureType.OPEN

    def test_ambiguous_band_counts_neither(self):
        # All tips between 1.1 and 1.3 hand sizes
        lm = make_hand(reach=(1.2, 1.2, 1.2, 1.2), thumb_dist=1.0)
        assert classify(lm) is GestureType.NEUTRAL

    def test_scale_invariant(self):
        small = make_hand(size=0.05)
        large = make_hand(size=0.2)
        assert classify(small) is classify(large) is GestureType.OPEN

    def test_accepts_3d_landmarks(self):
        lm2 = make_hand()
        lm3 = np.concatenate([lm2, np.full((21, 1), 0.3, dtype=np.float32)], axis=1)
        assert classify(lm3) is GestureType.OPEN

    def test_accepts_nested_lists(self):
        assert classify(make_hand().tolist()) is GestureType.OPEN

    def test_deterministic(self):
        lm = make_hand(reach=(2.0, 0.8, 1.2, 2.0))
        assert classify(lm) is classify(lm.copy())


class TestUnknown:
    def test_none(self):
        assert classify(None) is GestureType.UNKNOWN

    @pytest.mark.parametrize("count", [0, 1, 5, 20])
    def test_too_few_landmarks(self, count):
        lm = make_hand()[:count]
        assert classify(lm) is GestureType.UNKNOWN

    def test_degenerate_hand_size(self):
        lm = make_hand()
        lm[9] = lm[0]
        assert classify(lm) is GestureType.UNKNOWN

    def test_all_zero(self):
        assert classify(np.zeros((21, 2))) is GestureType.UNKNOWN

    def test_nan(self):
        lm = make_hand()
        lm[12] = [np.nan, np.nan]
        assert classify(lm) is GestureType.UNKNOWN

    def test_inf(self):
        assert classify(np.full((21, 3), np.inf)) is GestureType.UNKNOWN

    def test_wrong_shape(self):
        assert classify(np.zeros(42)) is GestureType.UNKNOWN
        assert classify(np.zeros((21, 1))) is GestureType.UNKNOWN
