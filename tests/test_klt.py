"""
Tests for the affine and translation-only KLT region trackers.
"""

import os
import sys
import unittest

import cv2
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from regiontrack.tracking import (  # type: ignore
    FailureReason,
    GradientDescentTracker,
    RegionTrackerConfiguration,
    TranslationOnlyTracker,
)
from synthetic import render_texture, uniform  # type: ignore


class TrackerContract:
    """Behaviour shared by both base trackers; mixed into TestCase subclasses."""

    tracker_class = None

    def make_tracker(self, **overrides):
        config = {"half_window_size": 8}
        config.update(overrides)
        return self.tracker_class(config)

    def test_recovers_subpixel_translation(self):
        """A known sub-pixel shift is recovered within 0.1 px."""
        shift = (1.3, -0.7)
        old = render_texture(61, 61)
        new = render_texture(61, 61, shift=shift)

        result = self.make_tracker().track(old, new, (30.0, 30.0))

        self.assertTrue(result.success, result.reason)
        self.assertAlmostEqual(result.x, 30.0 + shift[0], delta=0.1)
        self.assertAlmostEqual(result.y, 30.0 + shift[1], delta=0.1)

    def test_uses_guess_as_initial_estimate(self):
        shift = (6.0, 4.5)
        old = render_texture(61, 61)
        new = render_texture(61, 61, shift=shift)

        result = self.make_tracker().track(old, new, (30.0, 30.0), guess=(35.5, 35.0))

        self.assertTrue(result.success, result.reason)
        self.assertAlmostEqual(result.x, 36.0, delta=0.1)
        self.assertAlmostEqual(result.y, 34.5, delta=0.1)

    def test_zero_motion_is_idempotent(self):
        patch = render_texture(41, 41)
        result = self.make_tracker().track(patch, patch, (20.0, 20.0))

        self.assertTrue(result.success)
        self.assertAlmostEqual(result.x, 20.0, places=6)
        self.assertAlmostEqual(result.y, 20.0, places=6)
        self.assertEqual(result.iterations, 1)

    def test_uniform_patch_is_degenerate(self):
        patch = uniform()
        result = self.make_tracker().track(patch, patch, (20.0, 20.0))

        self.assertFalse(result.success)
        self.assertEqual(result.reason, FailureReason.DEGENERATE_TEXTURE)

    def test_iteration_cap_reports_non_convergence(self):
        old = render_texture(61, 61)
        new = render_texture(61, 61, shift=(1.3, -0.7))

        result = self.make_tracker(max_iterations=1).track(old, new, (30.0, 30.0))

        self.assertFalse(result.success)
        self.assertEqual(result.reason, FailureReason.NON_CONVERGENCE)
        self.assertEqual(result.iterations, 1)

    def test_window_outside_patch_is_out_of_bounds(self):
        patch = render_texture(41, 41)
        result = self.make_tracker().track(patch, patch, (5.0, 20.0))

        self.assertFalse(result.success)
        self.assertEqual(result.reason, FailureReason.OUT_OF_BOUNDS)

    def test_guess_outside_patch_is_out_of_bounds(self):
        patch = render_texture(41, 41)
        result = self.make_tracker().track(patch, patch, (20.0, 20.0), guess=(38.0, 20.0))

        self.assertFalse(result.success)
        self.assertEqual(result.reason, FailureReason.OUT_OF_BOUNDS)

    def test_successful_position_within_patch(self):
        old = render_texture(41, 41)
        new = render_texture(41, 41, shift=(-0.8, 1.1))
        result = self.make_tracker().track(old, new, (20.0, 20.0))

        self.assertTrue(result.success)
        self.assertTrue(0.0 <= result.x <= 40.0)
        self.assertTrue(0.0 <= result.y <= 40.0)

    def test_rejects_empty_patch(self):
        with self.assertRaises(ValueError):
            self.make_tracker().track(np.zeros((0, 0), dtype=np.float32), uniform(), (1.0, 1.0))


class TestTranslationOnlyTracker(TrackerContract, unittest.TestCase):
    tracker_class = TranslationOnlyTracker


class TestGradientDescentTracker(TrackerContract, unittest.TestCase):
    tracker_class = GradientDescentTracker

    def test_tracks_slightly_rotated_patch(self):
        """The affine model absorbs a small rotation of the window."""
        old = render_texture(81, 81)
        rotation = cv2.getRotationMatrix2D((40.0, 40.0), 3.0, 1.0)
        rotation[:, 2] += (0.6, -0.4)
        new = cv2.warpAffine(old, rotation, (81, 81), flags=cv2.INTER_CUBIC,
                             borderMode=cv2.BORDER_REFLECT)

        result = self.make_tracker(half_window_size=10).track(old, new, (40.0, 40.0))

        self.assertTrue(result.success, result.reason)
        self.assertAlmostEqual(result.x, 40.6, delta=0.15)
        self.assertAlmostEqual(result.y, 39.6, delta=0.15)


class TestTrackerConfiguration(unittest.TestCase):

    def test_overrides_apply_to_config(self):
        tracker = TranslationOnlyTracker(RegionTrackerConfiguration(), half_window_size=6)
        self.assertEqual(tracker.half_window_size, 6)

    def test_invalid_window_rejected(self):
        with self.assertRaises(ValueError):
            TranslationOnlyTracker({"half_window_size": 0})

    def test_convergence_thresholds_validated(self):
        for overrides in ({"min_update_distance": 0.0}, {"min_update_distance": -1e-3},
                          {"min_determinant": -1.0}):
            with self.subTest(**overrides):
                with self.assertRaises(ValueError):
                    RegionTrackerConfiguration(**overrides)

        config = RegionTrackerConfiguration(min_determinant=0.0, min_update_distance=1e-4)
        self.assertEqual(config.min_determinant, 0.0)


if __name__ == "__main__":
    unittest.main()
