"""
Tests for gradient and second-moment primitives.
"""

import os
import sys
import unittest

import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from regiontrack.tracking.gradient import (  # type: ignore
    compute_gradients,
    compute_second_moment_matrix,
    window_second_moment,
)


class TestGradients(unittest.TestCase):
    """Derivative estimates on simple images."""

    def test_ramp_has_constant_gradient(self):
        """A linear ramp should give its slope in the interior."""
        ys, xs = np.mgrid[0:20, 0:30].astype(np.float32)
        image = 2.0 * xs - 0.5 * ys

        gx, gy = compute_gradients(image)

        self.assertEqual(gx.shape, image.shape)
        np.testing.assert_allclose(gx[1:-1, 1:-1], 2.0, atol=1e-5)
        np.testing.assert_allclose(gy[1:-1, 1:-1], -0.5, atol=1e-5)

    def test_constant_image_has_zero_gradient(self):
        gx, gy = compute_gradients(np.full((10, 12), 7.0, dtype=np.float32))
        self.assertFalse(np.any(gx))
        self.assertFalse(np.any(gy))

    def test_rejects_empty_image(self):
        with self.assertRaises(ValueError):
            compute_gradients(np.zeros((0, 5), dtype=np.float32))
        with self.assertRaises(ValueError):
            compute_gradients(np.zeros((4, 4, 3), dtype=np.float32))


class TestSecondMomentMatrix(unittest.TestCase):
    """Window accumulation with the excluded border policy."""

    def setUp(self):
        rng = np.random.default_rng(0)
        self.gx = rng.normal(size=(24, 32)).astype(np.float32)
        self.gy = rng.normal(size=(24, 32)).astype(np.float32)

    def test_shape_and_excluded_border(self):
        radius = 3
        moments = compute_second_moment_matrix(self.gx, self.gy, radius)

        for image in moments:
            self.assertEqual(image.shape, self.gx.shape)
            self.assertFalse(np.any(image[:radius, :]))
            self.assertFalse(np.any(image[-radius:, :]))
            self.assertFalse(np.any(image[:, :radius]))
            self.assertFalse(np.any(image[:, -radius:]))

    def test_interior_matches_window_sums(self):
        """Interior values equal the direct sums the trackers use."""
        radius = 2
        moments = compute_second_moment_matrix(self.gx, self.gy, radius)

        for y, x in [(2, 2), (10, 15), (21, 29)]:
            window = (slice(y - radius, y + radius + 1), slice(x - radius, x + radius + 1))
            gxx, gxy, gyy = window_second_moment(self.gx[window], self.gy[window])
            self.assertAlmostEqual(float(moments.gxx[y, x]), gxx, places=3)
            self.assertAlmostEqual(float(moments.gxy[y, x]), gxy, places=3)
            self.assertAlmostEqual(float(moments.gyy[y, x]), gyy, places=3)

    def test_mismatched_shapes_rejected(self):
        with self.assertRaises(ValueError):
            compute_second_moment_matrix(self.gx, self.gy[:10], 1)


if __name__ == "__main__":
    unittest.main()
