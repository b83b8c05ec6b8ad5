"""
Tests for composing region trackers from configuration.
"""

import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from regiontrack.tracking import (  # type: ignore
    GradientDescentTracker,
    PyramidTracker,
    RegionTrackerConfiguration,
    RegionTrackerFactory,
    RetrackVerifier,
    TranslationOnlyTracker,
)
from regiontrack.utils import get_config  # type: ignore


class TestRegionTrackerFactory(unittest.TestCase):

    def test_default_stack(self):
        """Defaults compose retrack(pyramid(translation))."""
        tracker = RegionTrackerFactory.create()

        self.assertIsInstance(tracker, RetrackVerifier)
        self.assertAlmostEqual(tracker.tolerance, 0.2)
        self.assertIsInstance(tracker.tracker, PyramidTracker)
        self.assertEqual(tracker.tracker.levels, 3)
        self.assertIsInstance(tracker.tracker.tracker, TranslationOnlyTracker)
        self.assertEqual(tracker.tracker.tracker.config.max_iterations, 200)

    def test_affine_without_wrappers(self):
        config = RegionTrackerConfiguration(strategy="affine", use_pyramid=False, use_retrack=False)
        tracker = RegionTrackerFactory.create(config)
        self.assertIsInstance(tracker, GradientDescentTracker)

    def test_single_level_pyramid_is_skipped(self):
        tracker = RegionTrackerFactory.create({"pyramid_levels": 1, "use_retrack": False})
        self.assertIsInstance(tracker, TranslationOnlyTracker)

    def test_dict_config_from_defaults(self):
        config = get_config()["region_tracking"]
        config["half_window_size"] = 6
        config["unused_key"] = True

        tracker = RegionTrackerFactory.create(config)
        self.assertEqual(tracker.tracker.tracker.half_window_size, 6)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            RegionTrackerFactory.create({"strategy": "ncc"})


if __name__ == "__main__":
    unittest.main()
