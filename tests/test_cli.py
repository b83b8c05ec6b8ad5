"""
End-to-end tests for the command line.
"""

import os
import sys
import tempfile
import unittest

import cv2
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from regiontrack.main import main, parse_args  # type: ignore
from regiontrack.markers import load_markers  # type: ignore
from synthetic import render_texture  # type: ignore


def write_sequence(directory, count=3, step=(2.0, 0.0)):
    for index in range(count):
        shift = (step[0] * index, step[1] * index)
        frame = render_texture(160, 160, shift=shift, grating=0.0)
        cv2.imwrite(
            os.path.join(directory, f"frame_{index:03d}.png"),
            np.clip(np.rint(frame), 0, 255).astype(np.uint8),
        )


class TestParseArgs(unittest.TestCase):

    def test_track_options(self):
        args = parse_args(["--max-features", "40", "track", "frames", "-o", "out.tracks"])

        self.assertEqual(args.command, "track")
        self.assertEqual(args.source, "frames")
        self.assertEqual(args.output, "out.tracks")
        self.assertEqual(args.max_features, 40)

    def test_command_required(self):
        with self.assertRaises(SystemExit):
            parse_args([])


class TestCommands(unittest.TestCase):

    def test_track_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            write_sequence(tmp)
            output = os.path.join(tmp, "out.tracks")

            with self.assertRaises(SystemExit) as cm:
                main(["--max-features", "40", "track", tmp, "-o", output])
            self.assertEqual(cm.exception.code, 0)

            markers = load_markers(output)

        seeded = markers.markers_in_image(0)
        self.assertGreater(len(seeded), 0)
        final = markers.markers_in_image(2)
        self.assertGreater(len(final), 0)
        for marker in final:
            origin = markers.marker_in_image_for_track(0, marker.track)
            self.assertAlmostEqual(marker.x - origin.x, 4.0, delta=0.5)
            self.assertAlmostEqual(marker.y - origin.y, 0.0, delta=0.5)

    def test_detect_missing_image(self):
        with self.assertRaises(SystemExit) as cm:
            main(["detect", "/nonexistent/frame.png"])
        self.assertEqual(cm.exception.code, 1)

    def test_invalid_config_exits(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            with open(path, "w") as f:
                f.write('{"region_tracking": {"strategy": "ncc"}}')
            with self.assertRaises(SystemExit) as cm:
                main(["--config", path, "detect", "frame.png"])
        self.assertEqual(cm.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
