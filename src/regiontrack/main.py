"""
Command-line entry point.

Usage:
    regiontrack detect frame.png                 # List good features
    regiontrack track frames/ -o frames.tracks   # Seed and track a sequence
    regiontrack track clip.mp4 --verbose         # Enable debug logging
"""

from __future__ import annotations

import argparse
import logging
import sys

from .frame_tracker import MarkerTracker, MarkerTrackingConfiguration
from .image import load_image
from .markers import MarkerSet, save_markers, tracks_path
from .sequence import ImageSequence
from .tracking import FeatureDetector
from .utils import get_config, setup_logging, validate_config

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="regiontrack",
        description="Region-based point tracking for image sequences",
    )
    parser.add_argument("--config", "-c", help="JSON configuration file")
    parser.add_argument(
        "--verbose", "-V",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    parser.add_argument("--max-features", type=int, help="Maximum number of features")
    parser.add_argument("--min-distance", type=float, help="Minimum feature separation in pixels")

    subparsers = parser.add_subparsers(dest="command", required=True)

    detect = subparsers.add_parser("detect", help="Detect good features in an image")
    detect.add_argument("image", help="Image file")

    track = subparsers.add_parser("track", help="Seed features and track them through a sequence")
    track.add_argument("source", help="Image directory, glob pattern or video file")
    track.add_argument("--output", "-o", help="Marker file (default: <source>.tracks)")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    config = get_config(args.config)
    if args.max_features is not None:
        config["feature_detection"]["max_count"] = args.max_features
    if args.min_distance is not None:
        config["feature_detection"]["min_distance"] = args.min_distance
    return config


def run_detect(args: argparse.Namespace, config: dict) -> int:
    image = load_image(args.image)
    if image is None:
        return 1
    features = FeatureDetector(config["feature_detection"]).detect(image)
    for feature in features:
        print(f"{feature.x:.0f} {feature.y:.0f} {feature.score:.4f}")
    LOGGER.info("Detected %d features in %s", len(features), args.image)
    return 0


def run_track(args: argparse.Namespace, config: dict) -> int:
    sequence = ImageSequence(args.source)
    tracker = MarkerTracker(MarkerTrackingConfiguration(
        half_search_window_size=config["marker_tracking"]["half_search_window_size"],
        region_tracking=config["region_tracking"],
        feature_detection=config["feature_detection"],
    ))

    markers = MarkerSet()
    active = []
    previous_image = None
    for index, image in enumerate(sequence):
        if previous_image is None:
            active = tracker.seed(markers, index, image)
        else:
            outcome = tracker.track(markers, index - 1, index, previous_image, image, active)
            active = outcome.tracked
        previous_image = image
        if not active:
            LOGGER.warning("All tracks lost at image %d", index)
            break

    output = args.output or tracks_path(args.source)
    return 0 if save_markers(markers, output) else 1


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level)

    config = build_config(args)
    if not validate_config(config):
        sys.exit(2)

    try:
        if args.command == "detect":
            status = run_detect(args, config)
        else:
            status = run_track(args, config)
    except ValueError as e:
        LOGGER.error("%s", e)
        sys.exit(1)

    sys.exit(status)


if __name__ == "__main__":
    main()
