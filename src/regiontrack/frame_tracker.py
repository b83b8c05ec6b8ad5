"""
Frame-to-frame marker tracking.

Drives a region tracker over every marker of one image: cuts a square search
patch around the marker from both frames, tracks the point, and records the
result as a marker of the next image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

import numpy as np

from .image import extract_patch
from .markers import MarkerSet
from .tracking import (
    FailureReason,
    FeatureDetector,
    RegionTracker,
    RegionTrackerFactory,
    TrackResult,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class MarkerTrackingConfiguration:
    """Configuration for the marker loop."""

    half_search_window_size: int = 32
    region_tracking: Dict = field(default_factory=dict)
    feature_detection: Dict = field(default_factory=dict)

    def __post_init__(self):
        if self.half_search_window_size < 1:
            raise ValueError("half_search_window_size must be at least 1.")


@dataclass
class FrameTrackingResult:
    """Outcome of tracking all markers from one image into the next."""

    previous: int
    next: int
    results: Dict[int, TrackResult] = field(default_factory=dict)

    @property
    def tracked(self) -> List[int]:
        return [track for track, result in self.results.items() if result.success]

    @property
    def lost(self) -> List[int]:
        return [track for track, result in self.results.items() if not result.success]


class MarkerTracker:
    """Tracks selected markers between consecutive frames."""

    def __init__(
        self,
        config: Optional[Union[MarkerTrackingConfiguration, Dict]] = None,
        region_tracker: Optional[RegionTracker] = None,
    ):
        if isinstance(config, MarkerTrackingConfiguration):
            self.config = config
        else:
            cfg_dict = dict(config or {})
            self.config = MarkerTrackingConfiguration(**{
                k: v for k, v in cfg_dict.items()
                if k in MarkerTrackingConfiguration.__dataclass_fields__
            })
        self.region_tracker = region_tracker or RegionTrackerFactory.create(
            self.config.region_tracking
        )
        self.detector = FeatureDetector(self.config.feature_detection)

    @property
    def patch_size(self) -> int:
        return 2 * self.config.half_search_window_size + 1

    def track(
        self,
        markers: MarkerSet,
        previous: int,
        next_image: int,
        old_image: np.ndarray,
        new_image: np.ndarray,
        selected: Optional[Iterable[int]] = None,
    ) -> FrameTrackingResult:
        """
        Track markers of image ``previous`` into image ``next_image``.

        Successful tracks are inserted into ``markers``; failed ones are only
        reported.

        Args:
            markers: Marker store, updated in place.
            previous, next_image: Image indices.
            old_image, new_image: Float intensity frames.
            selected: Track ids to follow; all tracks when omitted.

        Returns:
            FrameTrackingResult with one TrackResult per attempted track.
        """
        selected_tracks = set(selected) if selected is not None else None
        half = self.config.half_search_window_size
        size = self.patch_size
        outcome = FrameTrackingResult(previous=previous, next=next_image)

        for marker in markers.markers_in_image(previous):
            if selected_tracks is not None and marker.track not in selected_tracks:
                continue

            # Both patches share an origin, so the guess equals the start.
            x0 = int(marker.x) - half
            y0 = int(marker.y) - half
            old_patch = extract_patch(old_image, x0, y0, size, size)
            new_patch = extract_patch(new_image, x0, y0, size, size)
            start = (marker.x - x0, marker.y - y0)
            if old_patch is None or new_patch is None:
                outcome.results[marker.track] = TrackResult.failed(
                    FailureReason.INPUT_EXTRACTION, (marker.x, marker.y),
                )
                continue

            result = self.region_tracker.track(old_patch, new_patch, start)
            if result.success:
                x, y = x0 + result.x, y0 + result.y
                markers.insert(next_image, marker.track, x, y)
                result = TrackResult.ok((x, y), result.iterations)
            else:
                result = TrackResult.failed(
                    result.reason, (x0 + result.x, y0 + result.y), result.iterations,
                )
            outcome.results[marker.track] = result

        LOGGER.info(
            "Image %d -> %d: %d tracked, %d lost",
            previous, next_image, len(outcome.tracked), len(outcome.lost),
        )
        return outcome

    def seed(self, markers: MarkerSet, image_index: int, image: np.ndarray) -> List[int]:
        """Start new tracks at detected features; returns the new track ids."""
        next_track = markers.max_track() + 1
        new_tracks = []
        for feature in self.detector.detect(image):
            markers.insert(image_index, next_track, feature.x, feature.y)
            new_tracks.append(next_track)
            next_track += 1
        LOGGER.info("Seeded %d tracks in image %d", len(new_tracks), image_index)
        return new_tracks
