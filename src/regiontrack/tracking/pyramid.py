"""
Coarse-to-fine tracking over image pyramids.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import cv2
import numpy as np

from .region import FailureReason, Position, RegionTracker, TrackResult, check_patches

LOGGER = logging.getLogger(__name__)


def downsample(image: np.ndarray) -> np.ndarray:
    """Halve an image with a 2x2 box filter; an odd last row/column is dropped."""
    height, width = image.shape
    even = image[: height - height % 2, : width - width % 2]
    return cv2.resize(
        even,
        (even.shape[1] // 2, even.shape[0] // 2),
        interpolation=cv2.INTER_AREA,
    )


def build_pyramid(image: np.ndarray, levels: int) -> Optional[List[np.ndarray]]:
    """
    Return ``levels`` images, finest first, or None if the image is too small.

    Every level must keep at least 2x2 pixels.
    """
    pyramid = [np.asarray(image, dtype=np.float32)]
    for _ in range(levels - 1):
        current = pyramid[-1]
        if min(current.shape) < 4:
            return None
        pyramid.append(downsample(current))
    return pyramid


class PyramidTracker(RegionTracker):
    """
    Wraps a region tracker and runs it from the coarsest level to the finest.

    Each level's result, doubled, seeds the next finer level. Failure at any
    level fails the whole call.
    """

    def __init__(self, tracker: RegionTracker, levels: int):
        if levels < 1:
            raise ValueError("levels must be at least 1.")
        self.tracker = tracker
        self.levels = levels

    def track(
        self,
        old_patch: np.ndarray,
        new_patch: np.ndarray,
        start: Position,
        guess: Optional[Position] = None,
    ) -> TrackResult:
        check_patches(old_patch, new_patch)
        if guess is None:
            guess = start

        old_pyramid = build_pyramid(old_patch, self.levels)
        new_pyramid = build_pyramid(new_patch, self.levels)
        if old_pyramid is None or new_pyramid is None:
            LOGGER.debug("Patch too small for %d pyramid levels", self.levels)
            return TrackResult.failed(FailureReason.OUT_OF_BOUNDS, guess)

        # Pre-shrink once more; the loop doubles before each level.
        scale = 2.0 ** self.levels
        x, y = guess[0] / scale, guess[1] / scale
        iterations = 0

        for level in range(self.levels - 1, -1, -1):
            factor = 2.0 ** level
            level_start = (start[0] / factor, start[1] / factor)
            x, y = 2.0 * x, 2.0 * y
            result = self.tracker.track(
                old_pyramid[level], new_pyramid[level], level_start, (x, y),
            )
            iterations += result.iterations
            if not result.success:
                LOGGER.debug("Pyramid level %d failed: %s", level, result.reason)
                return TrackResult.failed(
                    result.reason,
                    (result.x * factor, result.y * factor),
                    iterations,
                )
            x, y = result.x, result.y

        return TrackResult.ok((x, y), iterations)
