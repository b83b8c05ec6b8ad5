"""
Forward/backward consistency check for region trackers.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from .region import FailureReason, Position, RegionTracker, TrackResult

LOGGER = logging.getLogger(__name__)


class RetrackVerifier(RegionTracker):
    """
    Tracks forward, then tracks the result back into the old patch.

    The forward position is returned unchanged when the backward track lands
    within ``tolerance`` pixels of the start; otherwise the call fails.
    """

    def __init__(self, tracker: RegionTracker, tolerance: float):
        if tolerance < 0:
            raise ValueError("tolerance must be non-negative.")
        self.tracker = tracker
        self.tolerance = tolerance

    def track(
        self,
        old_patch: np.ndarray,
        new_patch: np.ndarray,
        start: Position,
        guess: Optional[Position] = None,
    ) -> TrackResult:
        forward = self.tracker.track(old_patch, new_patch, start, guess)
        if not forward.success:
            return forward

        backward = self.tracker.track(new_patch, old_patch, forward.position, forward.position)
        iterations = forward.iterations + backward.iterations
        if not backward.success:
            LOGGER.debug("Backward track failed: %s", backward.reason)
            return TrackResult.failed(backward.reason, forward.position, iterations)

        drift = math.hypot(backward.x - start[0], backward.y - start[1])
        if drift > self.tolerance:
            LOGGER.debug(
                "Retrack drift %.3f exceeds tolerance %.3f at (%.2f, %.2f)",
                drift, self.tolerance, forward.x, forward.y,
            )
            return TrackResult.failed(FailureReason.VERIFICATION, forward.position, iterations)

        return TrackResult.ok(forward.position, iterations)
