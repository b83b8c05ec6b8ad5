"""
Good-features-to-track corner detection.

Every pixel is scored by the smaller eigenvalue of its local second-moment
matrix; candidates are then accepted greedily in descending score order so
that no two returned features are closer than ``min_distance``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import cv2
import numpy as np

from .gradient import compute_gradients, compute_second_moment_matrix

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorConfiguration:
    """Configuration for the feature detector."""

    window_radius: int = 3
    min_distance: float = 10.0
    max_count: int = 500
    min_score: float = 1e-6
    quality_level: float = 0.01  # Fraction of the best score a candidate must reach
    local_maxima_only: bool = False

    def __post_init__(self):
        if self.window_radius < 1:
            raise ValueError("window_radius must be at least 1.")
        if self.min_distance < 0:
            raise ValueError("min_distance must be non-negative.")
        if self.max_count < 0:
            raise ValueError("max_count must be non-negative.")


@dataclass(frozen=True)
class DetectedFeature:
    """A candidate point to track."""

    x: float
    y: float
    score: float


def min_eigenvalue(gxx: np.ndarray, gxy: np.ndarray, gyy: np.ndarray) -> np.ndarray:
    """Closed-form smaller eigenvalue of [[gxx, gxy], [gxy, gyy]]."""
    half_trace = 0.5 * (gxx + gyy)
    half_diff = 0.5 * (gxx - gyy)
    return half_trace - np.sqrt(half_diff * half_diff + gxy * gxy)


class FeatureDetector:
    """Scores pixels by corner strength and returns spatially separated features."""

    def __init__(self, config: Optional[Union[DetectorConfiguration, Dict]] = None):
        if isinstance(config, DetectorConfiguration):
            self.config = config
        else:
            cfg_dict = dict(config or {})
            self.config = DetectorConfiguration(**{
                k: v for k, v in cfg_dict.items()
                if k in DetectorConfiguration.__dataclass_fields__
            })

    def score_image(self, image: np.ndarray) -> np.ndarray:
        """Corner score per pixel; the excluded border scores zero."""
        gx, gy = compute_gradients(image)
        moments = compute_second_moment_matrix(gx, gy, self.config.window_radius)
        scores = min_eigenvalue(moments.gxx, moments.gxy, moments.gyy)
        # Rounding can push the eigenvalue of a flat window slightly negative.
        return np.maximum(scores, 0.0)

    def detect(self, image: np.ndarray) -> List[DetectedFeature]:
        """Detect features in ``image``, strongest first."""
        cfg = self.config
        scores = self.score_image(image)
        if cfg.max_count == 0:
            return []

        best = float(scores.max())
        threshold = max(cfg.min_score, cfg.quality_level * best)
        candidate_mask = scores > threshold
        if cfg.local_maxima_only:
            dilated = cv2.dilate(scores, np.ones((3, 3), dtype=np.uint8))
            candidate_mask &= scores >= dilated

        ys, xs = np.nonzero(candidate_mask)
        if len(xs) == 0:
            LOGGER.debug("No features above threshold %.3g", threshold)
            return []

        candidate_scores = scores[ys, xs]
        order = np.argsort(-candidate_scores, kind="stable")
        features = self._suppress(xs[order], ys[order], candidate_scores[order], scores.shape)

        LOGGER.debug(
            "Detected %d features from %d candidates (threshold %.3g)",
            len(features), len(xs), threshold,
        )
        return features

    def _suppress(self, xs, ys, candidate_scores, shape) -> List[DetectedFeature]:
        """Greedy spatial non-maximum suppression over score-sorted candidates."""
        cfg = self.config
        height, width = shape
        radius = cfg.min_distance
        reach = int(np.ceil(radius))
        blocked = np.zeros(shape, dtype=bool)
        features: List[DetectedFeature] = []

        for x, y, score in zip(xs, ys, candidate_scores):
            if blocked[y, x]:
                continue
            features.append(DetectedFeature(x=float(x), y=float(y), score=float(score)))
            if len(features) >= cfg.max_count:
                break
            if reach == 0:
                continue

            # Block every pixel strictly closer than min_distance.
            y0, y1 = max(y - reach, 0), min(y + reach + 1, height)
            x0, x1 = max(x - reach, 0), min(x + reach + 1, width)
            yy, xx = np.mgrid[y0:y1, x0:x1]
            near = (xx - x) ** 2 + (yy - y) ** 2 < radius * radius
            blocked[y0:y1, x0:x1] |= near

        return features


def detect_good_features(
    image: np.ndarray,
    min_distance: float,
    max_count: int,
    window_radius: int = 3,
) -> List[DetectedFeature]:
    """Convenience wrapper around :class:`FeatureDetector`."""
    detector = FeatureDetector(DetectorConfiguration(
        window_radius=window_radius,
        min_distance=min_distance,
        max_count=max_count,
    ))
    return detector.detect(image)
