"""
Tracking subpackage.

Region tracking and corner detection on float intensity images:
- GradientField primitives (gradients, second-moment accumulation)
- Good-features-to-track detector with spatial suppression
- Affine and translation-only KLT region trackers
- Pyramid (coarse-to-fine) and retrack (forward/backward) wrappers
"""

from .detector import (
    DetectedFeature,
    DetectorConfiguration,
    FeatureDetector,
    detect_good_features,
    min_eigenvalue,
)
from .factory import RegionTrackerFactory
from .gradient import (
    SecondMomentMatrix,
    compute_gradients,
    compute_second_moment_matrix,
    window_second_moment,
)
from .klt import GradientDescentTracker, TranslationOnlyTracker
from .pyramid import PyramidTracker, build_pyramid, downsample
from .region import (
    FailureReason,
    RegionTracker,
    RegionTrackerConfiguration,
    TrackResult,
)
from .retrack import RetrackVerifier

__all__ = [
    "DetectedFeature",
    "DetectorConfiguration",
    "FailureReason",
    "FeatureDetector",
    "GradientDescentTracker",
    "PyramidTracker",
    "RegionTracker",
    "RegionTrackerConfiguration",
    "RegionTrackerFactory",
    "RetrackVerifier",
    "SecondMomentMatrix",
    "TrackResult",
    "TranslationOnlyTracker",
    "build_pyramid",
    "compute_gradients",
    "compute_second_moment_matrix",
    "detect_good_features",
    "downsample",
    "min_eigenvalue",
    "window_second_moment",
]
