"""
regiontrack - Region-based point tracking.

This package provides functionality for:
- Good-features-to-track corner detection
- KLT region tracking (affine and translation-only)
- Coarse-to-fine pyramid tracking and forward/backward verification
- Marker bookkeeping and frame-to-frame marker tracking
"""

from .frame_tracker import FrameTrackingResult, MarkerTracker, MarkerTrackingConfiguration
from .image import extract_patch, load_image, to_float_image
from .markers import Marker, MarkerSet, load_markers, save_markers
from .sequence import ImageSequence
from .tracking import (
    DetectedFeature,
    DetectorConfiguration,
    FailureReason,
    FeatureDetector,
    GradientDescentTracker,
    PyramidTracker,
    RegionTracker,
    RegionTrackerConfiguration,
    RegionTrackerFactory,
    RetrackVerifier,
    TrackResult,
    TranslationOnlyTracker,
    detect_good_features,
)

__version__ = "0.1.0"

__all__ = [
    # Tracking core
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
    "TrackResult",
    "TranslationOnlyTracker",
    "detect_good_features",
    # Images
    "ImageSequence",
    "extract_patch",
    "load_image",
    "to_float_image",
    # Markers
    "FrameTrackingResult",
    "Marker",
    "MarkerSet",
    "MarkerTracker",
    "MarkerTrackingConfiguration",
    "load_markers",
    "save_markers",
]
