"""
Common contract for region trackers.

A region tracker takes a patch from the previous frame, a patch from the
next frame, the point's position in the first and an estimate of its
position in the second, and returns the refined position. Failure is part
of the result, never an exception.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

import numpy as np

LOGGER = logging.getLogger(__name__)

Position = Tuple[float, float]


class FailureReason(Enum):
    """Why a track could not be produced."""
    DEGENERATE_TEXTURE = "degenerate_texture"  # Near-singular second-moment matrix
    NON_CONVERGENCE = "non_convergence"
    OUT_OF_BOUNDS = "out_of_bounds"
    INPUT_EXTRACTION = "input_extraction"  # Patch could not be cut from the frame
    VERIFICATION = "verification"  # Forward/backward disagreement


@dataclass(frozen=True)
class TrackResult:
    """Outcome of a single tracking call."""

    x: float
    y: float
    success: bool
    reason: Optional[FailureReason] = None
    iterations: int = 0

    @property
    def position(self) -> Position:
        return self.x, self.y

    @classmethod
    def ok(cls, position: Position, iterations: int = 0) -> TrackResult:
        return cls(float(position[0]), float(position[1]), True, None, iterations)

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        position: Position,
        iterations: int = 0,
    ) -> TrackResult:
        return cls(float(position[0]), float(position[1]), False, reason, iterations)


@dataclass(frozen=True)
class RegionTrackerConfiguration:
    """Configuration shared by the tracker strategies and the factory."""

    # Base strategy: "translation" or "affine"
    strategy: str = "translation"
    half_window_size: int = 4
    max_iterations: int = 200
    min_determinant: float = 1e-6
    min_update_distance: float = 1e-3  # Pixels; smaller steps count as converged
    deformation_damping: float = 0.1  # Affine only, relative to the mean gradient energy

    # Coarse-to-fine
    use_pyramid: bool = True
    pyramid_levels: int = 3

    # Forward/backward verification
    use_retrack: bool = True
    retrack_tolerance: float = 0.2

    def __post_init__(self):
        if self.half_window_size < 1:
            raise ValueError("half_window_size must be at least 1.")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1.")
        if self.min_determinant < 0:
            raise ValueError("min_determinant must be non-negative.")
        if self.min_update_distance <= 0:
            raise ValueError("min_update_distance must be positive.")
        if self.pyramid_levels < 1:
            raise ValueError("pyramid_levels must be at least 1.")
        if self.retrack_tolerance < 0:
            raise ValueError("retrack_tolerance must be non-negative.")


def make_configuration(
    config: Optional[Union[RegionTrackerConfiguration, Dict]],
) -> RegionTrackerConfiguration:
    """Accept a configuration object or a plain dict; unknown keys are ignored."""
    if isinstance(config, RegionTrackerConfiguration):
        return config
    cfg_dict = dict(config or {})
    return RegionTrackerConfiguration(**{
        k: v for k, v in cfg_dict.items()
        if k in RegionTrackerConfiguration.__dataclass_fields__
    })


class RegionTracker(abc.ABC):
    """Interface implemented by every tracking strategy."""

    @abc.abstractmethod
    def track(
        self,
        old_patch: np.ndarray,
        new_patch: np.ndarray,
        start: Position,
        guess: Optional[Position] = None,
    ) -> TrackResult:
        """
        Locate ``start`` (a position in ``old_patch``) in ``new_patch``.

        Args:
            old_patch: Float intensity patch containing the reference region.
            new_patch: Float intensity patch to search.
            start: (x, y) of the point in ``old_patch``.
            guess: Initial (x, y) estimate in ``new_patch``; ``start`` if omitted.

        Returns:
            TrackResult with the refined position or a failure reason.
        """


def check_patches(old_patch: np.ndarray, new_patch: np.ndarray):
    for patch in (old_patch, new_patch):
        if patch is None or patch.ndim != 2 or patch.size == 0:
            raise ValueError("Patches must be non-empty 2-D intensity images.")


def position_in_bounds(shape: Tuple[int, int], position: Position) -> bool:
    """Whether a sub-pixel position can be sampled from an image of ``shape``."""
    height, width = shape
    x, y = position
    return 0.0 <= x <= width - 1 and 0.0 <= y <= height - 1


def window_offsets(half_window_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """Pixel offsets (dx, dy) of a square window centred on the origin."""
    span = np.arange(-half_window_size, half_window_size + 1, dtype=np.float32)
    dy, dx = np.meshgrid(span, span, indexing="ij")
    return dx, dy


def sample(image: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Bilinear samples of ``image`` at the sub-pixel coordinates ``xs``, ``ys``.

    Coordinates are clamped to the image. Weights stay in floating point;
    ``cv2.remap`` would quantize them to 1/32 pixel.
    """
    height, width = image.shape
    xs = np.clip(xs, 0.0, width - 1)
    ys = np.clip(ys, 0.0, height - 1)
    x0 = np.minimum(np.floor(xs).astype(np.intp), max(width - 2, 0))
    y0 = np.minimum(np.floor(ys).astype(np.intp), max(height - 2, 0))
    x1 = np.minimum(x0 + 1, width - 1)
    y1 = np.minimum(y0 + 1, height - 1)
    fx = xs - x0
    fy = ys - y0
    top = image[y0, x0] * (1.0 - fx) + image[y0, x1] * fx
    bottom = image[y1, x0] * (1.0 - fx) + image[y1, x1] * fx
    return top * (1.0 - fy) + bottom * fy


def samples_in_bounds(shape: Tuple[int, int], xs: np.ndarray, ys: np.ndarray) -> bool:
    height, width = shape
    return bool(
        xs.min() >= 0.0 and xs.max() <= width - 1
        and ys.min() >= 0.0 and ys.max() <= height - 1
    )
