"""
Image gradients and second-moment (structure tensor) accumulation.

Both the feature detector and the region trackers are built on these
primitives. Border policy for window sums is *excluded*: a pixel whose
window would reach outside the image gets zero in every accumulator.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Tuple

import cv2
import numpy as np

LOGGER = logging.getLogger(__name__)

# 3x3 Sobel divided by 8 gives a unit-gain derivative estimate.
SOBEL_SCALE = 1.0 / 8.0


class SecondMomentMatrix(NamedTuple):
    """Per-pixel sums of gradient outer products."""

    gxx: np.ndarray
    gxy: np.ndarray
    gyy: np.ndarray


def _check_image(image: np.ndarray) -> np.ndarray:
    if image is None or image.ndim != 2 or image.size == 0:
        raise ValueError("Expected a non-empty 2-D intensity image.")
    return np.asarray(image, dtype=np.float32)


def compute_gradients(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return horizontal and vertical derivatives of ``image``."""
    image = _check_image(image)
    gx = cv2.Sobel(image, cv2.CV_32F, 1, 0, ksize=3, scale=SOBEL_SCALE,
                   borderType=cv2.BORDER_REPLICATE)
    gy = cv2.Sobel(image, cv2.CV_32F, 0, 1, ksize=3, scale=SOBEL_SCALE,
                   borderType=cv2.BORDER_REPLICATE)
    return gx, gy


def compute_second_moment_matrix(
    gx: np.ndarray,
    gy: np.ndarray,
    window_radius: int,
) -> SecondMomentMatrix:
    """
    Sum gx^2, gx*gy and gy^2 over a square window around every pixel.

    Args:
        gx, gy: Gradient images of identical shape.
        window_radius: Half size of the window; the window is
            ``2 * window_radius + 1`` pixels wide.

    Returns:
        Three images with the shape of ``gx``. Pixels closer than
        ``window_radius`` to the border are zero.
    """
    if window_radius < 0:
        raise ValueError("window_radius must be non-negative.")
    gx = _check_image(gx)
    gy = _check_image(gy)
    if gx.shape != gy.shape:
        raise ValueError("Gradient images must have the same shape.")

    size = (2 * window_radius + 1, 2 * window_radius + 1)
    sums = []
    for product in (gx * gx, gx * gy, gy * gy):
        total = cv2.boxFilter(product, cv2.CV_32F, size, normalize=False,
                              borderType=cv2.BORDER_CONSTANT)
        _zero_border(total, window_radius)
        sums.append(total)
    return SecondMomentMatrix(*sums)


def window_second_moment(gx: np.ndarray, gy: np.ndarray) -> Tuple[float, float, float]:
    """Second-moment sums over an already sampled window."""
    return (
        float(np.sum(gx * gx)),
        float(np.sum(gx * gy)),
        float(np.sum(gy * gy)),
    )


def _zero_border(image: np.ndarray, radius: int):
    if radius == 0:
        return
    image[:radius, :] = 0.0
    image[-radius:, :] = 0.0
    image[:, :radius] = 0.0
    image[:, -radius:] = 0.0
