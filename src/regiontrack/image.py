"""
Image ingestion and patch extraction.

Converts decoded frames into the float intensity grids the trackers work on
and cuts fixed-size patches out of full frames.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

LOGGER = logging.getLogger(__name__)


def to_float_image(image: np.ndarray) -> np.ndarray:
    """Return a 2-D float32 intensity image.

    Args:
        image: Grayscale, BGR or BGRA frame of any numeric dtype. 8-bit
            values keep their 0-255 range.

    Returns:
        np.ndarray: Intensity grid of shape (height, width).
    """
    if image is None or image.size == 0:
        raise ValueError("Image cannot be empty.")

    if image.ndim == 3:
        channels = image.shape[2]
        if channels == 1:
            image = image[:, :, 0]
        elif channels == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        elif channels == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        else:
            raise ValueError(f"Unsupported channel count: {channels}")
    elif image.ndim != 2:
        raise ValueError(f"Unsupported image shape: {image.shape}")

    return np.ascontiguousarray(image, dtype=np.float32)


def load_image(path: Union[str, Path]) -> Optional[np.ndarray]:
    """Read an image file as a float intensity grid, or None if unreadable."""
    image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if image is None:
        LOGGER.warning("Could not read image %s", path)
        return None
    return to_float_image(image)


def extract_patch(
    image: np.ndarray,
    x0: int,
    y0: int,
    width: int,
    height: int,
) -> Optional[np.ndarray]:
    """Copy the ``width`` x ``height`` region whose top-left corner is (x0, y0).

    Returns:
        The patch, or None if the region touches or leaves the image border.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Patch dimensions must be positive.")

    image_height, image_width = image.shape[:2]
    # The last row and column are excluded from every patch.
    if x0 < 0 or y0 < 0 or x0 + width >= image_width or y0 + height >= image_height:
        return None
    return image[y0:y0 + height, x0:x0 + width].copy()
