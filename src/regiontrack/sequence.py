"""
Image sequence input.

Reads frames from a directory of images, a glob pattern or a video file and
yields them as float intensity images.
"""

import glob
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Union

import cv2
import numpy as np

from .image import load_image, to_float_image

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".pgm", ".ppm", ".tif", ".tiff"}


class ImageSequence:
    """Frames of a directory, glob pattern or video file."""

    def __init__(self, source: Union[str, Path]):
        """Initialize the sequence.

        Args:
            source: Directory of images, glob pattern, or video file path
        """
        self.source = str(source)
        self.logger = logging.getLogger(__name__)
        self.image_paths: List[Path] = self._resolve_image_paths(self.source)
        self.cap: Optional[cv2.VideoCapture] = None

        if not self.image_paths:
            if not Path(self.source).is_file():
                raise ValueError(f"No images or video found at {self.source}")
            self.logger.info("Reading frames from video file %s", self.source)
        else:
            self.logger.info("Found %d images in %s", len(self.image_paths), self.source)

    @staticmethod
    def _resolve_image_paths(source: str) -> List[Path]:
        path = Path(source)
        if path.is_dir():
            candidates = path.iterdir()
        elif any(ch in source for ch in "*?["):
            candidates = (Path(p) for p in glob.glob(source))
        else:
            return []
        return sorted(p for p in candidates if p.suffix.lower() in IMAGE_EXTENSIONS)

    @property
    def is_video(self) -> bool:
        return not self.image_paths

    def __len__(self) -> int:
        if not self.is_video:
            return len(self.image_paths)
        cap = cv2.VideoCapture(self.source)
        try:
            return int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        finally:
            cap.release()

    def __iter__(self) -> Iterator[np.ndarray]:
        if self.is_video:
            yield from self._read_video()
            return
        for path in self.image_paths:
            image = load_image(path)
            if image is None:
                raise ValueError(f"Unreadable image in sequence: {path}")
            yield image

    def _read_video(self) -> Iterator[np.ndarray]:
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            self.cleanup()
            raise ValueError(f"Failed to open video file: {self.source}")
        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    break
                yield to_float_image(frame)
        finally:
            self.cleanup()

    def cleanup(self):
        """Release the video capture, if any."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            self.logger.debug("Video capture released")
