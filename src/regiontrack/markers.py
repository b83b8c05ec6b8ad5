"""
Track correspondences: which track sits where in which image.

Markers persist as flat binary records of
``int32 image, int32 track, float64 x, float64 y``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

LOGGER = logging.getLogger(__name__)

MARKER_DTYPE = np.dtype([
    ("image", "<i4"),
    ("track", "<i4"),
    ("x", "<f8"),
    ("y", "<f8"),
])

TRACKS_SUFFIX = ".tracks"


@dataclass(frozen=True)
class Marker:
    """Position of one track in one image."""

    image: int
    track: int
    x: float
    y: float


class MarkerSet:
    """Markers indexed by (image, track); at most one marker per pair."""

    def __init__(self, markers: Optional[Iterable[Marker]] = None):
        self._markers: Dict[Tuple[int, int], Marker] = {}
        for marker in markers or ():
            self._markers[(marker.image, marker.track)] = marker

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self):
        return iter(self.all_markers())

    def insert(self, image: int, track: int, x: float, y: float) -> Marker:
        """Add a marker, replacing any existing one for the same image and track."""
        marker = Marker(int(image), int(track), float(x), float(y))
        self._markers[(marker.image, marker.track)] = marker
        return marker

    def all_markers(self) -> List[Marker]:
        return [self._markers[key] for key in sorted(self._markers)]

    def markers_in_image(self, image: int) -> List[Marker]:
        return [m for m in self.all_markers() if m.image == image]

    def markers_for_track(self, track: int) -> List[Marker]:
        return [m for m in self.all_markers() if m.track == track]

    def marker_in_image_for_track(self, image: int, track: int) -> Optional[Marker]:
        return self._markers.get((image, track))

    def max_track(self) -> int:
        """Largest track id, or -1 when empty."""
        return max((track for _, track in self._markers), default=-1)

    def max_image(self) -> int:
        return max((image for image, _ in self._markers), default=-1)

    def remove_marker(self, image: int, track: int) -> bool:
        return self._markers.pop((image, track), None) is not None

    def remove_markers_for_track(self, track: int) -> int:
        keys = [key for key in self._markers if key[1] == track]
        for key in keys:
            del self._markers[key]
        return len(keys)


def tracks_path(path: Union[str, Path]) -> Path:
    """Marker file for ``path``: ``<dir>/.tracks`` for a directory, else ``<path>.tracks``."""
    path = Path(path)
    if path.is_dir():
        return path / TRACKS_SUFFIX
    if path.suffix == TRACKS_SUFFIX:
        return path
    return path.with_name(path.name + TRACKS_SUFFIX)


def save_markers(markers: MarkerSet, path: Union[str, Path]) -> bool:
    """Write all markers to ``path``.

    Returns:
        bool: True if the file was written.
    """
    records = np.array(
        [(m.image, m.track, m.x, m.y) for m in markers.all_markers()],
        dtype=MARKER_DTYPE,
    )
    try:
        records.tofile(str(path))
    except OSError as e:
        LOGGER.error("Failed to save markers to %s: %s", path, e)
        return False
    LOGGER.info("Saved %d markers to %s", len(records), path)
    return True


def load_markers(path: Union[str, Path]) -> MarkerSet:
    """Read markers from ``path``; a missing file yields an empty set."""
    path = Path(path)
    if not path.exists():
        LOGGER.warning("Marker file %s does not exist", path)
        return MarkerSet()

    raw = path.read_bytes()
    usable = len(raw) - len(raw) % MARKER_DTYPE.itemsize
    if usable != len(raw):
        LOGGER.warning("Ignoring %d trailing bytes in %s", len(raw) - usable, path)
    records = np.frombuffer(raw[:usable], dtype=MARKER_DTYPE)

    markers = MarkerSet()
    for record in records:
        markers.insert(int(record["image"]), int(record["track"]),
                       float(record["x"]), float(record["y"]))
    LOGGER.info("Loaded %d markers from %s", len(markers), path)
    return markers
