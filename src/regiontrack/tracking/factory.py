"""
Builds the tracker stack used for frame-to-frame marker tracking.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from .klt import GradientDescentTracker, TranslationOnlyTracker
from .pyramid import PyramidTracker
from .region import RegionTracker, RegionTrackerConfiguration, make_configuration
from .retrack import RetrackVerifier

LOGGER = logging.getLogger(__name__)

STRATEGIES = {
    "translation": TranslationOnlyTracker,
    "affine": GradientDescentTracker,
}


class RegionTrackerFactory:
    """Factory for composed region trackers."""

    @staticmethod
    def create_base(config: RegionTrackerConfiguration) -> RegionTracker:
        strategy = config.strategy.lower()
        if strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown tracking strategy '{config.strategy}'. "
                f"Expected one of: {', '.join(sorted(STRATEGIES))}"
            )
        return STRATEGIES[strategy](config)

    @staticmethod
    def create(
        config: Optional[Union[RegionTrackerConfiguration, Dict]] = None,
    ) -> RegionTracker:
        """
        Compose retrack(pyramid(base)) according to ``config``.

        Returns:
            The outermost tracker of the stack.
        """
        config = make_configuration(config)
        tracker = RegionTrackerFactory.create_base(config)
        if config.use_pyramid and config.pyramid_levels > 1:
            tracker = PyramidTracker(tracker, config.pyramid_levels)
        if config.use_retrack:
            tracker = RetrackVerifier(tracker, config.retrack_tolerance)

        LOGGER.info(
            "Region tracker created: strategy=%s, window=%d, pyramid=%s, retrack=%s",
            config.strategy,
            2 * config.half_window_size + 1,
            config.pyramid_levels if config.use_pyramid else "off",
            config.retrack_tolerance if config.use_retrack else "off",
        )
        return tracker
