"""
Kanade-Lucas-Tomasi style iterative region trackers.

``GradientDescentTracker`` refines a full affine model of the window
(translation plus a 2x2 deformation). ``TranslationOnlyTracker`` solves for
translation alone using the time-symmetric gradient of both patches, which
is cheaper and better behaved for small inter-frame motion.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Dict, Optional, Tuple, Union

import numpy as np

from .gradient import compute_gradients, window_second_moment
from .region import (
    FailureReason,
    Position,
    RegionTracker,
    RegionTrackerConfiguration,
    TrackResult,
    check_patches,
    make_configuration,
    sample,
    samples_in_bounds,
    window_offsets,
)

LOGGER = logging.getLogger(__name__)

# Bounds on the determinant of the affine deformation before the track is
# considered to have diverged.
MIN_DEFORMATION_DET = 0.25
MAX_DEFORMATION_DET = 4.0


class _IterativeTracker(RegionTracker):
    """Shared setup for the Gauss-Newton trackers."""

    def __init__(self, config: Optional[Union[RegionTrackerConfiguration, Dict]] = None, **overrides):
        config = make_configuration(config)
        if overrides:
            config = dataclasses.replace(config, **overrides)
        self.config = config
        self._dx, self._dy = window_offsets(config.half_window_size)

    @property
    def half_window_size(self) -> int:
        return self.config.half_window_size

    def _prepare(
        self,
        old_patch: np.ndarray,
        new_patch: np.ndarray,
        start: Position,
    ) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        """Float patches plus the sampled reference window, or None if it leaves the patch."""
        check_patches(old_patch, new_patch)
        old = np.asarray(old_patch, dtype=np.float32)
        xs = start[0] + self._dx
        ys = start[1] + self._dy
        if not samples_in_bounds(old.shape, xs, ys):
            return None
        return old, np.asarray(new_patch, dtype=np.float32), sample(old, xs, ys)

    def _fail(self, reason: FailureReason, position: Position, iterations: int) -> TrackResult:
        LOGGER.debug(
            "%s failed (%s) at (%.2f, %.2f) after %d iterations",
            type(self).__name__, reason.value, position[0], position[1], iterations,
        )
        return TrackResult.failed(reason, position, iterations)


class TranslationOnlyTracker(_IterativeTracker):
    """Pure translation KLT with symmetric (old + new) gradients."""

    def track(
        self,
        old_patch: np.ndarray,
        new_patch: np.ndarray,
        start: Position,
        guess: Optional[Position] = None,
    ) -> TrackResult:
        cfg = self.config
        x, y = guess if guess is not None else start
        prepared = self._prepare(old_patch, new_patch, start)
        if prepared is None:
            return self._fail(FailureReason.OUT_OF_BOUNDS, (x, y), 0)
        old, new, template = prepared

        old_xs = start[0] + self._dx
        old_ys = start[1] + self._dy
        old_gx, old_gy = compute_gradients(old)
        template_gx = sample(old_gx, old_xs, old_ys)
        template_gy = sample(old_gy, old_xs, old_ys)
        new_gx, new_gy = compute_gradients(new)

        for iteration in range(1, cfg.max_iterations + 1):
            xs = x + self._dx
            ys = y + self._dy
            if not samples_in_bounds(new.shape, xs, ys):
                return self._fail(FailureReason.OUT_OF_BOUNDS, (x, y), iteration)

            gx = 0.5 * (template_gx + sample(new_gx, xs, ys))
            gy = 0.5 * (template_gy + sample(new_gy, xs, ys))
            gxx, gxy, gyy = window_second_moment(gx, gy)
            determinant = gxx * gyy - gxy * gxy
            if determinant < cfg.min_determinant:
                return self._fail(FailureReason.DEGENERATE_TEXTURE, (x, y), iteration)

            error = template - sample(new, xs, ys)
            ex = float(np.sum(error * gx))
            ey = float(np.sum(error * gy))
            step_x = (gyy * ex - gxy * ey) / determinant
            step_y = (gxx * ey - gxy * ex) / determinant
            x += step_x
            y += step_y

            if math.hypot(step_x, step_y) < cfg.min_update_distance:
                if not samples_in_bounds(new.shape, x + self._dx, y + self._dy):
                    return self._fail(FailureReason.OUT_OF_BOUNDS, (x, y), iteration)
                return TrackResult.ok((x, y), iteration)

        return self._fail(FailureReason.NON_CONVERGENCE, (x, y), cfg.max_iterations)


class GradientDescentTracker(_IterativeTracker):
    """
    Affine KLT: refines the window position and its 2x2 deformation.

    Deformation parameters are expressed over window offsets normalized by
    the half window size, so all six unknowns share a scale. The deformation
    block of the normal matrix is damped lightly; rotation of an isotropic
    blob is otherwise unobservable. Only the translation is reported.
    """

    def track(
        self,
        old_patch: np.ndarray,
        new_patch: np.ndarray,
        start: Position,
        guess: Optional[Position] = None,
    ) -> TrackResult:
        cfg = self.config
        half = float(cfg.half_window_size)
        x, y = guess if guess is not None else start
        prepared = self._prepare(old_patch, new_patch, start)
        if prepared is None:
            return self._fail(FailureReason.OUT_OF_BOUNDS, (x, y), 0)
        _, new, template = prepared
        new_gx, new_gy = compute_gradients(new)

        u = (self._dx / half).ravel()
        v = (self._dy / half).ravel()
        template = template.ravel()
        deformation = np.zeros(4)  # a00, a01, a10, a11 in normalized units

        for iteration in range(1, cfg.max_iterations + 1):
            a00, a01, a10, a11 = deformation
            xs = x + self._dx.ravel() + a00 * u + a01 * v
            ys = y + self._dy.ravel() + a10 * u + a11 * v
            if not samples_in_bounds(new.shape, xs, ys):
                return self._fail(FailureReason.OUT_OF_BOUNDS, (x, y), iteration)

            gx = sample(new_gx, xs, ys)
            gy = sample(new_gy, xs, ys)
            gxx, gxy, gyy = window_second_moment(gx, gy)
            if gxx * gyy - gxy * gxy < cfg.min_determinant:
                return self._fail(FailureReason.DEGENERATE_TEXTURE, (x, y), iteration)

            error = template - sample(new, xs, ys)
            jacobian = np.stack([gx * u, gx * v, gy * u, gy * v, gx, gy], axis=1)
            hessian = jacobian.T @ jacobian
            hessian[:4, :4] += np.eye(4) * cfg.deformation_damping * 0.5 * (gxx + gyy)
            try:
                step = np.linalg.solve(hessian, jacobian.T @ error)
            except np.linalg.LinAlgError:
                return self._fail(FailureReason.DEGENERATE_TEXTURE, (x, y), iteration)

            deformation += step[:4]
            x += step[4]
            y += step[5]

            matrix = np.eye(2) + deformation.reshape(2, 2) / half
            if not MIN_DEFORMATION_DET <= np.linalg.det(matrix) <= MAX_DEFORMATION_DET:
                return self._fail(FailureReason.NON_CONVERGENCE, (x, y), iteration)

            if math.hypot(step[4], step[5]) < cfg.min_update_distance:
                if not samples_in_bounds(new.shape, x + self._dx, y + self._dy):
                    return self._fail(FailureReason.OUT_OF_BOUNDS, (x, y), iteration)
                return TrackResult.ok((float(x), float(y)), iteration)

        return self._fail(FailureReason.NON_CONVERGENCE, (x, y), cfg.max_iterations)
