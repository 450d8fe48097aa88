"""
Local (per-frame) estimator: head pose -> eye contact / posture / expression.
"""
from __future__ import annotations
import logging
import math
from typing import Optional, Sequence

import numpy as np

from core.models import LocalEstimate, clamp

logger = logging.getLogger(__name__)

# Points lost per consecutive detection miss
EYE_CONTACT_DECAY = 5.0
POSTURE_DECAY = 3.0
EXPRESSION_DECAY = 2.0

EXPRESSION_JITTER = 15.0   # U(0, 15) natural expression variance


def head_pose(matrix: Sequence[float]) -> tuple[float, float]:
    """Absolute (yaw, pitch) in degrees from a row-major 4x4 face transform."""
    m = np.asarray(matrix, dtype=float).reshape(-1)
    if m.size < 11:
        raise ValueError(f"transform needs 16 values, got {m.size}")
    yaw = abs(math.atan2(m[8], m[10])) * 180.0 / math.pi
    pitch = abs(math.asin(float(np.clip(-m[9], -1.0, 1.0)))) * 180.0 / math.pi
    return yaw, pitch


def estimate_from_pose(yaw: float, pitch: float, jitter: float) -> LocalEstimate:
    return LocalEstimate(
        eye_contact=clamp(100.0 - 3.0 * yaw - 3.0 * pitch),
        posture=clamp(85.0 - 2.0 * yaw),
        expression=clamp(75.0 + jitter - pitch),
    )


def decay(prev: LocalEstimate) -> LocalEstimate:
    return LocalEstimate(
        eye_contact=max(0.0, prev.eye_contact - EYE_CONTACT_DECAY),
        posture=max(0.0, prev.posture - POSTURE_DECAY),
        expression=max(0.0, prev.expression - EXPRESSION_DECAY),
    )


class LocalEstimator:
    """Holds the latest LocalEstimate; overwritten on detection, decayed on a miss."""
    def __init__(self, rng: Optional[np.random.Generator] = None,
                 initial: Optional[LocalEstimate] = None):
        self._rng = rng or np.random.default_rng()
        self._estimate = initial or LocalEstimate()

    @property
    def estimate(self) -> LocalEstimate:
        return self._estimate

    def update(self, matrix: Optional[Sequence[float]]) -> LocalEstimate:
        """Fold one detection result (transform or None for "no face") into the estimate."""
        if matrix is None:
            self._estimate = decay(self._estimate)
        else:
            yaw, pitch = head_pose(matrix)
            jitter = float(self._rng.uniform(0.0, EXPRESSION_JITTER))
            self._estimate = estimate_from_pose(yaw, pitch, jitter)
        return self._estimate

    def step(self, detector, frame, timestamp_ms: int) -> LocalEstimate:
        """
        One detection cycle.

        - detector not ready: no-op, estimate unchanged
        - no frame (capture unavailable): counts as a miss and decays
        - detector error: logged, estimate unchanged
        """
        if detector is None or not detector.ready:
            return self._estimate
        if frame is None:
            return self.update(None)
        try:
            return self.update(detector.detect(frame, timestamp_ms))
        except Exception:
            logger.exception("[local] detection failed; keeping previous estimate")
            return self._estimate
