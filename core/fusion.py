"""
Fusion of local (geometric) and remote (semantic) estimates, plus the two
simulated walks (body language, voice clarity) that bypass fusion.
"""
from __future__ import annotations
import math
from typing import Dict, Optional

import numpy as np

from core.models import LocalEstimate, RemoteEstimate, clamp

# Local data arrives ~480x more often than remote (60 Hz vs one per 8 s).
# Weighting it at 0.7 keeps the display responsive to real head movement while
# the remote judgment still shifts the value over a few fusion cycles.
LOCAL_WEIGHT = 0.7


def round_half_up(x: float) -> int:
    """Round .5 upward (not to even), so 65.5 -> 66 and 30.000000000000004 -> 30."""
    return int(math.floor(x + 0.5))


def fuse(local: float, remote: float, local_weight: float = LOCAL_WEIGHT) -> int:
    return round_half_up(local_weight * local + (1.0 - local_weight) * remote)


def fuse_estimates(local: LocalEstimate, remote: RemoteEstimate,
                   local_weight: float = LOCAL_WEIGHT) -> Dict[str, float]:
    """
    Raw per-tick values for every metric the remote side contributes to.

    Overlapping metrics are fused; confidence/engagement/stress/positivity pass
    straight through from the remote estimate.
    """
    return {
        "eye_contact": fuse(local.eye_contact, remote.eye_contact, local_weight),
        "expression": fuse(local.expression, remote.positivity, local_weight),
        "posture": fuse(local.posture, remote.professional_presence, local_weight),
        "confidence": remote.confidence,
        "engagement": remote.engagement,
        "stress": remote.stress,
        "positivity": remote.positivity,
    }


class BodyLanguageWalk:
    """Bounded random walk, U(-8, +12) per tick while the camera is active, else 0."""
    def __init__(self, rng: Optional[np.random.Generator] = None, initial: float = 50.0):
        self._rng = rng or np.random.default_rng()
        self.value = float(initial)

    def step(self, camera_active: bool) -> float:
        if camera_active:
            self.value = clamp(self.value + float(self._rng.uniform(-8.0, 12.0)))
        else:
            self.value = 0.0
        return self.value


class VoiceClarityWalk:
    """U(-6, +14) walk held within [30, 100] while listening; drops 5/tick otherwise."""
    def __init__(self, rng: Optional[np.random.Generator] = None, initial: float = 0.0):
        self._rng = rng or np.random.default_rng()
        self.value = float(initial)

    def step(self, listening: bool) -> float:
        if listening:
            self.value = clamp(self.value + float(self._rng.uniform(-6.0, 14.0)), 30.0, 100.0)
        else:
            self.value = max(0.0, self.value - 5.0)
        return self.value
