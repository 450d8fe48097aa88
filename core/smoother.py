"""
Exponential smoothing of every display metric on a fixed tick.
"""
from __future__ import annotations
import math
from typing import Mapping, Optional

from core.fusion import round_half_up
from core.models import NUMERIC_METRICS, MetricsSnapshot, clamp

# alpha=0.3: a held step input covers ~88% of the gap after 6 ticks and >90%
# after 7 (about 10 s at 1.5 s/tick). Lower alpha is steadier but slower,
# higher alpha lets per-frame jitter through to the display.
EMA_ALPHA = 0.3


def ema(prev: float, raw: float, alpha: float = EMA_ALPHA) -> float:
    return alpha * raw + (1.0 - alpha) * prev


def smooth(prev: float, raw: float, alpha: float = EMA_ALPHA) -> int:
    return round_half_up(ema(prev, raw, alpha))


def steps_to_reach(fraction: float, alpha: float = EMA_ALPHA) -> int:
    """Ticks needed for a held step input to cover `fraction` of the gap."""
    if not 0.0 < fraction < 1.0:
        raise ValueError("fraction must be in (0, 1)")
    return int(math.ceil(math.log(1.0 - fraction) / math.log(1.0 - alpha)))


def _usable(v) -> bool:
    if v is None or isinstance(v, bool):
        return False
    try:
        return math.isfinite(float(v))
    except (TypeError, ValueError):
        return False


class EMASmoother:
    """Folds one tick of raw values into the previous snapshot."""
    def __init__(self, alpha: float = EMA_ALPHA):
        self.alpha = float(alpha)

    def tick(self, previous: MetricsSnapshot, raw: Mapping[str, float],
             dominant_emotion: Optional[str] = None) -> MetricsSnapshot:
        """
        Return the next snapshot: every numeric metric written once.

        A missing or non-finite raw value keeps the previous smoothed value.
        """
        values = {}
        for name in NUMERIC_METRICS:
            prev = getattr(previous, name)
            r = raw.get(name)
            if _usable(r):
                values[name] = clamp(smooth(prev, clamp(float(r)), self.alpha))
            else:
                values[name] = prev
        return MetricsSnapshot(dominant_emotion=dominant_emotion or "neutral", **values)
