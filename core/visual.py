"""Visualization helpers for the live metrics overlay.

- metric_level: bucket a 0..100 score into good / fair / low
- draw_metrics: draw one labelled bar per metric plus the dominant emotion
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Tuple

from core.models import NUMERIC_METRICS, MetricsSnapshot

LEVEL_COLORS = {
    "good": (0, 200, 0),
    "fair": (0, 200, 255),
    "low": (0, 0, 255),
}


def metric_level(value: float) -> str:
    # stress reads the other way round, callers invert it before bucketing
    if value >= 70:
        return "good"
    if value >= 40:
        return "fair"
    return "low"


def draw_metrics(frame: np.ndarray,
                 metrics: MetricsSnapshot,
                 origin: Tuple[int, int] = (10, 20),
                 bar_width: int = 120) -> np.ndarray:
    """Draw metric bars on a copy of a BGR frame.

    Args:
        frame: BGR image
        metrics: snapshot to display
        origin: top-left corner of the panel
        bar_width: pixel width of a 100-point bar

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]
    x0, y = origin
    row = 16

    for name in NUMERIC_METRICS:
        if y + row > h:
            break
        value = float(getattr(metrics, name))
        level = metric_level(100.0 - value if name == "stress" else value)
        color = LEVEL_COLORS[level]
        label = name.replace("_", " ")
        cv2.putText(out, f"{label}: {int(value)}", (x0, y), cv2.FONT_HERSHEY_SIMPLEX, 0.4, color, 1, cv2.LINE_AA)
        bx = min(w - 1, x0 + 150)
        fill = int(bar_width * value / 100.0)
        cv2.rectangle(out, (bx, y - 9), (min(w - 1, bx + bar_width), y - 1), (80, 80, 80), 1)
        if fill > 0:
            cv2.rectangle(out, (bx, y - 9), (min(w - 1, bx + fill), y - 1), color, -1)
        y += row

    if y + row <= h:
        cv2.putText(out, f"emotion: {metrics.dominant_emotion}", (x0, y), cv2.FONT_HERSHEY_SIMPLEX,
                    0.45, (255, 255, 255), 1, cv2.LINE_AA)
    return out
