import numpy as np
from core.models import MetricsSnapshot
from core.visual import draw_metrics, metric_level

def test_metric_level_bands():
    assert metric_level(85) == "good"
    assert metric_level(70) == "good"
    assert metric_level(40) == "fair"
    assert metric_level(39.9) == "low"

def test_draw_metrics_returns_annotated_copy():
    frame = np.zeros((240, 320, 3), dtype=np.uint8)
    m = MetricsSnapshot(eye_contact=80, posture=50, stress=90, dominant_emotion="focused")
    out = draw_metrics(frame, m)
    assert out.shape == frame.shape
    assert out.any()
    assert not frame.any()

def test_draw_metrics_small_frame():
    frame = np.zeros((20, 40, 3), dtype=np.uint8)
    out = draw_metrics(frame, MetricsSnapshot())
    assert out.shape == frame.shape
