"""
Configuration for the engagement metrics pipeline.
"""
from pydantic import BaseModel
import math
import os

_FALLBACKS = {
    "EMA_ALPHA": 0.3, "LOCAL_WEIGHT": 0.7, "SNAPSHOT_QUALITY": 0.6,
    "DETECT_FPS": 60.0, "REMOTE_INTERVAL": 8.0, "SMOOTH_INTERVAL": 1.5,
    "TIMELINE_INTERVAL": 10.0, "REMOTE_TIMEOUT": 20.0,
}

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))

    # Scheduling (seconds, except DETECT_FPS)
    DETECT_FPS: float = float(os.getenv("DETECT_FPS", "60"))
    REMOTE_INTERVAL: float = float(os.getenv("REMOTE_INTERVAL", "8"))
    SMOOTH_INTERVAL: float = float(os.getenv("SMOOTH_INTERVAL", "1.5"))
    TIMELINE_INTERVAL: float = float(os.getenv("TIMELINE_INTERVAL", "10"))

    # Filter / fusion weights
    EMA_ALPHA: float = float(os.getenv("EMA_ALPHA", "0.3"))
    LOCAL_WEIGHT: float = float(os.getenv("LOCAL_WEIGHT", "0.7"))

    # Remote snapshot scoring
    SNAPSHOT_WIDTH: int = int(os.getenv("SNAPSHOT_WIDTH", "320"))
    SNAPSHOT_HEIGHT: int = int(os.getenv("SNAPSHOT_HEIGHT", "240"))
    SNAPSHOT_QUALITY: float = float(os.getenv("SNAPSHOT_QUALITY", "0.6"))
    REMOTE_URL: str | None = os.getenv("REMOTE_URL") or None
    REMOTE_API_KEY: str | None = os.getenv("REMOTE_API_KEY") or None
    REMOTE_TIMEOUT: float = float(os.getenv("REMOTE_TIMEOUT", "20"))

    FACE_MODEL_PATH: str = os.getenv("FACE_MODEL_PATH", "models/face_landmarker.task")
    TIMELINE_MAX_ENTRIES: int | None = (
        int(os.getenv("TIMELINE_MAX_ENTRIES")) if os.getenv("TIMELINE_MAX_ENTRIES") else None
    )

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize weights into (0, 1] and keep every interval positive
        for name in ("EMA_ALPHA", "LOCAL_WEIGHT", "SNAPSHOT_QUALITY"):
            v = float(getattr(self, name))
            if not 0.0 < v <= 1.0:
                v = _FALLBACKS[name]
            object.__setattr__(self, name, v)
        for name in ("DETECT_FPS", "REMOTE_INTERVAL", "SMOOTH_INTERVAL", "TIMELINE_INTERVAL", "REMOTE_TIMEOUT"):
            v = float(getattr(self, name))
            if not (v > 0 and math.isfinite(v)):
                v = _FALLBACKS[name]
            object.__setattr__(self, name, v)
        if self.TIMELINE_MAX_ENTRIES is not None and self.TIMELINE_MAX_ENTRIES <= 0:
            object.__setattr__(self, "TIMELINE_MAX_ENTRIES", None)
        object.__setattr__(self, "LOG_LEVEL", (self.LOG_LEVEL or "INFO").strip().upper())
