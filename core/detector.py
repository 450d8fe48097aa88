"""
MediaPipe FaceLandmarker wrapper returning the facial transformation matrix.

MediaPipe is imported lazily so the rest of the pipeline (and the tests) can
run without the model or the package; monkeypatch `_load` to inject a fake.
"""
from __future__ import annotations
import logging
import os
import threading
from typing import List, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FaceTransformDetector:
    """Per-frame detector: BGR frame -> 16-float row-major transform, or None."""
    def __init__(self, model_path: str):
        self.model_path = model_path
        self._landmarker = None
        self._mp = None
        self._loading = False
        self._failed = False
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._landmarker is not None

    def load(self) -> bool:
        """Load the model once; failures are logged and leave the detector not-ready."""
        with self._lock:
            if self._landmarker is not None or self._failed:
                return self.ready
            self._loading = True
            try:
                self._landmarker = self._load()
                logger.info(f"[detector] FaceLandmarker ready ({self.model_path})")
            except Exception:
                self._failed = True
                logger.exception("[detector] FaceLandmarker load failed; local estimates will decay")
            finally:
                self._loading = False
        return self.ready

    def load_async(self) -> None:
        if self.ready or self._loading or self._failed:
            return
        threading.Thread(target=self.load, daemon=True).start()

    def _load(self):
        if not os.path.exists(self.model_path):
            raise FileNotFoundError(f"Face model not found: {self.model_path}")
        import mediapipe as mp
        from mediapipe.tasks.python import BaseOptions, vision

        opts = vision.FaceLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=self.model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=1,
            output_facial_transformation_matrixes=True,
        )
        self._mp = mp
        return vision.FaceLandmarker.create_from_options(opts)

    def detect(self, frame_bgr: np.ndarray, timestamp_ms: int) -> Optional[List[float]]:
        if self._landmarker is None:
            return None
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect_for_video(image, int(timestamp_ms))
        mats = getattr(result, "facial_transformation_matrixes", None) or []
        if len(mats) == 0:
            return None
        return np.asarray(mats[0], dtype=float).reshape(-1).tolist()

    def close(self) -> None:
        with self._lock:
            if self._landmarker is not None:
                try:
                    self._landmarker.close()
                except Exception:
                    logger.warning("[detector] close failed")
                self._landmarker = None
