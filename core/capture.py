"""
Webcam frame source shared by the local detector loop and remote snapshots.
"""
from __future__ import annotations
import logging
import threading
from typing import Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FrameSource:
    """Wraps cv2.VideoCapture; read() gives the latest frame or None."""
    def __init__(self, camera_index: int = 0):
        self.camera_index = camera_index
        self._cap = None
        self._latest: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self._cap is not None

    def open(self) -> bool:
        with self._lock:
            if self._cap is not None:
                return True
            cap = cv2.VideoCapture(self.camera_index)
            if not cap.isOpened():
                cap.release()
                logger.warning(f"[capture] could not open camera index {self.camera_index}; running without video")
                return False
            self._cap = cap
            return True

    def read(self) -> Optional[np.ndarray]:
        """Grab a fresh frame; None when the camera is closed or yields nothing."""
        with self._lock:
            if self._cap is None:
                return None
            ok, frame = self._cap.read()
            if not ok or frame is None:
                return None
            self._latest = frame
            return frame

    def latest(self) -> Optional[np.ndarray]:
        """Most recently read frame (copied), without touching the device."""
        with self._lock:
            return None if self._latest is None else self._latest.copy()

    def release(self) -> None:
        with self._lock:
            if self._cap is not None:
                self._cap.release()
            self._cap = None
            self._latest = None
