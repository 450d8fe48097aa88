# core/live.py
"""
Live camera overlay.

Runs an EngagementSession (detector loop, remote refresh, smoothing, timeline
in the background) and shows the latest camera frame with the smoothed
metrics drawn on top. Press 'q' to quit.
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from core.config import Settings
from core.capture import FrameSource
from core.session import EngagementSession
from core.visual import draw_metrics

logger = logging.getLogger(__name__)

WINDOW_TITLE = "Interview Live (q to quit)"
BLANK_SIZE = (480, 640)   # shown until the first frame arrives


def run_live_overlay(settings: Settings,
                     camera_index: Optional[int] = None,
                     session: Optional[EngagementSession] = None,
                     listening: bool = False) -> EngagementSession:
    """
    Open the session, draw metrics over the live feed until 'q' is pressed.

    Returns the (deactivated) session so callers can read the timeline.
    """
    if session is None:
        cam_idx = settings.CAMERA_INDEX if camera_index is None else camera_index
        session = EngagementSession(settings, frames=FrameSource(cam_idx))
    session.set_listening(listening)
    session.set_active(True)

    blank = np.zeros((*BLANK_SIZE, 3), dtype=np.uint8)
    try:
        while True:
            frame = session.frames.latest()
            annotated = draw_metrics(frame if frame is not None else blank, session.metrics)
            cv2.imshow(WINDOW_TITLE, annotated)
            key = cv2.waitKey(15) & 0xFF
            if key == ord("q"):
                break
            if key == ord("l"):
                session.set_listening(not session.listening)
                logger.info(f"[live] listening={session.listening}")
    finally:
        session.set_active(False)
        cv2.destroyAllWindows()
    return session
