"""
Remote (semantic) estimator: periodic JPEG snapshot -> hosted vision model scores.

The scorer is a network collaborator; every failure mode (no frame, HTTP error,
timeout, unparseable or incomplete JSON) is treated as "no update" and the last
good RemoteEstimate is kept as-is.
"""
from __future__ import annotations
import base64
import json
import logging
import re
import threading
from typing import Dict, Optional

import cv2
import numpy as np
import requests
from pydantic import ValidationError

from core.config import Settings
from core.models import RemoteEstimate

logger = logging.getLogger(__name__)

# Wire keys that must all be present for a response to be accepted
REQUIRED_KEYS = (
    "eyeContact",
    "confidence",
    "engagement",
    "stress",
    "positivity",
    "professionalPresence",
    "dominantEmotion",
)

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


class MalformedEstimate(ValueError):
    """Remote payload is missing fields or carries garbage values."""


def encode_frame(frame: Optional[np.ndarray],
                 max_size: tuple[int, int] = (320, 240),
                 quality: float = 0.6) -> Optional[str]:
    """
    Downscale a BGR frame to fit within max_size and return it as base64 JPEG.

    Returns None when there is no usable frame.
    """
    if frame is None or getattr(frame, "size", 0) == 0:
        return None
    h, w = frame.shape[:2]
    max_w, max_h = max_size
    scale = min(1.0, max_w / float(w), max_h / float(h))
    if scale < 1.0:
        frame = cv2.resize(frame, (max(1, int(w * scale)), max(1, int(h * scale))),
                           interpolation=cv2.INTER_AREA)
    q = int(round(max(0.0, min(1.0, quality)) * 100))
    ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), q])
    if not ok:
        return None
    return base64.b64encode(buf.tobytes()).decode("ascii")


def extract_json_object(text: str) -> Dict:
    """Pull the first {...} block out of free model text (markdown fences etc.)."""
    m = _JSON_BLOCK.search(text or "")
    if not m:
        raise MalformedEstimate("no JSON object in model reply")
    try:
        return json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise MalformedEstimate(f"invalid JSON in model reply: {e}") from e


def parse_estimate(payload) -> RemoteEstimate:
    """Validate a scorer payload; raises MalformedEstimate on anything unusable."""
    if isinstance(payload, str):
        payload = extract_json_object(payload)
    if not isinstance(payload, dict):
        raise MalformedEstimate(f"expected a JSON object, got {type(payload).__name__}")
    if "emotionData" in payload:
        return parse_estimate(payload["emotionData"])
    missing = [k for k in REQUIRED_KEYS if payload.get(k) is None]
    if missing:
        raise MalformedEstimate(f"missing fields: {', '.join(missing)}")
    try:
        return RemoteEstimate.model_validate(payload)
    except ValidationError as e:
        raise MalformedEstimate(str(e)) from e


class RemoteScorer:
    """HTTP client for the hosted emotion/presence scoring endpoint."""
    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 20.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def score(self, frame_b64: str) -> RemoteEstimate:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        body = {"action": "analyze_emotion", "frameBase64": frame_b64}
        resp = self.session.post(self.url, json=body, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError:
            data = resp.text
        return parse_estimate(data)


class RemoteEstimator:
    """
    Caches the latest RemoteEstimate and refreshes it from snapshots.

    At most one request is in flight; a refresh that finds one outstanding is
    skipped, not queued. close() invalidates any request still in flight so its
    result is never applied.
    """
    def __init__(self, scorer: Optional[RemoteScorer],
                 max_size: tuple[int, int] = (320, 240),
                 quality: float = 0.6):
        self.scorer = scorer
        self.max_size = max_size
        self.quality = quality
        self._estimate = RemoteEstimate()
        self._inflight = threading.Lock()
        self._generation = 0
        self._closed = False
        self.failures = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RemoteEstimator":
        scorer = None
        if settings.REMOTE_URL:
            scorer = RemoteScorer(settings.REMOTE_URL, settings.REMOTE_API_KEY, settings.REMOTE_TIMEOUT)
        else:
            logger.warning("[remote] REMOTE_URL not set; remote estimate stays at neutral default")
        return cls(scorer,
                   max_size=(settings.SNAPSHOT_WIDTH, settings.SNAPSHOT_HEIGHT),
                   quality=settings.SNAPSHOT_QUALITY)

    @property
    def estimate(self) -> RemoteEstimate:
        return self._estimate

    @property
    def busy(self) -> bool:
        return self._inflight.locked()

    def refresh(self, frame: Optional[np.ndarray]) -> bool:
        """
        Capture -> score -> replace. Returns True only if the estimate was replaced.
        """
        if self._closed or self.scorer is None:
            return False
        if not self._inflight.acquire(blocking=False):
            logger.debug("[remote] request still in flight; skipping this tick")
            return False
        generation = self._generation
        try:
            frame_b64 = encode_frame(frame, self.max_size, self.quality)
            if frame_b64 is None:
                logger.debug("[remote] no frame ready; keeping previous estimate")
                return False
            try:
                estimate = self.scorer.score(frame_b64)
            except MalformedEstimate as e:
                self.failures += 1
                logger.warning(f"[remote] malformed response discarded: {e}")
                return False
            except requests.RequestException as e:
                self.failures += 1
                logger.warning(f"[remote] scoring request failed: {e}")
                return False
            except Exception:
                self.failures += 1
                logger.exception("[remote] scoring failed")
                return False
            if self._closed or generation != self._generation:
                logger.debug("[remote] session closed during request; dropping result")
                return False
            self._estimate = estimate
            logger.debug(f"[remote] estimate updated emotion={estimate.dominant_emotion}")
            return True
        finally:
            self._inflight.release()

    def refresh_async(self, frame: Optional[np.ndarray]) -> Optional[threading.Thread]:
        """Run refresh on a worker thread so the network call never blocks a tick."""
        if self._closed or self.scorer is None or self.busy:
            return None
        t = threading.Thread(target=self.refresh, args=(frame,), daemon=True)
        t.start()
        return t

    def close(self) -> None:
        self._closed = True
        self._generation += 1
