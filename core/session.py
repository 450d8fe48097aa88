"""
Session orchestrator: owns the live MetricsSnapshot and Timeline and drives the
four independent triggers while active:

- detection loop (~DETECT_FPS)      -> LocalEstimator
- remote refresh (REMOTE_INTERVAL)  -> RemoteEstimator (network call off-thread)
- fuse + smooth (SMOOTH_INTERVAL)   -> MetricsSnapshot
- timeline (TIMELINE_INTERVAL)      -> TimelineRecorder

Per-activation state (estimators, walks) is created on Inactive -> Active and
dropped on Active -> Inactive. The snapshot and timeline survive deactivation
and are only cleared by reset().
"""
from __future__ import annotations
import logging
import threading
import time
from typing import List, Optional, Tuple

import numpy as np

from core.capture import FrameSource
from core.config import Settings
from core.detector import FaceTransformDetector
from core.fusion import BodyLanguageWalk, VoiceClarityWalk, fuse_estimates
from core.local import LocalEstimator
from core.models import MetricsSnapshot, SessionStatus, TimelineSummary
from core.remote import RemoteEstimator, RemoteScorer
from core.scheduler import PeriodicTask
from core.smoother import EMASmoother
from core.timeline import TimelineRecorder

logger = logging.getLogger(__name__)

DETECT_START_DELAY = 0.5   # give the camera a moment before the first detection
TASK_JOIN_TIMEOUT = 1.0   # per task, on deactivation


class EngagementSession:
    """Inactive / Active state machine around the metric pipeline."""
    def __init__(self, settings: Optional[Settings] = None,
                 frames: Optional[FrameSource] = None,
                 detector: Optional[FaceTransformDetector] = None,
                 scorer: Optional[RemoteScorer] = None,
                 seed: Optional[int] = None):
        self.s = settings or Settings()
        self.frames = frames if frames is not None else FrameSource(self.s.CAMERA_INDEX)
        self.detector = detector if detector is not None else FaceTransformDetector(self.s.FACE_MODEL_PATH)
        self._scorer = scorer
        self._seed = seed

        self._lock = threading.RLock()
        self._lifecycle = threading.Lock()
        self._active = False
        self._listening = False
        self._started_at: Optional[float] = None
        self._metrics = MetricsSnapshot()
        self._timeline = TimelineRecorder(self.s.TIMELINE_MAX_ENTRIES)
        self._smoother = EMASmoother(self.s.EMA_ALPHA)
        self._tasks: List[PeriodicTask] = []

        self._local: Optional[LocalEstimator] = None
        self._remote: Optional[RemoteEstimator] = None
        self._body: Optional[BodyLanguageWalk] = None
        self._voice: Optional[VoiceClarityWalk] = None

    # ---- consumer view ----
    @property
    def active(self) -> bool:
        return self._active

    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def metrics(self) -> MetricsSnapshot:
        with self._lock:
            return self._metrics.model_copy(deep=True)

    @property
    def timeline(self) -> Tuple[MetricsSnapshot, ...]:
        return self._timeline.entries()

    def recent(self, n: int = 10) -> List[MetricsSnapshot]:
        return self._timeline.recent(n)

    def summary(self) -> Optional[TimelineSummary]:
        return self._timeline.summary()

    def status(self) -> SessionStatus:
        with self._lock:
            return SessionStatus(
                active=self._active,
                listening=self._listening,
                started_at=self._started_at,
                timeline_length=len(self._timeline),
                metrics=self._metrics.model_copy(deep=True),
            )

    # ---- lifecycle ----
    def set_active(self, active: bool) -> None:
        if active:
            self.start()
        else:
            self.stop()

    def set_listening(self, listening: bool) -> None:
        self._listening = bool(listening)

    def start(self) -> None:
        with self._lifecycle, self._lock:
            if self._active:
                return
            rng_local, rng_walks = (np.random.default_rng(ss) for ss in np.random.SeedSequence(self._seed).spawn(2))
            self._local = LocalEstimator(rng=rng_local)
            if self._scorer is not None:
                self._remote = RemoteEstimator(self._scorer,
                                               max_size=(self.s.SNAPSHOT_WIDTH, self.s.SNAPSHOT_HEIGHT),
                                               quality=self.s.SNAPSHOT_QUALITY)
            else:
                self._remote = RemoteEstimator.from_settings(self.s)
            self._body = BodyLanguageWalk(rng=rng_walks)
            self._voice = VoiceClarityWalk(rng=rng_walks)

            self.frames.open()
            self.detector.load_async()

            self._tasks = [
                PeriodicTask("detect", 1.0 / self.s.DETECT_FPS, self.detect_tick, initial_delay=DETECT_START_DELAY),
                PeriodicTask("remote", self.s.REMOTE_INTERVAL, self.remote_tick),
                PeriodicTask("smooth", self.s.SMOOTH_INTERVAL, self.smooth_tick),
                PeriodicTask("timeline", self.s.TIMELINE_INTERVAL, self.record_tick),
            ]
            self._active = True
            self._started_at = time.time()
            for t in self._tasks:
                t.start()
        logger.info("[session] started")

    def stop(self) -> None:
        with self._lifecycle:
            with self._lock:
                if not self._active:
                    return
                self._active = False
                tasks, self._tasks = self._tasks, []
                if self._remote is not None:
                    self._remote.close()
            # join outside the state lock: a tick blocked on it must be able to finish
            for t in tasks:
                t.stop(timeout=TASK_JOIN_TIMEOUT)
            with self._lock:
                self._local = self._remote = self._body = self._voice = None
                self.frames.release()
        logger.info("[session] stopped")

    def reset(self) -> None:
        """Clear the timeline and the live snapshot; safe at any time."""
        with self._lock:
            self._timeline.reset()
            self._metrics = MetricsSnapshot()
        logger.debug("[session] reset")

    # ---- ticks (no-ops while inactive) ----
    def detect_tick(self) -> None:
        local = self._local
        if not self._active or local is None:
            return
        frame = self.frames.read()
        local.step(self.detector, frame, int(time.monotonic() * 1000))

    def remote_tick(self) -> Optional[threading.Thread]:
        remote = self._remote
        if not self._active or remote is None:
            return None
        return remote.refresh_async(self.frames.latest())

    def smooth_tick(self) -> Optional[MetricsSnapshot]:
        with self._lock:
            if not self._active:
                return None
            # one read of each source for the whole tick
            local = self._local.estimate
            remote = self._remote.estimate
            raw = fuse_estimates(local, remote, self.s.LOCAL_WEIGHT)
            raw["body_language"] = self._body.step(self.frames.available)
            raw["voice_clarity"] = self._voice.step(self._listening)
            self._metrics = self._smoother.tick(self._metrics, raw, remote.dominant_emotion)
            return self._metrics.model_copy(deep=True)

    def record_tick(self) -> Optional[MetricsSnapshot]:
        with self._lock:
            if not self._active:
                return None
            return self._timeline.record(self._metrics)
