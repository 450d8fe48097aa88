import numpy as np
import pytest

import core.session as session_mod
from core.config import Settings

IDENTITY = [1.0, 0.0, 0.0, 0.0,
            0.0, 1.0, 0.0, 0.0,
            0.0, 0.0, 1.0, 0.0,
            0.0, 0.0, 0.0, 1.0]


class DummyFrames:
    """Stands in for FrameSource; `frame=None` behaves like a missing camera."""
    def __init__(self, frame=None):
        self.frame = frame
        self.available = False
        self.opened = 0
        self.released = 0
    def open(self):
        self.opened += 1
        self.available = self.frame is not None
        return self.available
    def read(self):
        return None if self.frame is None else self.frame.copy()
    def latest(self):
        return self.read()
    def release(self):
        self.released += 1
        self.available = False


class DummyDetector:
    def __init__(self, ready=True, result=IDENTITY):
        self.ready = ready
        self.result = result
        self.calls = 0
    def load_async(self):
        pass
    def detect(self, frame, ts_ms):
        self.calls += 1
        return self.result


class ManualTask:
    """PeriodicTask replacement: never spawns a thread, ticks are driven by the test."""
    instances = []
    def __init__(self, name, interval, fn, initial_delay=None):
        self.name, self.interval, self.fn = name, interval, fn
        self.started = False
        self.stopped = False
        ManualTask.instances.append(self)
    def start(self):
        self.started = True
    def stop(self, timeout=None):
        self.stopped = True
        self.join_timeout = timeout


@pytest.fixture
def manual_tasks(monkeypatch):
    ManualTask.instances = []
    monkeypatch.setattr(session_mod, "PeriodicTask", ManualTask)
    return ManualTask.instances


@pytest.fixture
def settings():
    return Settings(REMOTE_URL=None, TIMELINE_MAX_ENTRIES=None)


@pytest.fixture
def frame():
    return np.full((480, 640, 3), 127, dtype=np.uint8)
