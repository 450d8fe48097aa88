"""
Periodic background tasks (one daemon thread each, cancellable).
"""
from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Call `fn` every `interval` seconds until stopped.

    A failing call is logged and the schedule continues. A call that overruns
    the interval pushes the next one back; missed deadlines are not replayed.
    """
    def __init__(self, name: str, interval: float, fn: Callable[[], None],
                 initial_delay: Optional[float] = None):
        self.name = name
        self.interval = float(interval)
        self.fn = fn
        self.initial_delay = self.interval if initial_delay is None else float(initial_delay)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=f"task-{self.name}", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        t = self._thread
        if timeout is not None and t is not None and t is not threading.current_thread():
            t.join(timeout)

    def _loop(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        next_t = time.monotonic()
        while not self._stop.is_set():
            try:
                self.fn()
            except Exception:
                logger.exception(f"[scheduler] task {self.name} failed; continuing")
            next_t += self.interval
            now = time.monotonic()
            if next_t < now:
                next_t = now
            if self._stop.wait(next_t - now):
                break
