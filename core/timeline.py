"""
Timeline of recorded metric snapshots for one practice session.
"""
from __future__ import annotations
import threading
from collections import deque
from typing import Deque, List, Optional, Tuple

from core.fusion import round_half_up
from core.models import MetricsSnapshot, TimelineSummary

SUMMARY_METRICS = ("eye_contact", "confidence", "engagement", "stress", "positivity")


class TimelineRecorder:
    """
    Append-only list of deep-copied snapshots.

    max_entries=None keeps every entry; otherwise the oldest are dropped.
    """
    def __init__(self, max_entries: Optional[int] = None):
        self._entries: Deque[MetricsSnapshot] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, snapshot: MetricsSnapshot) -> MetricsSnapshot:
        copy = snapshot.model_copy(deep=True)
        with self._lock:
            self._entries.append(copy)
        return copy

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def entries(self) -> Tuple[MetricsSnapshot, ...]:
        with self._lock:
            return tuple(e.model_copy(deep=True) for e in self._entries)

    def recent(self, n: int = 10) -> List[MetricsSnapshot]:
        if n <= 0:
            return []
        return list(self.entries()[-n:])

    def summary(self) -> Optional[TimelineSummary]:
        """Rounded per-metric averages over the whole timeline (None if empty)."""
        entries = self.entries()
        if not entries:
            return None
        avgs = {
            k: round_half_up(sum(getattr(e, k) for e in entries) / len(entries))
            for k in SUMMARY_METRICS
        }
        return TimelineSummary(samples=len(entries), **avgs)
