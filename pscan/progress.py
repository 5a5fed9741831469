from __future__ import annotations

import threading

from .models import PortResult, PortState, ProgressSnapshot


class ProgressTracker:
    """
    Counters shared by every probe worker.
    One lock guards the whole group so snapshots are never torn.
    """

    def __init__(self, total: int):
        self.total = total
        self._lock = threading.Lock()
        self._attempted = 0
        self._counts = {state: 0 for state in PortState}

    def record(self, result: PortResult) -> None:
        with self._lock:
            self._attempted += 1
            self._counts[result.state] += 1

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                attempted=self._attempted,
                open=self._counts[PortState.OPEN],
                total=self.total,
                closed=self._counts[PortState.CLOSED],
                filtered=self._counts[PortState.FILTERED],
                errors=self._counts[PortState.ERROR],
            )
