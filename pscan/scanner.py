from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Iterator, List, Optional, Set

from .aggregator import ResultAggregator
from .logger import log_event
from .models import PortResult, PortState, ProgressSnapshot, ScanConfig, ScanStatus, Target
from .ports import PortRange
from .probe import probe
from .progress import ProgressTracker

logger = logging.getLogger("pscan")

_HIDDEN_UNLESS_SHOW_CLOSED = (PortState.CLOSED, PortState.FILTERED)


class ScanRun:
    """
    A single pass over a port range.

    Iterating the run dispatches probes and yields results as they complete
    (completion order). Once the iterator is exhausted, ``status`` says whether
    the whole range was covered and ``results`` holds the summary in ascending
    port order. A run can only be iterated once.
    """

    def __init__(
        self,
        target: Target,
        ports: PortRange,
        config: ScanConfig,
        tracker: Optional[ProgressTracker] = None,
    ):
        self.target = target
        self.ports = ports
        self.config = config
        self.tracker = tracker or ProgressTracker(total=len(ports))
        self.aggregator = ResultAggregator()
        self.status: Optional[ScanStatus] = None
        self.dispatched = 0
        self.elapsed_s = 0.0

        self._started = False
        self._abandoned = False
        self._jobs = iter(ports)
        self._claim_lock = threading.Lock()

    def __iter__(self) -> Iterator[PortResult]:
        if self._started:
            raise RuntimeError("A scan run cannot be restarted")
        self._started = True
        return self._drive()

    @property
    def cancelled(self) -> bool:
        return self.status is ScanStatus.CANCELLED

    @property
    def results(self) -> List[PortResult]:
        return self.aggregator.ordered()

    def snapshot(self) -> ProgressSnapshot:
        return self.tracker.snapshot()

    def _claim(self) -> Optional[int]:
        with self._claim_lock:
            port = next(self._jobs, None)
            if port is not None:
                self.dispatched += 1
            return port

    def _emits(self, result: PortResult) -> bool:
        return self.config.show_closed or result.state not in _HIDDEN_UNLESS_SHOW_CLOSED

    def _drive(self) -> Iterator[PortResult]:
        cfg = self.config
        cancel = cfg.cancel_signal
        start_all = time.perf_counter()

        log_event(logger, "scan_start", {
            "target": self.target.address,
            "ports": len(self.ports),
            "timeout_s": cfg.timeout_s,
            "concurrency": cfg.concurrency,
        })

        try:
            # At most `concurrency` probes in flight; refill only as slots free up.
            with ThreadPoolExecutor(max_workers=cfg.concurrency, thread_name_prefix="probe") as pool:
                pending: Set[Future] = set()

                def submit_next() -> bool:
                    if cancel.is_set():
                        return False
                    port = self._claim()
                    if port is None:
                        return False
                    pending.add(pool.submit(probe, self.target, port, cfg.timeout_s))
                    return True

                while len(pending) < cfg.concurrency and submit_next():
                    pass

                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    ready = list(done)
                    while ready:
                        r = self._collect(ready.pop())
                        if not self._emits(r):
                            continue
                        try:
                            yield r
                        except GeneratorExit:
                            # Caller stopped iterating; account for everything already started.
                            remaining = ready + list(pending)
                            self._abandoned = bool(remaining)
                            for fut in remaining:
                                self._collect(fut)
                            raise

                    while len(pending) < cfg.concurrency and submit_next():
                        pass
        finally:
            self.elapsed_s = time.perf_counter() - start_all
            self._finish()

    def _collect(self, fut: Future) -> PortResult:
        r = fut.result()
        self.tracker.record(r)
        if self._emits(r):
            self.aggregator.add(r)
        return r

    def _finish(self) -> None:
        snap = self.tracker.snapshot()
        fields = {
            "target": self.target.address,
            "dispatched": self.dispatched,
            "attempted": snap.attempted,
            "open": snap.open,
            "elapsed_s": round(self.elapsed_s, 4),
        }
        if self._abandoned or self.dispatched < len(self.ports):
            self.status = ScanStatus.CANCELLED
            log_event(logger, "scan_cancelled", {**fields, "remaining": len(self.ports) - self.dispatched})
        else:
            self.status = ScanStatus.COMPLETED
            log_event(logger, "scan_complete", fields)


def run(
    target: Target,
    ports: PortRange,
    config: ScanConfig,
    tracker: Optional[ProgressTracker] = None,
) -> ScanRun:
    """Prepare a scan; probing starts when the returned run is iterated."""
    return ScanRun(target, ports, config, tracker=tracker)
