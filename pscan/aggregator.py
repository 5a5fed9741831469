from __future__ import annotations

import threading
from typing import Dict, List

from .models import PortResult


class ResultAggregator:
    """
    Keeps results in arrival order for the live view and re-sorts by port
    for the summary. A port can only be added once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._arrived: List[PortResult] = []
        self._by_port: Dict[int, PortResult] = {}

    def add(self, result: PortResult) -> None:
        with self._lock:
            if result.port in self._by_port:
                raise ValueError(f"Duplicate result for port {result.port}")
            self._by_port[result.port] = result
            self._arrived.append(result)

    def __len__(self) -> int:
        with self._lock:
            return len(self._arrived)

    def completed(self) -> List[PortResult]:
        with self._lock:
            return list(self._arrived)

    def ordered(self) -> List[PortResult]:
        with self._lock:
            return [self._by_port[p] for p in sorted(self._by_port)]
