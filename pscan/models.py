from __future__ import annotations

import enum
import socket
import threading
from dataclasses import dataclass, field
from typing import Optional


class PreconditionError(ValueError):
    """Raised before a scan starts when the target or port list is unusable."""


class PortState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    FILTERED = "filtered"
    ERROR = "error"


class ScanStatus(str, enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Target:
    host: str
    address: str
    family: int = socket.AF_INET

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class PortResult:
    port: int
    state: PortState
    elapsed_s: float
    service_hint: Optional[str] = None
    diagnostic: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.state is PortState.OPEN


@dataclass(frozen=True)
class ProgressSnapshot:
    attempted: int
    open: int
    total: int
    closed: int = 0
    filtered: int = 0
    errors: int = 0

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return self.attempted / self.total * 100.0


@dataclass
class ScanConfig:
    timeout_s: float
    concurrency: int = 1
    show_closed: bool = False
    cancel_signal: threading.Event = field(default_factory=threading.Event)

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout must be positive")
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")

    @classmethod
    def from_options(
        cls,
        timeout_ms: int,
        concurrency="sequential",
        show_closed: bool = False,
        parallel: bool = False,
        cancel_signal: Optional[threading.Event] = None,
    ) -> "ScanConfig":
        """
        Build a config from CLI-style options.
        concurrency is a positive int or "sequential"; it only applies when
        parallel is true, otherwise one probe runs at a time.
        """
        if timeout_ms < 1:
            raise ValueError("timeout must be at least 1 ms")

        if not parallel or concurrency == "sequential":
            workers = 1
        else:
            workers = int(concurrency)

        return cls(
            timeout_s=timeout_ms / 1000.0,
            concurrency=workers,
            show_closed=show_closed,
            cancel_signal=cancel_signal or threading.Event(),
        )
