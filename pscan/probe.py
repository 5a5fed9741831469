from __future__ import annotations

import logging
import socket
import time
from typing import Optional

from .models import PortResult, PortState, Target
from .ports import MAX_PORT, MIN_PORT
from .services import service_hint

logger = logging.getLogger("pscan")


def probe(target: Target, port: int, timeout_s: float) -> PortResult:
    """
    One connect attempt against target:port, no retries.
    The socket is closed right after connect() returns; nothing is sent.
    """
    if port < MIN_PORT or port > MAX_PORT:
        raise ValueError(f"Invalid port: {port}")
    if timeout_s <= 0:
        raise ValueError("timeout must be positive")

    start = time.perf_counter()
    sock: Optional[socket.socket] = None
    try:
        sock = socket.socket(target.family, socket.SOCK_STREAM)
        sock.settimeout(timeout_s)
        sock.connect((target.address, port))
        state = PortState.OPEN
        diagnostic = None
    except socket.timeout:
        state = PortState.FILTERED
        diagnostic = None
    except ConnectionRefusedError:
        state = PortState.CLOSED
        diagnostic = None
    except OSError as e:
        state = PortState.ERROR
        diagnostic = e.strerror or str(e)
        logger.debug("probe %s:%d failed: %s", target.address, port, diagnostic)
    finally:
        if sock:
            sock.close()

    elapsed = time.perf_counter() - start
    return PortResult(
        port=port,
        state=state,
        elapsed_s=round(elapsed, 4),
        service_hint=service_hint(port) if state is PortState.OPEN else None,
        diagnostic=diagnostic,
    )
