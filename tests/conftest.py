import logging
import socket
import socketserver
import threading

import pytest

from pscan.models import Target


class _Handler(socketserver.BaseRequestHandler):
    def handle(self):
        # Scanner never sends anything; just let the connection close.
        pass


@pytest.fixture
def loopback():
    return Target(host="localhost", address="127.0.0.1")


@pytest.fixture
def listener():
    with socketserver.TCPServer(("127.0.0.1", 0), _Handler) as server:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            yield server.server_address[1]
        finally:
            server.shutdown()
            thread.join()


def free_ports(n):
    """Ports that had nothing bound a moment ago."""
    socks = []
    try:
        for _ in range(n):
            s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            s.bind(("127.0.0.1", 0))
            socks.append(s)
        return sorted(s.getsockname()[1] for s in socks)
    finally:
        for s in socks:
            s.close()


@pytest.fixture
def closed_ports():
    return free_ports(50)


@pytest.fixture(autouse=True)
def _reset_pscan_logger():
    logger = logging.getLogger("pscan")
    level = logger.level
    yield
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.setLevel(level)
