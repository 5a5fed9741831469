import errno
import socket

import pytest

from pscan.models import PortState, Target
from pscan.probe import probe
from pscan.services import SERVICE_HINTS, service_hint


def test_open_port(loopback, listener):
    r = probe(loopback, listener, 1.0)
    assert r.state is PortState.OPEN
    assert r.port == listener
    assert r.is_open
    assert r.elapsed_s >= 0
    # ephemeral ports are never in the well-known table
    assert r.service_hint is None
    assert r.diagnostic is None


def test_closed_port(loopback, closed_ports):
    r = probe(loopback, closed_ports[0], 1.0)
    assert r.state is PortState.CLOSED
    assert r.service_hint is None


def test_timeout_is_filtered(loopback, monkeypatch):
    def slow(self, address):
        raise socket.timeout("timed out")

    monkeypatch.setattr(socket.socket, "connect", slow)
    r = probe(loopback, 80, 0.02)
    assert r.state is PortState.FILTERED
    assert r.diagnostic is None


def test_other_failure_is_error_with_diagnostic(loopback, monkeypatch):
    def unreachable(self, address):
        raise OSError(errno.ENETUNREACH, "Network is unreachable")

    monkeypatch.setattr(socket.socket, "connect", unreachable)
    r = probe(loopback, 22, 0.02)
    assert r.state is PortState.ERROR
    assert r.diagnostic == "Network is unreachable"
    # hint is only attached to open ports
    assert r.service_hint is None


def test_open_well_known_port_gets_hint(loopback, monkeypatch):
    monkeypatch.setattr(socket.socket, "connect", lambda self, address: None)
    r = probe(loopback, 22, 0.02)
    assert r.state is PortState.OPEN
    assert r.service_hint == "ssh"


def test_socket_is_closed_on_every_outcome(loopback, monkeypatch):
    closed = []
    real_close = socket.socket.close

    def tracking_close(self):
        closed.append(True)
        real_close(self)

    def refuse(self, address):
        raise ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")

    monkeypatch.setattr(socket.socket, "close", tracking_close)
    monkeypatch.setattr(socket.socket, "connect", refuse)
    assert probe(loopback, 80, 0.02).state is PortState.CLOSED
    assert closed == [True]


@pytest.mark.parametrize("port,timeout", [(0, 1.0), (65536, 1.0), (80, 0), (80, -1)])
def test_rejects_bad_arguments(loopback, port, timeout):
    with pytest.raises(ValueError):
        probe(loopback, port, timeout)


def test_service_hints():
    assert service_hint(21) == "ftp"
    assert service_hint(22) == "ssh"
    assert service_hint(25) == "smtp"
    assert service_hint(80) == "http"
    assert service_hint(443) == "https"
    assert service_hint(3306) == "mysql"
    assert service_hint(9000) is None


def test_service_table_is_read_only():
    with pytest.raises(TypeError):
        SERVICE_HINTS[9000] = "custom"


def _ipv6_sockets_work():
    try:
        socket.socket(socket.AF_INET6, socket.SOCK_STREAM).close()
    except OSError:
        return False
    return True


@pytest.mark.skipif(not _ipv6_sockets_work(), reason="no IPv6 support")
def test_scoped_ipv6_address_is_passed_through(monkeypatch):
    seen = []

    def record(self, address):
        seen.append(address)
        raise ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")

    monkeypatch.setattr(socket.socket, "connect", record)
    target = Target(host="router.local", address="fe80::1%lo", family=socket.AF_INET6)
    assert probe(target, 80, 0.02).state is PortState.CLOSED
    assert seen == [("fe80::1%lo", 80)]
