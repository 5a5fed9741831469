import pytest

from pscan.models import PreconditionError
from pscan.ports import PortRange, parse_ports


def test_parse_range():
    r = parse_ports("1-1000")
    assert len(r) == 1000
    assert r.ports[0] == 1
    assert r.ports[-1] == 1000


def test_parse_mixed_dedupes_and_sorts():
    r = parse_ports(" 443, 22,80-82,81 ,22 ")
    assert list(r) == [22, 80, 81, 82, 443]


def test_parse_single_port():
    assert list(parse_ports("8080")) == [8080]


@pytest.mark.parametrize("spec", ["0-10", "1-0", "100-1", "65536", "0", "1-65536"])
def test_parse_rejects_out_of_range(spec):
    with pytest.raises(PreconditionError):
        parse_ports(spec)


@pytest.mark.parametrize("spec", ["", "   ", ",", "http", "1-x", "80-"])
def test_parse_rejects_garbage(spec):
    with pytest.raises(PreconditionError):
        parse_ports(spec)


def test_precondition_error_is_value_error():
    with pytest.raises(ValueError):
        parse_ports("abc")


def test_port_range_must_be_strictly_ascending():
    with pytest.raises(PreconditionError):
        PortRange((80, 22))
    with pytest.raises(PreconditionError):
        PortRange((22, 22))
    with pytest.raises(PreconditionError):
        PortRange(())


def test_port_range_of_normalises():
    r = PortRange.of([9, 3, 3, 7])
    assert r.ports == (3, 7, 9)
    assert 7 in r
    assert 8 not in r


def test_describe():
    assert parse_ports("1-1000").describe() == "1-1000"
    assert parse_ports("22").describe() == "22"
    assert parse_ports("22,80,443").describe() == "3 ports between 22 and 443"
