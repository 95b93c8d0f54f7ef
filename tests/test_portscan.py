import socket

import pytest

import leopard.portscan as portscan
from leopard.portscan import (
    ExcludePort,
    ExcludePortList,
    PortScan,
    parse_excluded_ranges,
)

NETSH_OUTPUT = """
Protocol tcp Port Exclusion Ranges

Start Port    End Port
----------    --------
      5357        5357
     50000       50059     *
      0          10

* - Administered port exclusions.
""".splitlines()


@pytest.mark.parametrize(
    ("port", "expected"),
    [("100", True), ("150", True), ("200", True), ("99", False), ("201", False)],
)
def test_is_excluded_boundaries(port, expected):
    ranges = ExcludePortList([ExcludePort(100, 200)])
    assert ranges.is_excluded(port) is expected


def test_is_excluded_rejects_non_numbers():
    ranges = ExcludePortList([ExcludePort(100, 200)])
    assert ranges.is_excluded("abc") is False
    assert ranges.is_excluded("") is False


def test_is_excluded_on_empty_list():
    assert ExcludePortList().is_excluded("100") is False


def test_parse_excluded_ranges_keeps_only_two_number_lines():
    assert parse_excluded_ranges(NETSH_OUTPUT) == [ExcludePort(5357, 5357)]


def test_parse_excluded_ranges_skips_half_numeric_lines():
    assert parse_excluded_ranges(["10 x", "x 10", "20 30"]) == [ExcludePort(20, 30)]


def test_scan_returns_configured_ranges(monkeypatch):
    monkeypatch.setattr(portscan, "_IS_WINDOWS", False)
    scanner = PortScan([ExcludePort(40000, 40010)])
    assert scanner.scan() == [ExcludePort(40000, 40010)]


def test_get_random_port_avoids_excluded_range(monkeypatch):
    monkeypatch.setattr(portscan, "_IS_WINDOWS", False)
    excluded = ExcludePort(30000, 44999)
    scanner = PortScan([excluded])
    for _ in range(5):
        port = int(scanner.get_random_port())
        assert port not in excluded
        assert 30000 <= port < 60000


def test_is_port_used_with_listener():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen()
        port = listener.getsockname()[1]
        assert PortScan().is_port_used(str(port)) is True


def test_is_port_used_on_closed_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
    assert PortScan().is_port_used(str(port)) is False


def test_is_port_used_rejects_invalid_port():
    assert PortScan().is_port_used("not-a-port") is False