"""Pick free TCP ports at random, honouring ranges the system reserves."""

from __future__ import annotations

import re
import secrets
import socket
import subprocess
import sys
from collections.abc import Iterable
from dataclasses import dataclass

from .command import new_cmd, run_and_parse

_TARGET = "127.0.0.1"
_PORT_SPAN = 30000
_DIAL_TIMEOUT = 0.5
_IS_WINDOWS = sys.platform == "win32"
_NETSH_ARGS = ("interface", "ipv4", "show", "excludedportrange", "protocol=tcp")
_INTEGER = re.compile(r"[+-]?\d+")


def _parse_int(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


@dataclass(frozen=True)
class ExcludePort:
    """An inclusive range of ports that must not be handed out."""

    start_port: int
    end_port: int

    def __contains__(self, port: int) -> bool:
        return self.start_port <= port <= self.end_port


class ExcludePortList(list):
    """A list of ``ExcludePort`` ranges."""

    def is_excluded(self, port: str) -> bool:
        """Tell whether the decimal *port* falls inside any range."""
        number = _parse_int(port)
        if number is None:
            return False
        return any(number in port_range for port_range in self)


def parse_excluded_ranges(lines: Iterable[str]) -> ExcludePortList:
    """Read excluded ranges from lines of two numbers: start and end port."""
    ranges = ExcludePortList()
    for line in lines:
        fields = line.split()
        if len(fields) != 2:
            continue
        numbers = [_parse_int(field) for field in fields]
        if None in numbers or 0 in numbers:
            continue
        start, end = numbers
        ranges.append(ExcludePort(start_port=start, end_port=end))
    return ranges


class PortScan:
    """Chooses random ports in the upper range, skipping excluded ones."""

    def __init__(self, exclude_ports: Iterable[ExcludePort] | None = None) -> None:
        self.exclude_ports = ExcludePortList(exclude_ports or ())

    def get_random_port(self) -> str:
        """Return a random port between 30000 and 59999, or "" if scanning fails."""
        while True:
            probe = secrets.randbelow(_PORT_SPAN)
            if self.is_port_used(str(probe)):
                continue
            port = str(probe + _PORT_SPAN)
            try:
                excluded = self.scan()
            except (OSError, subprocess.SubprocessError):
                return ""
            if not excluded.is_excluded(port):
                return port

    def is_port_used(self, port: str) -> bool:
        """Tell whether something on the local host accepts connections on *port*."""
        number = _parse_int(port)
        if number is None:
            return False
        try:
            with socket.create_connection((_TARGET, number), timeout=_DIAL_TIMEOUT):
                return True
        except (OSError, OverflowError, ValueError):
            return False

    def scan(self) -> ExcludePortList:
        """Return the excluded ranges, asking the system for them where it keeps any."""
        if _IS_WINDOWS:
            lines = run_and_parse(new_cmd("netsh", *_NETSH_ARGS))
            self.exclude_ports.extend(parse_excluded_ranges(lines))
        return self.exclude_ports