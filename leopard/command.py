"""Build external commands and run them, collecting their output line by line."""

from __future__ import annotations

import locale
import subprocess
import sys
from collections.abc import Iterable
from typing import Any


def new_cmd(command: str, *args: str) -> list[str]:
    """Return the argument vector that runs *command* with *args*."""
    return [command, *args]


def _popen_options() -> dict[str, Any]:
    if sys.platform == "win32":
        # Keep console programs from flashing a window.
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {}


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def run_and_parse(cmd: Iterable[str]) -> list[str]:
    """Run *cmd* to completion and return its standard output as lines.

    Raises ``OSError`` if the program cannot be started and
    ``subprocess.CalledProcessError`` if it exits with a non-zero status.
    """
    completed = subprocess.run(
        list(cmd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        check=True,
        **_popen_options(),
    )
    text = completed.stdout.decode(locale.getpreferredencoding(False), errors="replace")
    return _split_lines(text)