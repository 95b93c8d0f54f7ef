import subprocess
import sys

import pytest

from leopard.command import new_cmd, run_and_parse


def test_new_cmd_builds_argument_vector():
    assert new_cmd("netsh", "interface", "ipv4") == ["netsh", "interface", "ipv4"]


def test_new_cmd_without_arguments():
    assert new_cmd("netsh") == ["netsh"]


def test_run_and_parse_returns_lines():
    cmd = new_cmd(sys.executable, "-c", "print('first'); print('second')")
    assert run_and_parse(cmd) == ["first", "second"]


def test_run_and_parse_strips_carriage_returns_and_keeps_last_line():
    script = "import sys; sys.stdout.buffer.write(b'alpha\\r\\nbeta')"
    assert run_and_parse(new_cmd(sys.executable, "-c", script)) == ["alpha", "beta"]


def test_run_and_parse_empty_output():
    assert run_and_parse(new_cmd(sys.executable, "-c", "pass")) == []


def test_run_and_parse_keeps_blank_lines_inside_output():
    cmd = new_cmd(sys.executable, "-c", "print('a'); print(); print('b')")
    assert run_and_parse(cmd) == ["a", "", "b"]


def test_run_and_parse_raises_on_failure_status():
    cmd = new_cmd(sys.executable, "-c", "import sys; sys.exit(3)")
    with pytest.raises(subprocess.CalledProcessError) as info:
        run_and_parse(cmd)
    assert info.value.returncode == 3


def test_run_and_parse_raises_when_program_missing():
    with pytest.raises(OSError):
        run_and_parse(new_cmd("leopard-no-such-program-anywhere"))