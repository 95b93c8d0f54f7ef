"""Process-wide logger with coloured console output and a daily log file."""

from __future__ import annotations

import inspect
import logging
import os
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from . import filehook

TRACE = logging.DEBUG - 5
logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_RED = 31
_YELLOW = 33
_BLUE = 36
_GRAY = 37

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LogConfig:
    """Logging settings read from the environment."""

    level: str = ""
    need_caller: bool = False
    disable_console: bool = False
    disable_file: bool = False

    @property
    def log_level(self) -> int:
        """The level as a ``logging`` number; unknown names mean INFO."""
        return _LEVELS.get(self.level.lower(), logging.INFO)


def _parse_bool(name: str, text: str | None) -> bool:
    if text is None or text == "":
        return False
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{name}: invalid boolean value {text!r}")


def read_config(environ: Mapping[str, str] | None = None) -> LogConfig:
    """Build a ``LogConfig`` from LOG_* variables; raise ``ValueError`` on bad booleans."""
    env = os.environ if environ is None else environ
    return LogConfig(
        level=env.get("LOG_LEVEL", ""),
        need_caller=_parse_bool("LOG_NEED_CALLER", env.get("LOG_NEED_CALLER")),
        disable_console=_parse_bool("LOG_DISABLE_CONSOLE", env.get("LOG_DISABLE_CONSOLE")),
        disable_file=_parse_bool("LOG_DISABLE_FILE", env.get("LOG_DISABLE_FILE")),
    )


def caller_prettyfier(path: str, line: int) -> str:
    """Show a caller as ``file:line``, or "" when the path has no directory part."""
    parts = path.replace("\\", "/").split("/")
    if len(parts) < 2:
        return ""
    return f"{parts[-1]}:{line}"


def _level_color(levelno: int) -> int:
    if levelno <= logging.DEBUG:
        return _GRAY
    if levelno == logging.WARNING:
        return _YELLOW
    if levelno >= logging.ERROR:
        return _RED
    return _BLUE


class ConsoleFormatter(logging.Formatter):
    """Formats records as coloured single lines for a terminal."""

    def __init__(self, app_name: str, prettyfier=caller_prettyfier,
                 report_caller: bool = False) -> None:
        super().__init__()
        self.app_name = app_name
        self.prettyfier = prettyfier
        self.report_caller = report_caller

    def format(self, record: logging.LogRecord) -> str:
        level_text = record.levelname.upper()[:4]
        when = datetime.fromtimestamp(record.created).strftime(_TIME_FORMAT)
        header = (
            f"\x1b[{_level_color(record.levelno)}m{level_text}"
            f"\x1b[33m[{self.app_name}]\x1b[0m[{when}]"
        )
        if self.report_caller and self.prettyfier is not None:
            header += f"[{self.prettyfier(record.pathname, record.lineno)}]"
        return f"{header} {record.getMessage():<44}\n"


_singleton: logging.Logger | None = None
_init_lock = threading.Lock()


def _caller_app_name() -> str:
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame is not None and frame.f_back else None
        if caller is None:
            return "UNKNOWN"
        filename = os.path.abspath(caller.f_code.co_filename)
        return os.path.basename(os.path.dirname(filename)).upper()[:3]
    finally:
        del frame


def _default_log_folder() -> str:
    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    base = os.path.dirname(os.path.abspath(program))
    return os.path.normpath(os.path.join(base, "..", "logs"))


def init(app_name: str | None = None) -> logging.Logger:
    """Create the process-wide logger once and return it.

    Without *app_name* the name comes from the caller's directory.
    """
    global _singleton
    name = _caller_app_name() if app_name is None else app_name.upper()[:3]
    with _init_lock:
        if _singleton is not None:
            return _singleton
        config = read_config()
        logger = logging.Logger(name, config.log_level)
        if not config.disable_console:
            console = logging.StreamHandler(sys.stderr)
            console.terminator = ""
            console.setFormatter(
                ConsoleFormatter(name, caller_prettyfier, config.need_caller)
            )
            logger.addHandler(console)
        if not config.disable_file:
            file_handler = filehook.get(config.log_level, _default_log_folder(), name)
            file_handler.set_report_caller(config.need_caller, caller_prettyfier)
            logger.addHandler(file_handler)
        _singleton = logger
        return logger


def get() -> logging.Logger:
    """Return the process-wide logger; raise ``RuntimeError`` before ``init``."""
    if _singleton is None:
        raise RuntimeError("log not initialized")
    return _singleton