"""A logging handler that writes to one file per day and prunes old files."""

from __future__ import annotations

import logging
import os
import re
import threading
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import TextIO

_FILE_DATE_FORMAT = "%Y-%m-%d"
_ENTRY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_FILE_MAX_AGE = timedelta(days=7)
_DATE_IN_NAME = re.compile(r"(\d{4}-\d{2}-\d{2})")

Prettyfier = Callable[[str, int], str]


class FileHandler(logging.Handler):
    """Writes records to ``<folder>/<app>-<date>.log``, switching files each day."""

    def __init__(self, path: str, app_name: str, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.log_folder = path
        self.app_name = app_name
        self.report_caller = False
        self.prettyfier: Prettyfier | None = None
        self._stream: TextIO | None = None
        self._last_day: date | None = None

    def set_report_caller(self, report_caller: bool, prettyfier: Prettyfier | None) -> None:
        """Choose whether lines name their caller, and how the caller is shown."""
        self.report_caller = report_caller
        self.prettyfier = prettyfier

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as one plain-text line."""
        level_text = record.levelname.upper()[:4]
        when = datetime.fromtimestamp(record.created).strftime(_ENTRY_TIME_FORMAT)
        header = f"{level_text}[{self.app_name}][{when}]"
        if self.report_caller and self.prettyfier is not None:
            header += f"[{self.prettyfier(record.pathname, record.lineno)}]"
        return f"{header} {record.getMessage():<44}\n"

    def emit(self, record: logging.LogRecord) -> None:
        """Append *record* to today's file, opening a new file when the day changes."""
        message = self.format(record)
        day = datetime.fromtimestamp(record.created).date()
        if self._stream is None or self._last_day != day:
            self._open_file()
        assert self._stream is not None
        self._stream.write(message)
        self._stream.flush()
        self._last_day = day

    def close(self) -> None:
        self.acquire()
        try:
            if self._stream is not None:
                self._stream.close()
                self._stream = None
        finally:
            self.release()
        super().close()

    def delete_expired_files(self) -> None:
        """Remove files whose name carries a date more than seven days old."""
        now = datetime.now()
        with os.scandir(self.log_folder) as entries:
            for entry in entries:
                if entry.is_dir():
                    continue
                match = _DATE_IN_NAME.search(entry.name)
                if match is None:
                    continue
                try:
                    stamp = datetime.strptime(match.group(1), _FILE_DATE_FORMAT)
                except ValueError:
                    continue
                if now - stamp > _FILE_MAX_AGE:
                    os.remove(os.path.join(self.log_folder, entry.name))

    def _open_file(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        os.makedirs(self.log_folder, exist_ok=True)
        name = f"{self.app_name}-{datetime.now().strftime(_FILE_DATE_FORMAT)}.log"
        path = os.path.normpath(os.path.join(self.log_folder, name))
        self._stream = open(path, "a", encoding="utf-8", newline="")
        self.delete_expired_files()


_singleton: FileHandler | None = None
_singleton_lock = threading.Lock()


def get(level: int, path: str, app_name: str) -> FileHandler:
    """Return the shared file handler, creating it on the first call."""
    global _singleton
    with _singleton_lock:
        if _singleton is None:
            _singleton = FileHandler(path, app_name, level)
        return _singleton