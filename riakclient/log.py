"""A simple file logger that timestamps each message."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import IO, Optional, Union

_BUFFER = 2048

Level = Union[int, str]


def _describe(level: Level) -> str:
    if isinstance(level, str):
        return level
    return logging.getLevelName(level)


def _is_critical(level: Level) -> bool:
    if isinstance(level, str):
        return level.upper() == "CRITICAL"
    return level == logging.CRITICAL


def format_log_line(level: Level, message: str, when: Optional[datetime] = None) -> str:
    """Format one log line: date, time, zone, level name and message.

    The line ends in a newline unless it has to be cut to fit the
    2047-character limit.
    """
    if when is None:
        when = datetime.now().astimezone()
    elif when.tzinfo is None:
        when = when.astimezone()
    stamp = when.strftime("%Y-%m-%d %H:%M:%S %Z")
    text = f"{stamp} {_describe(level)} {message}"
    if len(text) < _BUFFER - 1:
        return text + "\n"
    return text[: _BUFFER - 1]


@dataclass
class FileLog:
    """Writes log lines to a file; critical lines also go to standard error."""

    filename: str = "riak.log"
    _fp: Optional[IO[str]] = field(default=None, init=False, repr=False)

    @property
    def is_open(self) -> bool:
        """True while the log file is open."""
        return self._fp is not None

    def open(self) -> None:
        """Create or truncate the log file; raises OSError when it cannot."""
        self._fp = open(self.filename, "w+", encoding="utf-8")
        print(f"Log file {self.filename} initialized.")

    def close(self) -> None:
        """Close the log file if it is open."""
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def log(self, level: Level, message: str) -> Optional[str]:
        """Write one message and return the line, or None if the log is closed."""
        if self._fp is None:
            return None
        line = format_log_line(level, message)
        self._fp.write(line)
        self._fp.flush()
        if _is_critical(level):
            sys.stderr.write(line)
        return line

    def __enter__(self) -> "FileLog":
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()