"""Console log formatting."""

from __future__ import annotations

import logging
import os
import sys
from typing import Final, TextIO

RESET: Final[str] = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Colors the levelname field with ANSI escapes when writing to a terminal.

    Set ``NO_COLOR`` to turn colors off. Output that is not a TTY (files,
    pipes, container log collectors) is never colored.
    """

    LEVEL_COLORS: dict[int, str] = {
        logging.DEBUG: "\033[2;37m",  # dim
        logging.INFO: "\033[34m",  # blue
        logging.WARNING: "\033[33m",  # yellow
        logging.ERROR: "\033[31m",  # red
        logging.CRITICAL: "\033[1;41m",  # bold on red
    }

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        *,
        stream: TextIO | None = None,
    ) -> None:
        super().__init__(fmt, datefmt)
        self._stream = stream

    def use_color(self) -> bool:
        if "NO_COLOR" in os.environ:
            return False
        stream = self._stream or sys.stderr
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color():
            return super().format(record)

        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        colored.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(colored)
