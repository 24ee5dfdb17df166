"""
WHFF-enD Release — Log sink with tones and step duration tracking.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATE_FORMAT = "%H:%M:%S"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

TONE_COLORS = {
    "muted": "\x1b[90m",
    "failure": "\x1b[31m",
    "success": "\x1b[32m",
    "notice": "\x1b[34m",
    "warning": "\x1b[33m",
}
RESET = "\x1b[0m"


class ToneFormatter(logging.Formatter):
    """Console formatter that colors a record by its ``tone`` when enabled."""

    def __init__(self, color: bool):
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        tone = getattr(record, "tone", None)
        if self.color and tone in TONE_COLORS:
            return f"{TONE_COLORS[tone]}{text}{RESET}"
        return text


class LogSink:
    """
    Logging capability handed to every pipeline stage.

    Stages never print directly; they pick a tone and the sink's handlers
    decide how (or whether) to color it.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _emit(self, level: int, tone: str, msg: str, *args) -> None:
        self.logger.log(level, msg, *args, extra={"tone": tone})

    def debug(self, msg: str, *args) -> None:
        self._emit(logging.DEBUG, "muted", msg, *args)

    def muted(self, msg: str, *args) -> None:
        self._emit(logging.INFO, "muted", msg, *args)

    def info(self, msg: str, *args) -> None:
        self._emit(logging.INFO, "plain", msg, *args)

    def notice(self, msg: str, *args) -> None:
        self._emit(logging.INFO, "notice", msg, *args)

    def success(self, msg: str, *args) -> None:
        self._emit(logging.INFO, "success", "✔ " + msg, *args)

    def warning(self, msg: str, *args) -> None:
        self._emit(logging.WARNING, "warning", "⚠ " + msg, *args)

    def error(self, msg: str, *args) -> None:
        self._emit(logging.ERROR, "failure", msg, *args)

    def failure(self, msg: str, *args) -> None:
        """Operator-facing error: rendered uppercase so it stands out."""
        text = msg % args if args else msg
        self._emit(logging.ERROR, "failure", "✗ %s", text.upper())


def configure_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    color: bool = True,
    name: str = "whff_release",
) -> LogSink:
    """Attach console (and optional append-mode file) handlers and return a sink."""
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ToneFormatter(color=color and sys.stderr.isatty()))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=FILE_DATE_FORMAT))
        logger.addHandler(file_handler)

    return LogSink(logger)


@contextmanager
def step_timer(sink: LogSink, step_name: str) -> Generator[None, None, None]:
    """Context manager that logs the start and duration of a pipeline step."""
    sink.muted("▶ %s — started", step_name)
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        sink.muted("■ %s — finished in %.0f ms", step_name, elapsed_ms)
