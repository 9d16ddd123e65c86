# src/tasknest/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# "tasknest": every module logger lives under this name.
APP_LOGGER = __name__.rpartition(".")[0] or __name__

_installed: list[logging.Handler] = []
_previous_root_level: int | None = None


class _ConsoleFilter(logging.Filter):
    """
    Keep the console readable while the task list is on screen:
    - tasknest records pass (the handler level still applies)
    - everything else, captured warnings included, only at ERROR+
    """

    def __init__(self, prefix: str = APP_LOGGER) -> None:
        super().__init__()
        self._prefix = prefix

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == self._prefix or name.startswith(self._prefix + "."):
            return True
        return record.levelno >= logging.ERROR


class _ConsoleFormatter(logging.Formatter):
    """
    One line per record, prefixed with "!" so it stands apart from task rows.

    Tracebacks are reduced to the exception summary; the log file keeps them in full.
    """

    def __init__(self) -> None:
        super().__init__(fmt="! %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        line = self.formatMessage(record)
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            line = f"{line} ({type(exc).__name__}: {exc})"
        return line


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasknest",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure logging for the console app and return the log file path.

    - Console (stderr): filtered, one line per record, WARNING+ by default
    - File (<log_dir>/tasknest.log): everything, with tracebacks

    Calling it again replaces the handlers installed by the previous call.
    """
    global _previous_root_level

    reset_logging()

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{APP_LOGGER}.log"

    root = logging.getLogger()
    _previous_root_level = root.level
    root.setLevel(logging.DEBUG)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(_ConsoleFormatter())
    ch.addFilter(_ConsoleFilter())

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    for h in (ch, fh):
        root.addHandler(h)
        _installed.append(h)

    logging.captureWarnings(True)
    return log_file


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging()."""
    global _previous_root_level

    root = logging.getLogger()
    while _installed:
        h = _installed.pop()
        root.removeHandler(h)
        h.close()

    if _previous_root_level is not None:
        root.setLevel(_previous_root_level)
        _previous_root_level = None
        logging.captureWarnings(False)
