# src/campus_planner/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "planner.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_PACKAGE_PREFIX = "campus_planner."

# Package loggers that only reach the console at WARNING or above.
_QUIET_PACKAGE_LOGGERS = ("campus_planner.storage.",)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console gate. Planner logs pass at the handler level, except the SQLite
    layer (WARNING+). Everything else, captured warnings included, needs ERROR.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith(_PACKAGE_PREFIX):
            return record.levelno >= logging.ERROR
        if name.startswith(_QUIET_PACKAGE_LOGGERS):
            return record.levelno >= logging.WARNING
        return True


def _handler(handler: logging.Handler, level: int, fmt: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/planner",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to <log_dir>/planner.log (everything
    from file_level up). Replaces handlers from any earlier call.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for old in list(root.handlers):
        root.removeHandler(old)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = _handler(logging.StreamHandler(sys.stderr), console_level, fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)
    root.addHandler(_handler(logging.FileHandler(str(log_file), encoding="utf-8"), file_level, fmt))

    logging.captureWarnings(True)
    return log_file
