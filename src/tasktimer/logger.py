from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .utils import ensure_dir

LOG_NAME = "tasktimer"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

log = logging.getLogger(LOG_NAME)
log.addHandler(logging.NullHandler())


def _has_handler(logger: logging.Logger, name: str) -> bool:
    return any(h.get_name() == name for h in logger.handlers)


def configure_logging(
    log_dir: Optional[Path],
    level: int | str = logging.INFO,
    console: bool = False,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """Attach file and (optionally) console handlers to the application logger.

    Handlers are registered by name, so calling this more than once in a process does not
    duplicate output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    log.propagate = False
    log.setLevel(logging.DEBUG if console else level)
    fmt = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    # Persistent rotating log next to the data files
    file_handler_name = f"{LOG_NAME}:file"
    if log_dir is not None and not _has_handler(log, file_handler_name):
        ensure_dir(log_dir)
        file_handler = RotatingFileHandler(
            filename=log_dir / f"{LOG_NAME}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(fmt)
        file_handler.set_name(file_handler_name)
        log.addHandler(file_handler)

    console_handler_name = f"{LOG_NAME}:console"
    if console and not _has_handler(log, console_handler_name):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(fmt)
        console_handler.set_name(console_handler_name)
        log.addHandler(console_handler)

    return log


def reset_logging() -> None:
    for h in list(log.handlers):
        if h.get_name() and h.get_name().startswith(f"{LOG_NAME}:"):
            log.removeHandler(h)
            h.close()
