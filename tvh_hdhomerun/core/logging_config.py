"""Root logging setup: console and rotating service log."""

from __future__ import annotations

import contextlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ("aiohttp.access", "aiohttp.server", "asyncio")

_handlers: list[logging.Handler] = []


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    return numeric


def _remove_handlers(root: logging.Logger) -> None:
    while _handlers:
        handler = _handlers.pop()
        root.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    force: bool = False,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 3,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Install the service's handlers on the root logger.

    A second call only changes the level unless ``force`` is set, in
    which case the handlers installed earlier are replaced.

    Args:
        level: Logging level (int or name such as "info").
        force: Rebuild handlers even if already configured.
        console: Emit to stdout.
        log_file: Path for a rotating file handler, or None.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files kept.
        quiet_loggers: Logger names held at WARNING.
    """
    numeric_level = _coerce_level(level)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    if _handlers and not force:
        for handler in _handlers:
            handler.setLevel(numeric_level)
        return

    _remove_handlers(root)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if console:
        _handlers.append(logging.StreamHandler(sys.stdout))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _handlers.append(RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ))

    if not _handlers:
        _handlers.append(logging.NullHandler())

    for handler in _handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging", "LOG_FORMAT", "LOG_DATEFMT", "QUIET_LOGGERS"]
