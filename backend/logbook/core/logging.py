# logbook/core/logging.py
"""
Logging for the logbook service.

Every module logs through `logging.getLogger(__name__)`, so records land under
the "logbook." hierarchy. `configure_logging` runs once from the app lifespan
and sends those records, uvicorn's and SQLAlchemy's to one stdout stream.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that install their own handlers; they propagate to root instead.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str = "INFO") -> None:
    """
    Point the root logger at stdout with `LOG_FORMAT`.

    Unknown level names fall back to INFO. Calling it again replaces the
    handler instead of adding a second one.
    """
    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [stream]
    root.setLevel(_parse_level(level))

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
