"""
Logging setup for NoteQ modules.

Every module calls get_logger(__name__). One stream handler is attached to
the top-level "noteq" logger (not the root logger), so uvicorn's and
pytest's own handlers keep working and library loggers stay quiet. The
level comes from NOTEQ_LOG_LEVEL and is re-read on each call.
"""

from __future__ import annotations

import logging
import os
from typing import Final

PACKAGE_LOGGER: Final[str] = "noteq"

_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_handler: logging.Handler | None = None


def _resolve_level() -> int:
    level_name = os.getenv("NOTEQ_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _package_logger(level: int) -> logging.Logger:
    global _handler

    package = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        package.addHandler(_handler)
    package.setLevel(level)
    return package


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the "noteq" hierarchy."""
    level = _resolve_level()
    package = _package_logger(level)

    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        logger = logging.getLogger(name)
        logger.setLevel(logging.NOTSET)
        return logger
    return package.getChild(name)
