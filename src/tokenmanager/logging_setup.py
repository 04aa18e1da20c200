"""Logging for the ``tokenmanager`` package logger."""

from __future__ import annotations

import logging
import sys
from typing import IO, Final

from tokenmanager.config import get_settings

PACKAGE_LOGGER: Final = "tokenmanager"

TRACE_LEVEL: Final = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

_LOG_LEVEL_ALIASES: Final[dict[str, int]] = {
    "trace": TRACE_LEVEL,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_HANDLER_NAME: Final = "tokenmanager-console"


def resolve_level(level: str | int) -> int:
    """Return the numeric level for a name, alias or number."""
    if isinstance(level, int):
        return level
    cleaned = level.strip().lower()
    if not cleaned:
        return logging.INFO
    if cleaned.isdigit():
        return int(cleaned)
    return _LOG_LEVEL_ALIASES.get(cleaned, logging.INFO)


def configure_logging(
    *,
    level: str | int | None = None,
    stream: IO[str] | None = None,
    propagate: bool = False,
) -> logging.Logger:
    """Attach a console handler to the package logger and set its level.

    The level comes from ``level`` or from ``TOKENMANAGER_LOG_LEVEL``. Calling
    again replaces the handler installed by a previous call; handlers of the
    root logger and of other libraries are left alone.
    """
    requested_level: str | int = (
        level if level is not None else get_settings().logging.log_level
    )
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(max(TRACE_LEVEL, resolve_level(requested_level)))
    logger.propagate = propagate

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger


__all__ = ["PACKAGE_LOGGER", "TRACE_LEVEL", "configure_logging", "resolve_level"]
