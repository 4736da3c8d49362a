"""Logging setup for applications embedding cadxchange.

The library itself only creates module loggers (``cadxchange.classify``,
``cadxchange.encoder`` and so on); call :func:`setup_logging` from an
application entry point to see their output.  Classifier fallbacks are
logged at WARNING, every classification and decode at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional, Union

from cadxchange.errors import ConfigurationError

LOGGER_NAME = "cadxchange"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# marks handlers owned by setup_logging
_OWNED = "_cadxchange_owned"


def resolve_level(level: Union[int, str]) -> int:
    """Accept ``logging.DEBUG`` or a name such as ``"debug"``."""

    if isinstance(level, bool):
        raise ConfigurationError(f"invalid log level {level!r}")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ConfigurationError(f"unknown log level {level!r}")
    return value


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED, True)
    return handler


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None,
                  stream: Optional[IO[str]] = None) -> logging.Logger:
    """Configure the ``cadxchange`` logger namespace.

    Handlers installed by an earlier call are replaced; handlers added by
    the application are left alone.

    Args:
        level: level number or name.
        log_file: optional path that receives a copy of the log.
        stream: console stream, ``sys.stdout`` when omitted.

    Raises:
        ConfigurationError: if ``level`` is not a known level.
    """

    resolved = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(stream if stream is not None else sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(resolved)
        handler.setFormatter(formatter)
        logger.addHandler(_owned(handler))

    logger.debug("logging at %s", logging.getLevelName(resolved))
    return logger


__all__ = ["LOGGER_NAME", "LOG_FORMAT", "DATE_FORMAT", "resolve_level", "setup_logging"]
