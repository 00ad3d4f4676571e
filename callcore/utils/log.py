# callcore/utils/log.py
"""
Logging setup for the callcore process.

Logs always go to stderr: under the stdio transport stdout carries the
JSON-RPC stream and must stay clean.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER = "callcore"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_handler: Optional[logging.Handler] = None


def to_logging_level(level: str) -> int:
    try:
        return _LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def configure_logging(level: str = "info", stream: Optional[TextIO] = None) -> logging.Logger:
    """Install (or replace) the single stderr handler on the callcore logger."""
    global _handler

    root = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)
    root.setLevel(to_logging_level(level))
    root.propagate = False
    return root


__all__ = ["ROOT_LOGGER", "to_logging_level", "configure_logging"]
