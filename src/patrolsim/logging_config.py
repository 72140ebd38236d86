"""Logging configuration for patrolsim.

Configurable via environment variables:
- PATROL_LOG_LEVEL (or LOG_LEVEL): DEBUG, INFO, WARNING, ERROR. Default: INFO
- PATROL_LOG_FORMAT (or LOG_FORMAT): 'text' or 'json'. Default: text

Usage:
    from patrolsim.logging_config import configure_logging
    configure_logging()  # once, at process startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, ClassVar

PACKAGE_LOGGER = "patrolsim"

# Attributes every LogRecord carries; anything else was passed via ``extra=``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _env(name: str, default: str) -> str:
    return os.environ.get(f"PATROL_{name}") or os.environ.get(name) or default


def _short_name(name: str) -> str:
    prefix = PACKAGE_LOGGER + "."
    return name[len(prefix) :] if name.startswith(prefix) else name


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    DEBUG and ERROR records carry their source location; ``extra=`` fields are
    nested under "extra".
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            data["extra"] = extra
        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """``TIMESTAMP LEVEL [logger] message`` with optional ANSI colours."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S.%f")
        level = f"{record.levelname:8s}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        line = f"{timestamp[:-3]} {level} [{_short_name(record.name)}] {record.getMessage()}"
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            line += f" ({record.filename}:{record.lineno})"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def get_log_level() -> int:
    """Log level from PATROL_LOG_LEVEL / LOG_LEVEL; unknown names fall back to INFO."""
    return _LEVELS.get(_env("LOG_LEVEL", "INFO").upper(), logging.INFO)


def get_log_format() -> str:
    """'text' or 'json' from PATROL_LOG_FORMAT / LOG_FORMAT."""
    format_name = _env("LOG_FORMAT", "text").lower()
    return format_name if format_name in ("text", "json") else "text"


def configure_logging(
    level: int | None = None,
    format_type: str | None = None,
    use_colors: bool = True,
) -> None:
    """Install a stderr handler on the patrolsim logger.

    Args:
        level: Log level; read from the environment when None.
        format_type: 'text' or 'json'; read from the environment when None.
        use_colors: Colourise text output when stderr is a TTY.
    """
    if level is None:
        level = get_log_level()
    if format_type is None:
        format_type = get_log_format()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if format_type == "json" else TextFormatter(use_colors))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.propagate = False

    # HTTP access lines share the handler so server output stays in one format
    access_logger = logging.getLogger("uvicorn.access")
    access_logger.handlers.clear()
    access_logger.addHandler(handler)
    access_logger.setLevel(level)
    access_logger.propagate = False

    package_logger.debug(
        "Logging configured: level=%s, format=%s",
        logging.getLevelName(level),
        format_type,
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the patrolsim namespace."""
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
