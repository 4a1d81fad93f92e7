"""Logging configuration for itclock.

The library is silent by default: the ``itclock`` logger only carries a
``NullHandler``. Applications opt in with one of the helpers below.

Example usage::

    import itclock

    itclock.enable_console_logging(level="DEBUG")      # fork/join/event traces
    itclock.enable_file_logging("logs/itc.log")        # rotating file
    itclock.enable_json_logging()                      # one JSON object per line
    itclock.configure_from_env()                       # from ITC_* variables

Environment variables (read by ``configure_from_env`` only):
    ITC_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    ITC_LOG_FILE: Path to a log file (enables rotating file logging)
    ITC_LOG_JSON: Set to "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal, TypeVar

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "itclock"

ENV_LEVEL = "ITC_LOGGING"
ENV_FILE = "ITC_LOG_FILE"
ENV_JSON = "ITC_LOG_JSON"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

H = TypeVar("H", bound=logging.Handler)


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Example output:
        {"timestamp": "2026-01-15T10:30:00.123456+00:00", "level": "DEBUG",
         "logger": "itclock.core.stamp", "message": "fork One -> ..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra"):
            payload["extra"] = record.extra
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    """Convert a level name or number to a logging level constant."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    """The package logger every itclock module logs under."""
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Detach and close every handler except NullHandler."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _install(
    handler: H,
    level: LogLevel | int,
    formatter: logging.Formatter,
) -> H:
    """Attach ``handler`` to the package logger at ``level``."""
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return handler


def _prepare_path(path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log itclock records to stderr.

    Args:
        level: Log level name or number.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created StreamHandler.
    """
    return _install(logging.StreamHandler(), level, logging.Formatter(format, date_format))


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Log itclock records to a size-rotated file.

    Args:
        path: Log file path. Parent directories are created.
        level: Log level name or number.
        max_bytes: Size at which the file is rotated.
        backup_count: Number of rotated files to keep.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created RotatingFileHandler.
    """
    handler = RotatingFileHandler(
        _prepare_path(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    return _install(handler, level, logging.Formatter(format, date_format))


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Log itclock records to stderr as JSON lines."""
    return _install(logging.StreamHandler(), level, JsonFormatter())


def enable_json_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> RotatingFileHandler:
    """Log itclock records as JSON lines to a size-rotated file."""
    handler = RotatingFileHandler(
        _prepare_path(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    return _install(handler, level, JsonFormatter())


def configure_from_env() -> None:
    """Configure logging from ``ITC_LOGGING``, ``ITC_LOG_FILE`` and ``ITC_LOG_JSON``.

    Does nothing if neither a level nor a file is set. A file without a
    level logs at INFO.
    """
    level = os.environ.get(ENV_LEVEL, "").upper()
    log_file = os.environ.get(ENV_FILE, "")
    use_json = os.environ.get(ENV_JSON, "") == "1"

    if not level and not log_file:
        return
    level = level or "INFO"

    if use_json and log_file:
        enable_json_file_logging(log_file, level=level)
    elif use_json:
        enable_json_logging(level=level)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Set the level of the package logger."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the level for one submodule, e.g. ``set_module_level("codec", "WARNING")``.

    Args:
        module: Module name relative to itclock (e.g. "core.stamp").
        level: Log level name or number.
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Remove all handlers and silence the package logger."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
