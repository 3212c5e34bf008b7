"""
Structured logging configuration for ArtisanHub.

Provides consistent logging across the API and scripts with support for:
- Console output (human-readable, with colors)
- JSON format (machine-parseable, for production)
- Configurable log levels via environment variable

Usage:
    from artisanhub.config.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Feed built", extra={"user_id": user_id, "items": 10})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("ARTISANHUB_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("ARTISANHUB_LOG_FORMAT", "console")  # "console" or "json"

# Built-in LogRecord attributes; everything else on a record came from `extra`.
_STANDARD_LOG_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "asctime",
        "taskName",
    }
)

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "pymongo",
    "anthropic",
    "openai",
    "google",
    "grpc",
)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_LOG_ATTRS and not key.startswith("_")
    }


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with colored levels on a TTY."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        use_colors = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

        timestamp = self.formatTime(record, "%H:%M:%S")

        level = record.levelname
        if use_colors:
            color = self.COLORS.get(level, "")
            level_str = f"{color}{level:<8}{self.COLORS['RESET']}"
        else:
            level_str = f"{level:<8}"

        extras = [f"{k}={v}" for k, v in _extra_fields(record).items()]
        extra_str = f" [{', '.join(extras)}]" if extras else ""

        line = f"{timestamp} {level_str} {record.name}: {record.getMessage()}{extra_str}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """Machine-parseable JSON formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(_extra_fields(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


# ---------------------------------------------------------------------------
# Logger Factory
# ---------------------------------------------------------------------------

_configured = False


def configure_logging() -> None:
    """Configure root logger with the handler and formatter from env settings."""
    global _configured
    if _configured:
        return

    level = getattr(logging, LOG_LEVEL, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ConsoleFormatter())
    root.addHandler(handler)

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with consistent configuration.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    configure_logging()
    return logging.getLogger(name)


# ---------------------------------------------------------------------------
# Convenience functions for script output
# ---------------------------------------------------------------------------


def log_banner(
    logger: logging.Logger, title: str, char: str = "=", width: int = 60
) -> None:
    """Log a visual banner for section headers."""
    logger.info(char * width)
    logger.info(title)
    logger.info(char * width)


def log_kv(logger: logging.Logger, key: str, value: Any, indent: int = 2) -> None:
    """Log a key-value pair with consistent formatting."""
    prefix = " " * indent
    if isinstance(value, float):
        logger.info(f"{prefix}{key}: {value:.2f}")
    elif isinstance(value, int):
        logger.info(f"{prefix}{key}: {value:,}")
    else:
        logger.info(f"{prefix}{key}: {value}")


__all__ = [
    "get_logger",
    "configure_logging",
    "log_banner",
    "log_kv",
    "ConsoleFormatter",
    "JSONFormatter",
    "LOG_LEVEL",
    "LOG_FORMAT",
]
