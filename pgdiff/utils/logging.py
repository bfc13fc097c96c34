"""Logging configuration for pgdiff using structlog.

Console output is rendered through rich; an optional log file receives
JSON lines (or plain rendered messages with ``log_format="console"``).
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


class JSONFileFormatter(logging.Formatter):
    """Formatter that writes one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": ANSI_PATTERN.sub("", record.getMessage()),
            "app": "pgdiff",
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(
    level: str = "WARNING",
    log_format: str = "json",
    log_file: str | None = None,
    file_level: str = "DEBUG",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: File output format, 'json' or 'console'.
        log_file: Optional path to a log file.
        file_level: Log level for the file handler.
    """
    console_level = getattr(logging, level.upper(), logging.WARNING)
    file_log_level = getattr(logging, file_level.upper(), logging.DEBUG)

    rich_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,  # structlog adds timestamps
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(console_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(rich_handler)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(colors=False),
    ]

    min_level = min(console_level, file_log_level) if log_file else console_level
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(file_log_level)
        if log_format == "json":
            file_handler.setFormatter(JSONFileFormatter())
        else:
            file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
