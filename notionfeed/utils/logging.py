"""
NotionFeed Logging Configuration
===============================

Logging for interactive and unattended (cron) runs. Every component logs
through an adapter that tags records with the component name and, where
known, the Notion database or feed URL it is working on. Those tags are
rendered as a suffix on the console and as top-level keys in JSON output.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Attributes set on every LogRecord; anything else arrived via ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# Context keys promoted out of ``extra``, in display order.
CONTEXT_KEYS = ("component", "database_id", "feed_url")


def _split_extra(record: logging.LogRecord) -> tuple:
    """Split a record's extra attributes into (context tags, other fields)."""
    context, fields = {}, {}
    for key, value in vars(record).items():
        if key in _RESERVED_ATTRS:
            continue
        if key in CONTEXT_KEYS:
            context[key] = value
        else:
            fields[key] = value
    return context, fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with context tags at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        context, fields = _split_extra(record)

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context,
        }
        if fields:
            log_data["extra"] = fields
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Colored single-line console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        context, _ = _split_extra(record)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        source = context.pop("component", record.name)

        level = f"{record.levelname:8}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        line = f"[{timestamp}] {level} {source} - {record.getMessage()}"
        if context:
            tags = " ".join(f"{key}={context[key]}" for key in CONTEXT_KEYS if key in context)
            line = f"{line} ({tags})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logger(
    name: str = "notionfeed",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Attach console and rotating-file handlers to the ``name`` logger.

    Existing handlers are replaced, so calling this twice does not duplicate
    output. Console output goes to stderr, leaving stdout to the CLI's tables;
    file output is always JSON.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    logger.handlers.clear()

    if console:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            StructuredFormatter() if structured
            else ColoredConsoleFormatter(use_color=sys.stderr.isatty())
        )
        logger.addHandler(handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter merging its fixed context into each call's ``extra``."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    database_id: Optional[str] = None,
    feed_url: Optional[str] = None,
) -> LoggerAdapter:
    """Get a logger adapter tagged with component-specific context.

    Args:
        component_name: Name of the component (e.g., 'pipeline', 'feed_fetcher')
        database_id: Associated Notion database ID (optional)
        feed_url: Associated feed URL (optional)
    """
    context = {"component": component_name}
    if database_id:
        context["database_id"] = database_id
    if feed_url:
        context["feed_url"] = feed_url

    return LoggerAdapter(logging.getLogger(f"notionfeed.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/notionfeed.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the ``notionfeed`` logger tree and quiet library loggers."""
    setup_logger(
        name="notionfeed",
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size_mb * 1024 * 1024,
        backup_count=backup_count,
    )

    for library in ("aiohttp", "asyncio", "feedparser"):
        logging.getLogger(library).setLevel(logging.WARNING)


class PerformanceLogger:
    """Context manager timing a pipeline stage.

    Logs the duration at INFO on success and at ERROR when the block raises;
    the exception itself is not suppressed. The measured time is kept on
    ``duration`` for callers that report it.
    """

    def __init__(self, logger: logging.Logger, operation: str, **kwargs):
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.duration = 0.0
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=dict(self.context))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        context = {**self.context, "duration_seconds": self.duration, "success": exc_type is None}

        if exc_type:
            self.logger.error(f"Failed {self.operation} in {self.duration:.3f}s", extra=context)
        else:
            self.logger.info(f"Completed {self.operation} in {self.duration:.3f}s", extra=context)
