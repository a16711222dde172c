"""
FeedSync Logging Configuration
=============================

Logging setup for FeedSync. Every component logs through a context adapter
that carries the component name and, inside per-feed work, the feed being
synchronized (``feed_id`` / ``feed_url``). The structured formatter lifts
that context into top-level JSON fields so a log file can be filtered by
feed; the console formatter shows it as a short tag.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "feedsync"

# Context keys emitted as top-level fields in structured output
CONTEXT_FIELDS = ("component", "feed_id", "feed_url")

_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to a record through ``extra``."""
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, with feed context as top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _record_context(record)
        for field in CONTEXT_FIELDS:
            if field in context:
                log_data[field] = context.pop(field)
        if context:
            log_data["extra"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Compact colored console output for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    @staticmethod
    def feed_tag(record: logging.LogRecord) -> str:
        """``[feed 3]`` when the feed is known by ID, else ``[<url>]``."""
        feed_id = getattr(record, "feed_id", None)
        if feed_id is not None:
            return f" [feed {feed_id}]"
        feed_url = getattr(record, "feed_url", None)
        return f" [{feed_url}]" if feed_url else ""

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        component = getattr(record, "component", record.name)

        formatted = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"{component}{self.feed_tag(record)} - {record.getMessage()}"
        )

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def _console_handler(structured: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if structured else ColoredConsoleFormatter())
    return handler


def _file_handler(log_file: str, max_file_size: int, backup_count: int) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
    )
    # Files are always JSON so they can be filtered by feed
    handler.setFormatter(StructuredFormatter())
    return handler


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Replace the handlers of a logger with console and/or file output.

    Args:
        name: Logger name
        level: Logging level name
        log_file: Rotating log file path (optional)
        console: Whether to log to stderr
        structured: JSON on the console instead of colored text
        max_file_size: Bytes before the log file rotates
        backup_count: Rotated files to keep

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if console:
        logger.addHandler(_console_handler(structured))
    if log_file:
        logger.addHandler(_file_handler(log_file, max_file_size, backup_count))

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter that merges bound context into every record.

    Context passed per call through ``extra`` wins over bound context.
    """

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def bind(self, **context: Any) -> "LoggerAdapter":
        """Adapter over the same logger with additional context."""
        merged = {**self.extra, **{k: v for k, v in context.items() if v is not None}}
        return LoggerAdapter(self.logger, merged)


def get_logger_for_component(
    component_name: str,
    feed_url: Optional[str] = None,
    feed_id: Optional[int] = None,
) -> LoggerAdapter:
    """Get a logger adapter for a FeedSync component.

    Args:
        component_name: Component name (e.g. 'fetcher', 'sync_engine')
        feed_url: Feed being processed (optional)
        feed_id: Catalog ID of the feed being processed (optional)

    Returns:
        Adapter logging under ``feedsync.<component_name>``
    """
    adapter = LoggerAdapter(
        logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}"),
        {"component": component_name},
    )
    return adapter.bind(feed_url=feed_url, feed_id=feed_id)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/feedsync.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the ``feedsync`` logger tree and quiet library loggers."""
    setup_logger(
        name=ROOT_LOGGER_NAME,
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size_mb * 1024 * 1024,
        backup_count=backup_count,
    )

    for library in ("aiohttp", "feedparser", "asyncio"):
        logging.getLogger(library).setLevel(logging.WARNING)


class PerformanceLogger:
    """Times a block and logs its duration and outcome.

    Works with plain loggers and with component adapters; the adapter's
    bound context is kept on the start and finish records.
    """

    def __init__(
        self,
        logger: Union[logging.Logger, logging.LoggerAdapter],
        operation: str,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started: Optional[float] = None

    @property
    def elapsed_seconds(self) -> float:
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.monotonic()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        duration = self.elapsed_seconds
        context = {**self.context, "duration_seconds": duration, "success": exc_type is None}

        if exc_type:
            self.logger.error(f"Failed {self.operation} in {duration:.3f}s", extra=context)
        else:
            self.logger.info(f"Completed {self.operation} in {duration:.3f}s", extra=context)
