"""
BrewNews Logging Configuration
==============================

Structured logging setup with console and rotating-file output, component
loggers carrying pipeline context, and a handler that mirrors diagnostic
records into the document store.
"""

import logging
import logging.handlers
import queue
import sys
import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional

# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "taskName",
}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_FIELDS
    }


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = _extra_fields(record)
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors for console output."""
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        formatted = (
            f"{color}[{timestamp}] {record.levelname:8}{reset} "
            f"{record.name}:{record.funcName}:{record.lineno} - "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


# Records produced while a StoreLogHandler is persisting on this thread
_store_emit_state = threading.local()

# Loggers of the store itself; persisting their records would write back into
# the store that produced them.
STORE_LOGGER_PREFIXES = ("brewnews.database", "brewnews.document_store")


class StoreLogFilter(logging.Filter):
    """Keeps records of the store and of an in-progress store write out of the sink."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(_store_emit_state, "active", False):
            return False
        return not record.name.startswith(STORE_LOGGER_PREFIXES)


class StoreLogHandler(logging.Handler):
    """Append-only diagnostic sink backed by the document store.

    Each record becomes one ``{timestamp, level, message, details}`` document.
    Store failures are reported through ``handleError`` and never reach the
    code that emitted the record. Records logged while a write is in progress
    are dropped.
    """

    def __init__(self, log_repository, level: int = logging.WARNING):
        super().__init__(level)
        self.log_repository = log_repository
        self.addFilter(StoreLogFilter())

    def emit(self, record: logging.LogRecord) -> None:
        if getattr(_store_emit_state, "active", False):
            return

        _store_emit_state.active = True
        try:
            details = _extra_fields(record)
            if record.exc_info:
                details["exception"] = logging.Formatter().formatException(
                    record.exc_info
                )
            self.log_repository.add_log(
                level=record.levelname,
                message=record.getMessage(),
                details=details or None,
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            )
        except Exception:
            self.handleError(record)
        finally:
            _store_emit_state.active = False


# Background listener feeding the store sink, see attach_store_handler()
_store_listener: Optional[logging.handlers.QueueListener] = None
_store_queue_handler: Optional[logging.handlers.QueueHandler] = None
_store_logger: Optional[logging.Logger] = None


def attach_store_handler(
    logger: logging.Logger, log_repository, level: int = logging.WARNING
) -> logging.handlers.QueueListener:
    """Persist ``level`` and above records of ``logger`` through a queue.

    The logging call only enqueues; a listener thread performs the store
    write, so callers on the event loop never wait on SQLite.
    """
    global _store_listener, _store_queue_handler, _store_logger

    detach_store_handler()

    records: queue.Queue = queue.Queue(-1)
    queue_handler = logging.handlers.QueueHandler(records)
    queue_handler.setLevel(level)
    queue_handler.addFilter(StoreLogFilter())

    listener = logging.handlers.QueueListener(
        records, StoreLogHandler(log_repository, level), respect_handler_level=True
    )
    listener.start()
    logger.addHandler(queue_handler)

    _store_listener = listener
    _store_queue_handler = queue_handler
    _store_logger = logger
    return listener


def detach_store_handler() -> None:
    """Flush pending diagnostic records and stop the store listener."""
    global _store_listener, _store_queue_handler, _store_logger

    if _store_queue_handler is not None and _store_logger is not None:
        _store_logger.removeHandler(_store_queue_handler)
    _store_queue_handler = None
    _store_logger = None
    if _store_listener is not None:
        _store_listener.stop()
        _store_listener = None


def setup_logger(
    name: str = "brewnews",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up logger with appropriate handlers and formatting.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        console: Whether to log to console
        structured: Whether to use structured JSON logging
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)

        if structured:
            console_handler.setFormatter(StructuredFormatter())
        else:
            console_handler.setFormatter(ColoredConsoleFormatter())

        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )

        # Always use structured format for file logging
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that merges component context into every record."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        if "extra" in kwargs:
            kwargs["extra"] = {**self.extra, **kwargs["extra"]}
        else:
            kwargs["extra"] = self.extra.copy()

        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    source_url: Optional[str] = None,
    item_link: Optional[str] = None,
) -> LoggerAdapter:
    """Get a logger adapter with component-specific context.

    Args:
        component_name: Name of the component (e.g., 'feed_fetcher', 'summarizer')
        source_url: Associated source URL (optional)
        item_link: Associated item link (optional)

    Returns:
        Logger adapter with context
    """
    base_logger = logging.getLogger(f"brewnews.{component_name}")

    extra_context = {
        "component": component_name,
    }

    if source_url:
        extra_context["source_url"] = source_url
    if item_link:
        extra_context["item_link"] = item_link

    return LoggerAdapter(base_logger, extra_context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/brewnews.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    log_repository=None,
) -> logging.Logger:
    """Configure application-wide logging settings.

    Args:
        log_level: Global log level
        log_file: Path to main log file
        enable_console: Whether to enable console logging
        structured_logging: Whether to use JSON structured logging
        log_repository: When given, WARNING and above are also persisted
    """
    logger = setup_logger(
        name="brewnews",
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
    )

    detach_store_handler()
    if log_repository is not None:
        attach_store_handler(logger, log_repository)

    # Third-party library logging levels
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger


class PerformanceLogger:
    """Context manager for performance logging."""

    def __init__(self, logger: logging.Logger, operation: str, **kwargs):
        """Initialize performance logger.

        Args:
            logger: Logger instance
            operation: Operation being timed
            **kwargs: Additional context for the operation
        """
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.start_time = None

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = datetime.now(timezone.utc)
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time:
            duration = (datetime.now(timezone.utc) - self.start_time).total_seconds()

            context = {
                **self.context,
                "duration_seconds": duration,
                "success": exc_type is None,
            }

            if exc_type:
                self.logger.error(
                    f"Failed {self.operation} in {duration:.3f}s", extra=context
                )
            else:
                self.logger.info(
                    f"Completed {self.operation} in {duration:.3f}s", extra=context
                )
