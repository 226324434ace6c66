"""
Logging configuration for bookfacts.

Rich console output on stderr, optional JSON lines in a log file, and a small
context mechanism so concurrent slot runs can be told apart in the logs.
"""

import functools
import inspect
import json
import logging
import time
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

from bookfacts.config import VALID_LOG_LEVELS, get_settings
from bookfacts.utils.errors import ConfigurationError

_RESERVED_ATTRS = frozenset(
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
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


_log_context: ContextVar[dict[str, Any]] = ContextVar("bookfacts_log_context", default={})


class ContextFilter(logging.Filter):
    """
    Add context information to log records.

    Context lives in a ContextVar so each asyncio task (one per slot run)
    sees only its own values.
    """

    @property
    def context(self) -> dict[str, Any]:
        """Context values of the current task."""
        return _log_context.get()

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context to the log record."""
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


# Global context filter instance
context_filter = ContextFilter()


def setup_logging(
    log_level: Optional[str] = None,
    log_file_path: Optional[Path] = None,
    use_structured_logging: bool = True,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (defaults to settings)
        log_file_path: Path to log file (defaults to settings)
        use_structured_logging: Use JSON structured logging for files
    """
    settings = get_settings()

    log_level = (log_level or settings.log_level).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}", {"log_level": log_level}
        )
    log_file_path = log_file_path or settings.get_log_file_path()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=settings.dev_mode,
    )
    console_handler.setLevel(log_level)
    console_handler.addFilter(context_filter)
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    if log_file_path:
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.addFilter(context_filter)

        if use_structured_logging:
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )

        root_logger.addHandler(file_handler)

    # The gRPC transport under google-generativeai is chatty at INFO
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={
            "log_level": log_level,
            "log_file": str(log_file_path) if log_file_path else None,
            "structured_logging": use_structured_logging,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def mask_credential(credential: str) -> str:
    """Show only the first 8 and last 4 characters of a secret."""
    if len(credential) <= 12:
        return "*" * len(credential)
    return f"{credential[:8]}...{credential[-4:]}"


class LogContext:
    """Context manager for temporary logging context."""

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values."""
        self.context = kwargs
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        """Enter the context and set values."""
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the context and restore old values."""
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def log_performance(func):
    """
    Decorator to log function performance.

    Usage:
        @log_performance
        async def invoke(self, credential: str, question: str) -> BookInfo:
            ...
    """

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        """Async wrapper for performance logging."""
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        try:
            logger.debug(f"Starting {func.__name__}")
            result = await func(*args, **kwargs)
            duration = time.perf_counter() - start_time
            logger.info(
                f"Completed {func.__name__} in {duration:.2f}s",
                extra={"duration_seconds": duration},
            )
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"Failed {func.__name__} after {duration:.2f}s",
                extra={"duration_seconds": duration, "error": str(e)},
            )
            raise

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        """Sync wrapper for performance logging."""
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        try:
            logger.debug(f"Starting {func.__name__}")
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start_time
            logger.info(
                f"Completed {func.__name__} in {duration:.2f}s",
                extra={"duration_seconds": duration},
            )
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"Failed {func.__name__} after {duration:.2f}s",
                extra={"duration_seconds": duration, "error": str(e)},
            )
            raise

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper
