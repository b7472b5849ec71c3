"""
Structured logging configuration for Guardian.

Every Guardian CLI invocation is one linear sequence of remote calls, so
logs carry a run ID that ties together all entries written by a single
invocation. Entries are emitted as JSON on stderr (stdout is reserved for
command output) or, for local runs, as plain text.

Log Format (json):
    {
        "timestamp": "2025-11-14T10:30:00.123Z",
        "level": "ERROR",
        "logger": "guardian.platform.github",
        "run_id": "abc123...",
        "message": "failed to assign reviewer for pull request",
        "user": "alice",
        ...additional context...
    }

Usage:
    from guardian.logging_config import setup_logging, get_logger, log_with_context

    setup_logging(log_level="INFO")
    logger = get_logger(__name__)

    log_with_context(
        logger,
        "debug",
        "querying latest approvers",
        owner=owner,
        repo=repo,
    )
"""

import json
import logging
import sys
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from types import TracebackType
from typing import override

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

# Attributes present on every LogRecord; anything else came in via extra=.
_STANDARD_ATTRS = frozenset(
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
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


def _extra_fields(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs one JSON object per log record.

    Standard Fields:
        - timestamp: ISO 8601 timestamp in UTC
        - level: Log level name
        - logger: Logger name (usually module path)
        - run_id: ID of the current Guardian invocation
        - message: Human-readable log message
        - exc_info: Exception information if present

    Additional fields are included from the LogRecord extras.
    """

    @override
    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string representation of log record
        """
        log_entry: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "run_id": _run_id.get(),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)

        log_entry.update(_extra_fields(record))

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter used for local runs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as a single line of text with key=value context.

        Args:
            record: Log record to format

        Returns:
            Formatted line
        """
        fields = " ".join(f"{k}={v}" for k, v in _extra_fields(record).items())
        line = f"{record.levelname:<7} {record.name}: {record.getMessage()}"
        if fields:
            line = f"{line} {fields}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure logging for Guardian.

    Should be called once at startup, before any platform is created.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" for structured logs, "text" for plain lines

    Example:
        >>> setup_logging("DEBUG", log_format="text")
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    if log_format == "text":
        handler.setFormatter(TextFormatter())
    else:
        handler.setFormatter(StructuredFormatter())

    root_logger.addHandler(handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("gitlab").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_run_id() -> str | None:
    """Return the run ID of the current context, if any."""
    return _run_id.get()


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """
    Log message with additional structured context.

    Context fields become top-level JSON fields (or key=value pairs in
    text mode).

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Human-readable log message
        **context: Additional context fields as keyword arguments

    Example:
        >>> log_with_context(
        ...     logger,
        ...     "error",
        ...     "failed to assign reviewer for pull request",
        ...     team="platform-admins",
        ...     error="422 Validation Failed",
        ... )
    """
    log_func: Callable[..., None] = getattr(logger, level.lower())
    log_func(message, extra=dict(context))


class LogContext:
    """
    Context manager that binds a run ID for one Guardian invocation.

    Example:
        >>> with LogContext() as run_id:
        ...     logger.info("This has run_id")
    """

    def __init__(self, run_id: str | None = None) -> None:
        """
        Initialize log context.

        Args:
            run_id: Optional run ID to use (generates a new one if None)
        """
        self.run_id: str = run_id or str(uuid.uuid4())

    def __enter__(self) -> str:
        """Bind the run ID and return it."""
        _ = _run_id.set(self.run_id)
        return self.run_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Clear the run ID."""
        _ = _run_id.set(None)
