"""
Structured logging utilities for declarative resources.

This module provides correlation ID tracking and structured log formatting
so that every record of one sync pass can be grouped together.
"""

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variable for tracking the correlation ID of the current sync pass
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add correlation ID to the log record.

        Args:
            record: The log record to process

        Returns:
            True to allow the record to be processed
        """
        current_correlation_id = correlation_id.get()
        if not current_correlation_id:
            current_correlation_id = generate_correlation_id()
            correlation_id.set(current_correlation_id)

        record.correlation_id = current_correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for logs with correlation ID support.

    Only whitelisted structured fields are copied from the record, so
    arbitrary extras (and desired values) never leak into log output.
    """

    structured_fields = (
        "resource_type",
        "resource_name",
        "property_name",
        "operation",
        "duration",
        "error_type",
        "change_count",
        "noop",
    )

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as structured JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log message
        """
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in self.structured_fields:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]


def set_correlation_id(corr_id: str) -> str:
    """Set the correlation ID for the current context."""
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


@contextmanager
def correlation_scope(corr_id: str | None = None) -> Iterator[str]:
    """
    Bind a correlation ID for the duration of a block.

    The previous ID is restored on exit, so records logged after one sync
    pass do not carry that pass's ID.

    Args:
        corr_id: Correlation ID to bind (will generate if not provided)
    """
    token = correlation_id.set(corr_id or generate_correlation_id())
    try:
        yield correlation_id.get()
    finally:
        correlation_id.reset(token)


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
) -> None:
    """
    Set up structured logging on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Whether to use JSON formatting
        correlation_id_enabled: Whether to enable correlation ID tracking
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Keep exporter chatter out of sync logs
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)


class ResourceLogger:
    """
    Logger for sync passes with structured logging support.

    Provides convenient methods for logging the lifecycle of one sync pass
    with correlation ID tracking and structured data.
    """

    def __init__(self, name: str):
        """
        Initialize resource logger.

        Args:
            name: Logger name (usually the class name)
        """
        self.logger = logging.getLogger(name)

    def log_sync_start(
        self,
        resource_type: str,
        resource_name: str,
        correlation_id: str | None = None,
    ) -> str:
        """
        Log the start of a sync pass.

        Args:
            resource_type: Type of resource being synced
            resource_name: Identity of the resource
            correlation_id: Optional correlation ID (will generate if not provided)

        Returns:
            The correlation ID used for this pass
        """
        if correlation_id is None:
            correlation_id = generate_correlation_id()

        set_correlation_id(correlation_id)

        self.logger.info(
            f"Starting sync for {resource_type} {resource_name}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "operation": "sync_start",
            },
        )

        return correlation_id

    def log_sync_success(
        self,
        resource_type: str,
        resource_name: str,
        change_count: int,
        duration: float,
    ) -> None:
        """
        Log successful completion of a sync pass.

        Args:
            resource_type: Type of resource
            resource_name: Identity of the resource
            change_count: Number of change reports produced
            duration: Sync duration in seconds
        """
        state = "converged" if change_count == 0 else f"{change_count} change(s)"
        self.logger.info(
            f"Sync completed for {resource_type} {resource_name}: {state}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "operation": "sync_success",
                "change_count": change_count,
                "duration": duration,
            },
        )

    def log_sync_error(
        self,
        resource_type: str,
        resource_name: str,
        error: Exception,
        duration: float,
    ) -> None:
        """
        Log a failed sync pass.

        Args:
            resource_type: Type of resource
            resource_name: Identity of the resource
            error: The error that occurred
            duration: Sync duration in seconds
        """
        self.logger.error(
            f"Sync failed for {resource_type} {resource_name}: {str(error)}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "operation": "sync_error",
                "error_type": type(error).__name__,
                "duration": duration,
            },
            exc_info=True,
        )

    def log_change(
        self,
        resource_type: str,
        resource_name: str,
        property_name: str,
        message: str,
        noop: bool = False,
    ) -> None:
        """
        Log one property change. The message must already be redacted.

        Args:
            resource_type: Type of resource
            resource_name: Identity of the resource
            property_name: Property that changed
            message: Human-readable change description
            noop: Whether the change was only reported, not applied
        """
        prefix = "Would change" if noop else "Changed"
        self.logger.info(
            f"{prefix} {resource_type}[{resource_name}]/{property_name}: {message}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "property_name": property_name,
                "operation": "change",
                "noop": noop,
            },
        )

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with extra data."""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with extra data."""
        self.logger.info(message, extra=kwargs)
