"""
Process-wide setup for applications that embed the reconciliation core.

Usage:
    from rabbitmq_declarative.runtime import configure

    configure()
    engine = ReconciliationEngine()

Environment Variables:
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    JSON_LOGS: Set to 'false' for plain text logs
    CORRELATION_IDS: Set to 'false' to drop correlation IDs from logs
    DRY_RUN: Set to 'true' to report changes without applying them
    TRACING_ENABLED: Set to 'true' to export OpenTelemetry spans
    OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (gRPC)
"""

import logging

from .observability.logging import setup_structured_logging
from .observability.tracing import setup_tracing, shutdown_tracing
from .settings import settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure structured logging based on settings."""
    setup_structured_logging(
        log_level=settings.log_level.upper(),
        enable_json_formatting=settings.json_logs,
        correlation_id_enabled=settings.correlation_ids,
    )


def configure_tracing() -> None:
    """Configure OpenTelemetry tracing based on settings."""
    setup_tracing(
        enabled=settings.tracing_enabled,
        endpoint=settings.tracing_endpoint,
        service_name=settings.tracing_service_name,
        sample_rate=settings.tracing_sample_rate,
    )


def configure() -> None:
    """Configure logging and tracing for the current process."""
    configure_logging()
    configure_tracing()

    if settings.dry_run:
        logger.info("Running in DRY-RUN mode - no changes will be applied")


def shutdown() -> None:
    """Flush pending spans before the process exits."""
    shutdown_tracing()
