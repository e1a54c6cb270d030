"""
Prometheus metrics for declarative resource reconciliation.

This module provides metrics for sync pass outcomes, durations, errors and
property changes. Metrics are created unbound and attached to a registry
on first use so importing the package never touches the default registry.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

SYNC_TOTAL = Counter(
    "rabbitmq_declarative_sync_total",
    "Total number of sync passes",
    ["resource_type", "result"],
    registry=None,  # Will be set during initialization
)

SYNC_DURATION = Histogram(
    "rabbitmq_declarative_sync_duration_seconds",
    "Time spent on sync passes",
    ["resource_type", "outcome"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=None,
)

SYNC_ERRORS = Counter(
    "rabbitmq_declarative_sync_errors_total",
    "Total number of failed sync passes",
    ["resource_type", "error_type", "retryable"],
    registry=None,
)

PROPERTY_CHANGES_TOTAL = Counter(
    "rabbitmq_declarative_property_changes_total",
    "Total number of property changes reported by sync passes",
    ["resource_type", "property_name", "noop"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()

        for metric in [
            SYNC_TOTAL,
            SYNC_DURATION,
            SYNC_ERRORS,
            PROPERTY_CHANGES_TOTAL,
        ]:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsCollector:
    """Collects and manages metrics for sync passes."""

    def __init__(self):
        """Initialize metrics collector."""
        self.registry = get_metrics_registry()

    @contextmanager
    def track_sync(self, resource_type: str) -> Iterator[None]:
        """
        Context manager to track one sync pass.

        The pass counts as "success" unless the body raises; errors are
        recorded with their type and retryability and then re-raised.

        Args:
            resource_type: Type of resource being synced
        """
        start_time = time.time()
        result = "unknown"

        try:
            yield
            result = "success"
        except Exception as e:
            result = "error"

            error_type = type(e).__name__
            retryable = "true" if getattr(e, "retryable", False) else "false"

            SYNC_ERRORS.labels(
                resource_type=resource_type,
                error_type=error_type,
                retryable=retryable,
            ).inc()

            raise
        finally:
            duration = time.time() - start_time

            SYNC_TOTAL.labels(resource_type=resource_type, result=result).inc()
            SYNC_DURATION.labels(resource_type=resource_type, outcome=result).observe(
                duration
            )

    def record_change(
        self, resource_type: str, property_name: str, noop: bool = False
    ) -> None:
        """
        Record one reported property change.

        Args:
            resource_type: Type of resource
            property_name: Property that changed
            noop: Whether the change was only reported, not applied
        """
        PROPERTY_CHANGES_TOTAL.labels(
            resource_type=resource_type,
            property_name=property_name,
            noop="true" if noop else "false",
        ).inc()

    def render_latest(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)


metrics_collector = MetricsCollector()
