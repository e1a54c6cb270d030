"""
Observability utilities for declarative resources.

This module provides metrics, tracing and structured logging capabilities
for monitoring and troubleshooting sync passes.
"""

from .logging import ResourceLogger, setup_structured_logging
from .metrics import MetricsCollector, get_metrics_registry, metrics_collector
from .tracing import setup_tracing, shutdown_tracing

__all__ = [
    "MetricsCollector",
    "ResourceLogger",
    "get_metrics_registry",
    "metrics_collector",
    "setup_structured_logging",
    "setup_tracing",
    "shutdown_tracing",
]
