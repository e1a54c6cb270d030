"""
OpenTelemetry tracing for declarative resource reconciliation.

This module provides:
- Tracer provider setup with an OTLP exporter
- A span per sync pass carrying resource attributes
- A decorator for tracing whole operations

Usage:
    from rabbitmq_declarative.observability.tracing import setup_tracing, get_tracer

    setup_tracing(enabled=True, endpoint="http://collector:4317")

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("my_operation"):
        ...
"""

import functools
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

# Module-level state
_tracer_provider: TracerProvider | None = None
_initialized: bool = False

P = ParamSpec("P")
R = TypeVar("R")


def setup_tracing(
    enabled: bool = False,
    endpoint: str = "http://localhost:4317",
    service_name: str = "rabbitmq-declarative",
    sample_rate: float = 1.0,
    insecure: bool = True,
    use_simple_processor: bool = False,
) -> TracerProvider | None:
    """
    Initialize OpenTelemetry tracing.

    Args:
        enabled: Enable tracing (if False, returns None and does nothing)
        endpoint: OTLP collector endpoint (gRPC)
        service_name: Service name for traces
        sample_rate: Sampling rate (0.0-1.0, 1.0 = 100% of traces)
        insecure: Use insecure connection (no TLS)
        use_simple_processor: Export spans immediately instead of batching

    Returns:
        TracerProvider if enabled, None otherwise
    """
    global _tracer_provider, _initialized

    if _initialized:
        logger.debug("Tracing already initialized, skipping")
        return _tracer_provider

    if not enabled:
        logger.info("OpenTelemetry tracing is disabled")
        _initialized = True
        return None

    logger.info(
        f"Initializing OpenTelemetry tracing: endpoint={endpoint}, "
        f"service={service_name}, sample_rate={sample_rate}"
    )

    resource = Resource.create({"service.name": service_name})
    sampler = ParentBased(root=TraceIdRatioBased(sample_rate))
    _tracer_provider = TracerProvider(resource=resource, sampler=sampler)

    exporter = OTLPSpanExporter(endpoint=endpoint, insecure=insecure)
    if use_simple_processor:
        processor = SimpleSpanProcessor(exporter)
    else:
        processor = BatchSpanProcessor(exporter)
    _tracer_provider.add_span_processor(processor)

    trace.set_tracer_provider(_tracer_provider)

    _initialized = True
    logger.info("OpenTelemetry tracing initialized successfully")

    return _tracer_provider


def shutdown_tracing() -> None:
    """Shutdown tracing and flush any pending spans."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        logger.info("Shutting down OpenTelemetry tracing")
        _tracer_provider.shutdown()
        _tracer_provider = None

    _initialized = False


def get_tracer(name: str = __name__) -> Tracer:
    """
    Get a tracer instance for creating spans.

    Returns:
        Tracer instance (no-op if tracing is disabled)
    """
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    """Check if tracing is currently enabled and initialized."""
    return _initialized and _tracer_provider is not None


@contextmanager
def sync_span(resource_type: str, identity: str, ensure: str, noop: bool) -> Iterator[Span]:
    """
    Open the span covering one sync pass.

    Exceptions escaping the block mark the span as failed and are re-raised.
    """
    tracer = get_tracer(__name__)
    attributes = {
        "resource.type": resource_type,
        "resource.identity": identity,
        "resource.ensure": ensure,
        "sync.noop": noop,
    }
    with tracer.start_as_current_span(
        "sync", kind=SpanKind.INTERNAL, attributes=attributes
    ) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def traced(
    operation_name: str,
    span_kind: SpanKind = SpanKind.INTERNAL,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator creating a span around a call.

    Records exceptions as span events and sets the span status based on
    success or failure.

    Args:
        operation_name: Name of the span
        span_kind: Kind of span

    Example:
        @traced("query_resources")
        def query(self, schema, provider):
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            tracer = get_tracer(func.__module__ or __name__)
            attributes = {"code.function": getattr(func, "__name__", "unknown")}

            with tracer.start_as_current_span(
                operation_name,
                kind=span_kind,
                attributes=attributes,
            ) as span:
                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        return wrapper

    return decorator
