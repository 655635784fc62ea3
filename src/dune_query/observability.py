"""OpenTelemetry instrumentation for the Dune query client.

Provides:
- OpenTelemetry SDK initialization with OTLP exporters
- Tracer for creating spans around Dune API calls
- Metrics for execution monitoring (status polls, execution duration, rows)
- Structured JSON logging with trace correlation
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from dune_query.config import get_settings

if TYPE_CHECKING:
    from dune_query.config import DuneSettings

_initialized = False

_tracer: trace.Tracer | None = None
_meter: metrics.Meter | None = None
_tracer_provider: TracerProvider | None = None
_meter_provider: MeterProvider | None = None

_status_polls_counter: metrics.Counter | None = None
_execution_duration_histogram: metrics.Histogram | None = None
_result_rows_counter: metrics.Counter | None = None


def get_tracer() -> trace.Tracer:
    """Get the client tracer.

    Returns:
        The OpenTelemetry tracer for creating spans.
    """
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("dune_query")
    return _tracer


def get_meter() -> metrics.Meter:
    """Get the client meter.

    Returns:
        The OpenTelemetry meter for creating metrics.
    """
    global _meter
    if _meter is None:
        _meter = metrics.get_meter("dune_query")
    return _meter


def record_status_poll(state: str) -> None:
    """Record a single execution status check.

    Args:
        state: Execution state observed by the check.
    """
    if _status_polls_counter is not None:
        _status_polls_counter.add(1, {"state": state})


def record_execution_duration(duration_seconds: float, state: str) -> None:
    """Record wall-clock time from submission to terminal state.

    Args:
        duration_seconds: Time spent waiting in seconds.
        state: Terminal execution state.
    """
    if _execution_duration_histogram is not None:
        _execution_duration_histogram.record(duration_seconds, {"state": state})


def record_result_rows(row_count: int) -> None:
    """Record number of rows fetched from an execution.

    Args:
        row_count: Number of rows returned.
    """
    if _result_rows_counter is not None:
        _result_rows_counter.add(row_count)


def _add_trace_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Add OpenTelemetry trace context to log records.

    Args:
        logger: The logger instance (unused but required by structlog).
        method_name: The logging method name (unused but required by structlog).
        event_dict: The event dictionary to enhance.

    Returns:
        Event dictionary with trace context added.
    """
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging with trace context."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            _add_trace_context,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name. Defaults to "dune_query".

    Returns:
        A structured logger with trace context support.
    """
    return structlog.get_logger(name or "dune_query")


def setup_opentelemetry(settings: DuneSettings | None = None) -> None:
    """Initialize OpenTelemetry instrumentation.

    Sets up:
    - Structured logging
    - Tracer provider with OTLP exporter
    - Meter provider with OTLP exporter
    - Metrics for execution monitoring

    Args:
        settings: Client settings. If None, uses cached settings.
    """
    global _initialized, _tracer, _meter, _tracer_provider, _meter_provider
    global _status_polls_counter, _execution_duration_histogram, _result_rows_counter

    if _initialized:
        return

    settings = settings or get_settings()

    configure_logging()

    if not settings.otel.enabled:
        _initialized = True
        return

    resource = Resource.create({SERVICE_NAME: settings.otel.service_name})

    tracer_provider = TracerProvider(resource=resource)
    span_exporter = OTLPSpanExporter(
        endpoint=settings.otel.endpoint, insecure=settings.otel.insecure
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)
    _tracer_provider = tracer_provider

    metric_exporter = OTLPMetricExporter(
        endpoint=settings.otel.endpoint, insecure=settings.otel.insecure
    )
    metric_reader = PeriodicExportingMetricReader(metric_exporter, export_interval_millis=10000)
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    _meter_provider = meter_provider

    _tracer = tracer_provider.get_tracer("dune_query")
    _meter = meter_provider.get_meter("dune_query")

    _status_polls_counter = _meter.create_counter(
        name="dune_status_polls",
        description="Number of execution status checks",
        unit="requests",
    )

    _execution_duration_histogram = _meter.create_histogram(
        name="dune_execution_duration_seconds",
        description="Time from query submission to terminal execution state",
        unit="s",
    )

    _result_rows_counter = _meter.create_counter(
        name="dune_result_rows",
        description="Total number of result rows fetched",
        unit="rows",
    )

    _initialized = True


def shutdown_opentelemetry() -> None:
    """Shutdown OpenTelemetry providers to flush pending telemetry."""
    import contextlib

    global _tracer_provider, _meter_provider
    if _tracer_provider is not None:
        with contextlib.suppress(Exception):
            _tracer_provider.force_flush(timeout_millis=5000)
            _tracer_provider.shutdown()
        _tracer_provider = None
    if _meter_provider is not None:
        with contextlib.suppress(Exception):
            _meter_provider.force_flush(timeout_millis=5000)
            _meter_provider.shutdown()
        _meter_provider = None


def reset_observability() -> None:
    """Reset observability state (useful for testing)."""
    global _initialized, _tracer, _meter, _tracer_provider, _meter_provider
    global _status_polls_counter, _execution_duration_histogram, _result_rows_counter

    _initialized = False
    _tracer = None
    _meter = None
    _tracer_provider = None
    _meter_provider = None
    _status_polls_counter = None
    _execution_duration_histogram = None
    _result_rows_counter = None
