"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

from .config import settings

SERVICE_NAME = "tourdesk-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
BOOKING_TRANSITIONS = Counter(
    'booking_status_transitions_total',
    'Booking status transitions committed',
    ['from_status', 'to_status'],
    registry=REGISTRY
)

CANCELLATION_NOTIFICATIONS = Counter(
    'booking_cancellation_notifications_total',
    'Cancellation notifications attempted',
    ['outcome'],
    registry=REGISTRY
)

TOURS_DELETED = Counter(
    'tours_deleted_total',
    'Tours removed through the archive-and-delete workflow',
    registry=REGISTRY
)

BOOKINGS_ARCHIVED = Counter(
    'bookings_archived_total',
    'Bookings copied to the backup store before tour deletion',
    registry=REGISTRY
)

REPORTS_EXPORTED = Counter(
    'reports_exported_total',
    'Analytics reports exported',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _service_resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing():
    """Setup OpenTelemetry tracing."""
    provider = TracerProvider(resource=_service_resource())

    if settings.otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )

    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics():
    """Setup OpenTelemetry metrics export when a collector is configured."""
    if settings.otlp_endpoint:
        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=settings.otlp_endpoint),
            export_interval_millis=60000,
        )
        metrics.set_meter_provider(MeterProvider(resource=_service_resource(), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the SQLAlchemy engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def get_tracer(name: str):
    """Return a tracer from the active provider."""
    return trace.get_tracer(name)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration_seconds: float):
        """Record one served HTTP request."""
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration_seconds)

    @staticmethod
    def record_transition(from_status: str, to_status: str):
        """Record a committed booking status transition."""
        BOOKING_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def record_notification(outcome: str):
        """Record a cancellation notification outcome (sent/failed)."""
        CANCELLATION_NOTIFICATIONS.labels(outcome=outcome).inc()

    @staticmethod
    def record_tour_deleted(archived_bookings: int):
        """Record a completed tour deletion and its archived bookings."""
        TOURS_DELETED.inc()
        if archived_bookings:
            BOOKINGS_ARCHIVED.inc(archived_bookings)

    @staticmethod
    def record_report_exported():
        """Record a report export."""
        REPORTS_EXPORTED.inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_logger(name: str):
    """Get a structlog logger bound to a component name."""
    return structlog.get_logger(name).bind(component=name)
