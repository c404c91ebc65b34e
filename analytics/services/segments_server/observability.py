"""
Observability configuration for the segmentation server.

Configures OpenTelemetry tracing and metrics plus structured logging.
Spans and metrics go to the console unless an OTLP endpoint is given.
"""

import sys

import structlog
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio, TraceIdRatioBased

from analytics.services.segments_server.config import ServerSettings

logger = structlog.get_logger(__name__)

SERVICE_NAME = "rfm-segmentation"


def configure_logging() -> None:
    """Render structlog events as JSON on stderr.

    stdout carries the MCP JSON protocol and must stay clean.
    """
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
    )


def configure_observability(settings: ServerSettings, service_name: str = SERVICE_NAME):
    """
    Configure OpenTelemetry tracing and metrics.

    Args:
        settings: Server settings (environment, OTLP endpoint, sampling rate)
        service_name: Name of the service for telemetry identification

    Returns:
        Tuple of (tracer, meter) for creating spans and metrics
    """
    use_otlp = settings.otlp_endpoint is not None

    resource = Resource.create(
        {
            "service.name": service_name,
            "deployment.environment": settings.environment,
        }
    )

    trace_provider = TracerProvider(
        resource=resource, sampler=_create_sampler(settings.sampling_rate)
    )
    span_exporter = ConsoleSpanExporter()
    metric_exporter = ConsoleMetricExporter()

    if use_otlp:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                OTLPMetricExporter,
            )
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )

            # Use insecure connection for localhost (no TLS)
            span_exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)
            metric_exporter = OTLPMetricExporter(
                endpoint=settings.otlp_endpoint, insecure=True
            )
            logger.info("otlp_export_configured", endpoint=settings.otlp_endpoint)
        except ImportError as e:
            logger.warning(
                "otlp_exporter_not_available_falling_back_to_console",
                error=str(e),
                message="Install opentelemetry-exporter-otlp-proto-grpc for OTLP export",
            )
            use_otlp = False

    trace_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(trace_provider)

    metric_reader = PeriodicExportingMetricReader(
        metric_exporter, export_interval_millis=60000 if use_otlp else 5000
    )
    metrics.set_meter_provider(
        MeterProvider(resource=resource, metric_readers=[metric_reader])
    )

    configure_logging()

    logger.info(
        "observability_configured",
        service_name=service_name,
        environment=settings.environment,
        otlp_enabled=use_otlp,
        sampling_rate=settings.sampling_rate,
    )
    return trace.get_tracer(service_name), metrics.get_meter(service_name)


def _create_sampler(sampling_rate: float):
    """Create a trace sampler based on sampling rate (0.0-1.0)."""
    if sampling_rate <= 0.0:
        return TraceIdRatioBased(0.0)
    return ParentBasedTraceIdRatio(min(sampling_rate, 1.0))
