"""Prometheus Metrics Exporter

Exports upload-processing metrics to Prometheus.

Metrics exported:
- upload_processing_duration_seconds: Histogram of upload processing times
- uploads_total: Counter of processed uploads by status
- customers_segmented: Gauge of customers scored by the most recent upload

Usage:
    >>> start_metrics_server(port=8000)

    # Metrics available at http://localhost:8000/metrics
"""

from threading import Lock

import structlog
from prometheus_client import Counter, Gauge, Histogram, generate_latest, start_http_server

logger = structlog.get_logger(__name__)

upload_processing_duration = Histogram(
    "upload_processing_duration_seconds",
    "Upload processing duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

uploads_total = Counter(
    "uploads_total",
    "Total processed uploads",
    ["status"],  # status: success or failure
)

customers_segmented = Gauge(
    "customers_segmented", "Customers scored by the most recent successful upload"
)

_metrics_server_started = False
_metrics_lock = Lock()


def start_metrics_server(port: int = 8000):
    """Start Prometheus metrics HTTP server.

    Raises:
        RuntimeError: If metrics server is already running
    """
    global _metrics_server_started

    with _metrics_lock:
        if _metrics_server_started:
            raise RuntimeError("Metrics server is already running")

        try:
            start_http_server(port)
            _metrics_server_started = True
            logger.info("prometheus_metrics_server_started", port=port)
        except Exception as e:
            logger.error(
                "prometheus_metrics_server_failed",
                port=port,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise


def get_metrics_text() -> bytes:
    """Get current Prometheus metrics in text format."""
    return generate_latest()


def record_upload(duration_seconds: float, success: bool, customer_count: int = 0):
    """Record a processed upload.

    Args:
        duration_seconds: Processing duration in seconds
        success: Whether processing succeeded
        customer_count: Customers segmented (ignored on failure)

    Example:
        >>> record_upload(0.42, True, customer_count=150)
    """
    status = "success" if success else "failure"
    upload_processing_duration.observe(duration_seconds)
    uploads_total.labels(status=status).inc()
    if success:
        customers_segmented.set(customer_count)
