"""Metrics package for the segmentation server.

Provides Prometheus metrics export for monitoring upload processing.
"""

from analytics.services.segments_server.metrics.prometheus_exporter import (
    get_metrics_text,
    record_upload,
    start_metrics_server,
)

__all__ = [
    "start_metrics_server",
    "get_metrics_text",
    "record_upload",
]
