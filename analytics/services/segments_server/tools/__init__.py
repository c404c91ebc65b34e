"""MCP Tools for RFM customer segmentation."""

from .health_check import health_check
from .segments import get_customer_segments, get_segment_summary, list_upload_history
from .upload import process_transactions_csv

__all__ = [
    "process_transactions_csv",
    "get_customer_segments",
    "get_segment_summary",
    "list_upload_history",
    "health_check",
]
