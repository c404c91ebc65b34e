"""Upload ingestion pipeline."""

from .upload import NoTransactionsError, UploadResult, process_upload

__all__ = ["NoTransactionsError", "UploadResult", "process_upload"]
