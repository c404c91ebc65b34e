"""Upload MCP Tool - ingest a transactions CSV and refresh segments"""

import time
from datetime import datetime
from pathlib import Path

import structlog
from fastmcp import Context
from opentelemetry import trace
from pydantic import BaseModel, Field, model_validator

from analytics.services.segments_server.config import ServerSettings
from analytics.services.segments_server.instance import mcp
from analytics.services.segments_server.metrics import record_upload
from analytics.services.segments_server.state import get_repository
from rfm_segments.ingest.upload import process_upload
from rfm_segments.storage.repository import SegmentRepository

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class ProcessUploadRequest(BaseModel):
    """Request to process a transactions CSV for one user."""

    user_id: str = Field(min_length=1, description="Owner of the uploaded data")
    csv_text: str | None = Field(
        default=None, description="Inline CSV content (mutually exclusive with file_path)"
    )
    file_path: str | None = Field(
        default=None, description="Path to a CSV file (mutually exclusive with csv_text)"
    )
    file_name: str | None = Field(
        default=None,
        description="Name recorded in upload history (defaults to the file's name)",
    )
    as_of: datetime | None = Field(
        default=None, description="Reference time for recency (defaults to now)"
    )

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "ProcessUploadRequest":
        if (self.csv_text is None) == (self.file_path is None):
            raise ValueError("Provide exactly one of csv_text or file_path")
        return self


class UploadStats(BaseModel):
    transactions_processed: int
    customers_segmented: int


class ProcessUploadResponse(BaseModel):
    """Upload processing response."""

    success: bool
    message: str
    stats: UploadStats
    upload_id: str
    skipped_rows: int


def _read_source(request: ProcessUploadRequest, max_bytes: int) -> tuple[str, bytes]:
    if request.csv_text is not None:
        content = request.csv_text.encode("utf-8")
        file_name = request.file_name or "upload.csv"
    else:
        path = Path(request.file_path).resolve()
        if not path.exists():
            raise FileNotFoundError(f"Transaction file not found: {path}")
        size = path.stat().st_size
        if size > max_bytes:
            raise ValueError(
                f"Input file {path} is {size} bytes; exceeds limit of {max_bytes} bytes"
            )
        content = path.read_bytes()
        file_name = request.file_name or path.name

    if len(content) > max_bytes:
        raise ValueError(
            f"Upload is {len(content)} bytes; exceeds limit of {max_bytes} bytes"
        )
    return file_name, content


async def _process_transactions_csv_impl(
    request: ProcessUploadRequest,
    ctx: Context,
    repository: SegmentRepository,
    settings: ServerSettings | None = None,
) -> ProcessUploadResponse:
    """Implementation of upload processing logic."""
    settings = settings or ServerSettings()
    await ctx.info(f"Processing transactions upload for user {request.user_id}")

    file_name = request.file_name or request.file_path or "upload.csv"
    started = time.perf_counter()
    with tracer.start_as_current_span("process_upload") as span:
        span.set_attribute("user_id", request.user_id)
        try:
            file_name, content = _read_source(request, settings.max_upload_bytes)
            span.set_attribute("file_size", len(content))
            logger.info(
                "upload_processing_started",
                user_id=request.user_id,
                file_name=file_name,
                file_size=len(content),
            )
            result = process_upload(
                repository,
                user_id=request.user_id,
                file_name=file_name,
                content=content,
                as_of=request.as_of,
            )
        except Exception as e:
            record_upload(time.perf_counter() - started, success=False)
            logger.error(
                "upload_processing_failed",
                user_id=request.user_id,
                file_name=file_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        span.set_attribute("customers_segmented", result.customers_segmented)

    duration = time.perf_counter() - started
    record_upload(duration, success=True, customer_count=result.customers_segmented)
    logger.info(
        "upload_processing_complete",
        user_id=request.user_id,
        upload_id=result.upload_id,
        transactions_processed=result.transactions_processed,
        customers_segmented=result.customers_segmented,
        skipped_rows=result.skipped_rows,
        duration_seconds=round(duration, 4),
    )
    await ctx.info(
        f"Upload {result.upload_id} complete: {result.customers_segmented} customers segmented"
    )

    return ProcessUploadResponse(
        success=True,
        message=result.message,
        stats=UploadStats(**result.stats()),
        upload_id=result.upload_id,
        skipped_rows=result.skipped_rows,
    )


@mcp.tool()
async def process_transactions_csv(
    request: ProcessUploadRequest, ctx: Context
) -> ProcessUploadResponse:
    """
    Ingest a transactions CSV and recompute the user's customer segments.

    The CSV needs customer_id, transaction_date and transaction_amount
    columns (customer_name optional). New rows are appended to the user's
    history and every customer is rescored from the full history, replacing
    the previous segments.

    Args:
        request: User and CSV source

    Returns:
        Processing statistics for the upload
    """
    return await _process_transactions_csv_impl(
        request, ctx, get_repository(), ServerSettings.from_env()
    )
