"""Segment query MCP Tools - read a user's scores, summaries and uploads"""

import structlog
from fastmcp import Context
from pydantic import BaseModel, Field

from analytics.services.segments_server.instance import mcp
from analytics.services.segments_server.state import get_repository
from rfm_segments.foundation.segments import CustomerSegment, summarize_segments
from rfm_segments.storage.repository import SegmentRepository

logger = structlog.get_logger(__name__)


class UserScopedRequest(BaseModel):
    """Request scoped to one user's data."""

    user_id: str = Field(min_length=1, description="Owner of the data")


class GetSegmentsRequest(UserScopedRequest):
    """Request to list a user's customer scores."""

    segment: CustomerSegment | None = Field(
        default=None, description="Only return customers in this segment"
    )
    limit: int | None = Field(
        default=None, gt=0, description="Maximum number of customers to return"
    )


class CustomerSegmentRow(BaseModel):
    customer_id: str
    recency_score: int
    frequency_score: int
    monetary_score: int
    total_transactions: int
    total_spend: float
    avg_spend: float
    last_transaction_date: str
    segment_name: str


class GetSegmentsResponse(BaseModel):
    upload_id: str | None = Field(
        default=None, description="Upload that produced the current segments"
    )
    total_customers: int
    returned_count: int
    customers: list[CustomerSegmentRow]


class SegmentSummaryRow(BaseModel):
    segment_name: str
    customer_count: int
    customer_pct: float
    total_spend: float
    avg_spend_per_customer: float


class SegmentSummaryResponse(BaseModel):
    total_customers: int
    segments: list[SegmentSummaryRow]


class UploadHistoryRow(BaseModel):
    upload_id: str
    file_name: str
    file_size: int
    transactions_count: int
    customers_count: int
    created_at: str


class UploadHistoryResponse(BaseModel):
    uploads: list[UploadHistoryRow]


async def _get_customer_segments_impl(
    request: GetSegmentsRequest, ctx: Context, repository: SegmentRepository
) -> GetSegmentsResponse:
    scores = repository.list_segments(request.user_id)
    total = len(scores)
    if request.segment is not None:
        scores = [s for s in scores if s.segment_name == request.segment.value]
    if request.limit is not None:
        scores = scores[: request.limit]

    logger.info(
        "customer_segments_listed",
        user_id=request.user_id,
        segment=request.segment.value if request.segment else None,
        returned=len(scores),
    )
    return GetSegmentsResponse(
        upload_id=repository.segments_upload_id(request.user_id),
        total_customers=total,
        returned_count=len(scores),
        customers=[CustomerSegmentRow(**s.as_dict()) for s in scores],
    )


async def _get_segment_summary_impl(
    request: UserScopedRequest, ctx: Context, repository: SegmentRepository
) -> SegmentSummaryResponse:
    scores = repository.list_segments(request.user_id)
    if not scores:
        await ctx.info(f"No segments stored for user {request.user_id}")

    return SegmentSummaryResponse(
        total_customers=len(scores),
        segments=[
            SegmentSummaryRow(
                segment_name=s.segment_name,
                customer_count=s.customer_count,
                customer_pct=float(s.customer_pct),
                total_spend=float(s.total_spend),
                avg_spend_per_customer=float(s.avg_spend_per_customer),
            )
            for s in summarize_segments(scores)
        ],
    )


async def _list_upload_history_impl(
    request: UserScopedRequest, ctx: Context, repository: SegmentRepository
) -> UploadHistoryResponse:
    uploads = repository.list_uploads(request.user_id)
    return UploadHistoryResponse(
        uploads=[
            UploadHistoryRow(
                upload_id=u.upload_id,
                file_name=u.file_name,
                file_size=u.file_size,
                transactions_count=u.transactions_count,
                customers_count=u.customers_count,
                created_at=u.created_at.isoformat(),
            )
            for u in uploads
        ]
    )


@mcp.tool()
async def get_customer_segments(
    request: GetSegmentsRequest, ctx: Context
) -> GetSegmentsResponse:
    """
    List a user's customer RFM scores and segments.

    Args:
        request: User, optional segment filter and limit

    Returns:
        Scored customers in the order they were first seen
    """
    return await _get_customer_segments_impl(request, ctx, get_repository())


@mcp.tool()
async def get_segment_summary(
    request: UserScopedRequest, ctx: Context
) -> SegmentSummaryResponse:
    """
    Summarise a user's customers per segment (count, share, spend).

    Args:
        request: User whose segments to summarise

    Returns:
        One row per segment, largest first
    """
    return await _get_segment_summary_impl(request, ctx, get_repository())


@mcp.tool()
async def list_upload_history(
    request: UserScopedRequest, ctx: Context
) -> UploadHistoryResponse:
    """
    List a user's processed uploads, oldest first.
    """
    return await _list_upload_history_impl(request, ctx, get_repository())
