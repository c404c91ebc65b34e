"""Foundational building blocks for RFM customer segmentation.

This package exposes the transaction record, the RFM scorer and the
segment rule chain that turns R/F/M scores into named segments.
"""

from .rfm import (
    CustomerAggregate,
    InvalidTransactionsError,
    RFMScore,
    aggregate_transactions,
    calculate_rfm,
    quartile_score,
)
from .segments import (
    SEGMENT_RULES,
    CustomerSegment,
    SegmentSummary,
    assign_segment,
    summarize_segments,
)
from .transactions import (
    Transaction,
    normalise_transactions,
    parse_amount,
    parse_transaction_date,
)

__all__ = [
    "CustomerAggregate",
    "CustomerSegment",
    "InvalidTransactionsError",
    "RFMScore",
    "SEGMENT_RULES",
    "SegmentSummary",
    "Transaction",
    "aggregate_transactions",
    "assign_segment",
    "calculate_rfm",
    "normalise_transactions",
    "parse_amount",
    "parse_transaction_date",
    "quartile_score",
    "summarize_segments",
]
