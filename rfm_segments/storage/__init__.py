"""Storage interfaces for persisted transactions and segments."""

from .repository import (
    InMemorySegmentRepository,
    SegmentRepository,
    UploadRecord,
    transaction_row,
)

__all__ = [
    "InMemorySegmentRepository",
    "SegmentRepository",
    "UploadRecord",
    "transaction_row",
]
