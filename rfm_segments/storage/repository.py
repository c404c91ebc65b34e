"""Persistence boundary for transactions, segments and upload history.

The scorer is a pure function; everything it reads and writes goes through
a :class:`SegmentRepository` supplied by the caller. All data is scoped by
``user_id`` and a repository must never leak one user's rows to another.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, Sequence

from rfm_segments.foundation.rfm import RFMScore
from rfm_segments.foundation.transactions import (
    Transaction,
    normalise_transactions,
)


@dataclass(frozen=True)
class UploadRecord:
    """History entry for one processed upload.

    Attributes
    ----------
    upload_id:
        Repository-assigned identifier
    user_id:
        Owner of the upload
    file_name:
        Name of the uploaded file
    file_size:
        Size of the uploaded content in bytes
    transactions_count:
        Number of new transactions in the upload
    customers_count:
        Number of distinct customers among the new transactions
    created_at:
        When the upload was recorded (UTC)
    """

    upload_id: str
    user_id: str
    file_name: str
    file_size: int
    transactions_count: int
    customers_count: int
    created_at: datetime

    def __post_init__(self) -> None:
        if self.file_size < 0:
            raise ValueError(f"File size cannot be negative: {self.file_size}")
        if self.transactions_count < 0 or self.customers_count < 0:
            raise ValueError(
                "Upload counts cannot be negative",
                {
                    "transactions_count": self.transactions_count,
                    "customers_count": self.customers_count,
                },
            )


def transaction_row(upload_id: str, transaction: Transaction) -> dict[str, Any]:
    """Flatten a transaction into the row shape a relational store persists.

    Dates are stored as ISO 8601 text and amounts as decimal strings, so
    rows read back go through :func:`normalise_transactions` like any other
    persisted record.
    """
    return {
        "upload_id": upload_id,
        "customer_id": transaction.customer_id,
        "customer_name": transaction.customer_name,
        "transaction_date": transaction.transaction_date.isoformat(),
        "transaction_amount": str(transaction.transaction_amount),
    }


class SegmentRepository(Protocol):
    """Storage operations needed by the upload pipeline."""

    def list_transactions(self, user_id: str) -> list[Transaction]: ...

    def record_upload(
        self,
        user_id: str,
        *,
        file_name: str,
        file_size: int,
        transactions_count: int,
        customers_count: int,
    ) -> UploadRecord: ...

    def add_transactions(
        self, user_id: str, upload_id: str, transactions: Sequence[Transaction]
    ) -> None: ...

    def replace_segments(
        self, user_id: str, upload_id: str, scores: Sequence[RFMScore]
    ) -> None: ...

    def list_segments(self, user_id: str) -> list[RFMScore]: ...

    def segments_upload_id(self, user_id: str) -> str | None: ...

    def list_uploads(self, user_id: str) -> list[UploadRecord]: ...


class InMemorySegmentRepository:
    """Thread-safe, process-local :class:`SegmentRepository`.

    Uses threading.RLock so concurrent uploads for different users (or the
    same user) never observe a half-replaced segment set.
    """

    def __init__(self) -> None:
        self._transaction_rows: dict[str, list[dict[str, Any]]] = {}
        self._segments: dict[str, tuple[str, list[RFMScore]]] = {}
        self._uploads: dict[str, list[UploadRecord]] = {}
        self._upload_ids = itertools.count(1)
        self._lock = threading.RLock()

    def list_transactions(self, user_id: str) -> list[Transaction]:
        with self._lock:
            rows = list(self._transaction_rows.get(user_id, []))
        return normalise_transactions(rows)

    def record_upload(
        self,
        user_id: str,
        *,
        file_name: str,
        file_size: int,
        transactions_count: int,
        customers_count: int,
    ) -> UploadRecord:
        with self._lock:
            record = UploadRecord(
                upload_id=f"upload-{next(self._upload_ids)}",
                user_id=user_id,
                file_name=file_name,
                file_size=file_size,
                transactions_count=transactions_count,
                customers_count=customers_count,
                created_at=datetime.now(timezone.utc),
            )
            self._uploads.setdefault(user_id, []).append(record)
            return record

    def add_transactions(
        self, user_id: str, upload_id: str, transactions: Sequence[Transaction]
    ) -> None:
        with self._lock:
            self._transaction_rows.setdefault(user_id, []).extend(
                transaction_row(upload_id, txn) for txn in transactions
            )

    def replace_segments(
        self, user_id: str, upload_id: str, scores: Sequence[RFMScore]
    ) -> None:
        with self._lock:
            self._segments[user_id] = (upload_id, list(scores))

    def list_segments(self, user_id: str) -> list[RFMScore]:
        with self._lock:
            _, scores = self._segments.get(user_id, ("", []))
            return list(scores)

    def segments_upload_id(self, user_id: str) -> str | None:
        """Return the upload that produced the user's current segments."""
        with self._lock:
            entry = self._segments.get(user_id)
            return entry[0] if entry else None

    def list_uploads(self, user_id: str) -> list[UploadRecord]:
        with self._lock:
            return list(self._uploads.get(user_id, []))
