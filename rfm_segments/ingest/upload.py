"""Upload pipeline: CSV in, refreshed customer segments out.

Each upload appends its transactions to the user's history and rescores
the *entire* history from scratch. The user's previous segment set is
replaced wholesale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from rfm_segments.foundation.rfm import InvalidTransactionsError, calculate_rfm
from rfm_segments.pandas.transactions import parse_transactions_csv
from rfm_segments.storage.repository import SegmentRepository

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Data processed successfully"


class NoTransactionsError(InvalidTransactionsError):
    """Raised when an uploaded CSV contains no usable transaction rows."""


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a processed upload.

    Attributes
    ----------
    upload_id:
        Identifier assigned by the repository
    transactions_processed:
        Number of new transactions taken from the upload
    customers_segmented:
        Number of customers scored across the user's full history
    skipped_rows:
        CSV rows dropped for an empty customer_id or bad date
    message:
        Human readable status
    """

    upload_id: str
    transactions_processed: int
    customers_segmented: int
    skipped_rows: int = 0
    message: str = SUCCESS_MESSAGE

    def stats(self) -> dict[str, int]:
        return {
            "transactions_processed": self.transactions_processed,
            "customers_segmented": self.customers_segmented,
        }


def process_upload(
    repository: SegmentRepository,
    user_id: str,
    file_name: str,
    content: str | bytes,
    as_of: Optional[datetime] = None,
) -> UploadResult:
    """Ingest a transactions CSV for ``user_id`` and rescore all customers.

    Parameters
    ----------
    repository:
        Storage for the user's transactions, segments and upload history
    user_id:
        Owner of the data; every repository call is scoped to it
    file_name:
        Name recorded in upload history
    content:
        Raw CSV content
    as_of:
        Reference time for recency (defaults to now, UTC)

    Raises
    ------
    MissingColumnsError
        If required CSV headers are missing
    NoTransactionsError
        If the CSV contains no valid rows
    """
    if not user_id:
        raise ValueError("user_id is required to process an upload")

    raw = content.encode("utf-8") if isinstance(content, str) else content
    parsed = parse_transactions_csv(raw)
    new_transactions = parsed.transactions
    if not new_transactions:
        raise NoTransactionsError("No valid transactions found in CSV")

    existing = repository.list_transactions(user_id)
    logger.info(
        f"Scoring {len(existing) + len(new_transactions)} transactions for user {user_id} "
        f"({len(existing)} existing, {len(new_transactions)} new)"
    )
    scores = calculate_rfm([*existing, *new_transactions], as_of=as_of)

    upload = repository.record_upload(
        user_id,
        file_name=file_name,
        file_size=len(raw),
        transactions_count=len(new_transactions),
        customers_count=len({t.customer_id for t in new_transactions}),
    )
    repository.add_transactions(user_id, upload.upload_id, new_transactions)
    repository.replace_segments(user_id, upload.upload_id, scores)

    if parsed.skipped_rows:
        logger.warning(
            f"Upload {upload.upload_id} skipped {parsed.skipped_rows} invalid rows"
        )
    logger.info(
        f"Upload {upload.upload_id}: {len(new_transactions)} transactions processed, "
        f"{len(scores)} customers segmented"
    )

    return UploadResult(
        upload_id=upload.upload_id,
        transactions_processed=len(new_transactions),
        customers_segmented=len(scores),
        skipped_rows=parsed.skipped_rows,
    )
