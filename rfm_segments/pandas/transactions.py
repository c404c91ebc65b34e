"""CSV ingestion and DataFrame adapters for transactions."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Sequence

import pandas as pd  # type: ignore

from rfm_segments.foundation.transactions import (
    Transaction,
    parse_amount,
    parse_transaction_date,
)
from ._utils import decimal_to_float

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("customer_id", "transaction_date", "transaction_amount")
OPTIONAL_COLUMNS = ("customer_name",)
TRANSACTION_COLUMNS = [
    "customer_id",
    "customer_name",
    "transaction_date",
    "transaction_amount",
]


class MissingColumnsError(ValueError):
    """Raised when a transactions table lacks required columns."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required headers: {', '.join(self.missing)}")


@dataclass(frozen=True)
class CsvParseResult:
    """Transactions parsed from a CSV plus the number of rows dropped."""

    transactions: List[Transaction] = field(default_factory=list)
    skipped_rows: int = 0


def _cell(value: Any) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def transactions_from_dataframe(df: pd.DataFrame) -> CsvParseResult:
    """Convert a DataFrame of raw transaction rows into transactions.

    Column names are matched case-insensitively after trimming. Rows with an
    empty customer_id or an unparseable date are skipped; malformed amounts
    become zero.

    Raises:
        MissingColumnsError: If any of ``customer_id``, ``transaction_date``
            or ``transaction_amount`` is absent.
    """
    df = df.copy()
    df.columns = [str(col).strip().lower() for col in df.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise MissingColumnsError(missing)

    has_name = "customer_name" in df.columns
    transactions: List[Transaction] = []
    skipped = 0
    for row_number, record in enumerate(df.to_dict("records"), start=1):
        customer_id = _cell(record["customer_id"])
        if not customer_id:
            skipped += 1
            continue

        raw_date = record["transaction_date"]
        if isinstance(raw_date, str):
            raw_date = raw_date.strip()
        try:
            transaction_date = parse_transaction_date(raw_date)
        except ValueError:
            logger.warning(
                f"Skipping row {row_number}: unparseable transaction_date {raw_date!r}"
            )
            skipped += 1
            continue

        customer_name = _cell(record["customer_name"]) if has_name else ""
        transactions.append(
            Transaction(
                customer_id=customer_id,
                transaction_date=transaction_date,
                transaction_amount=parse_amount(record["transaction_amount"]),
                customer_name=customer_name or None,
            )
        )

    return CsvParseResult(transactions=transactions, skipped_rows=skipped)


def parse_transactions_csv(content: str | bytes) -> CsvParseResult:
    """Parse CSV text into transactions.

    Every cell is read as a string so identifiers like ``007`` keep their
    leading zeros. Fields are matched to headers by position; fields past
    the last header (trailing commas included) are ignored.

    Example:
        >>> result = parse_transactions_csv(
        ...     "customer_id,transaction_date,transaction_amount\\n"
        ...     "A,2024-01-01,100\\n"
        ... )
        >>> result.transactions[0].customer_id
        'A'
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")
    text = content.strip()
    if not text:
        raise MissingColumnsError(REQUIRED_COLUMNS)

    df = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        index_col=False,
        engine="python",
    )
    return transactions_from_dataframe(df)


def read_transactions_csv(path: Path) -> CsvParseResult:
    """Read and parse a transactions CSV file."""
    return parse_transactions_csv(Path(path).read_bytes())


def transactions_to_dataframe(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """Convert transactions to a DataFrame.

    Returns:
        DataFrame with columns: customer_id, customer_name,
        transaction_date, transaction_amount (float)
    """
    if not transactions:
        return pd.DataFrame(columns=TRANSACTION_COLUMNS)

    rows = [
        {
            "customer_id": t.customer_id,
            "customer_name": t.customer_name,
            "transaction_date": t.transaction_date,
            "transaction_amount": decimal_to_float(t.transaction_amount),
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
