"""Pandas DataFrame adapters for RFM scoring."""

from datetime import datetime
from typing import Optional, Sequence

import pandas as pd  # type: ignore

from rfm_segments.foundation.rfm import RFMScore, calculate_rfm
from ._utils import decimal_to_float
from .transactions import transactions_from_dataframe

RFM_SCORE_COLUMNS = [
    "customer_id",
    "recency_score",
    "frequency_score",
    "monetary_score",
    "total_transactions",
    "total_spend",
    "avg_spend",
    "last_transaction_date",
    "segment_name",
]


def rfm_scores_to_dataframe(scores: Sequence[RFMScore]) -> pd.DataFrame:
    """Convert RFM scores to pandas DataFrame.

    Args:
        scores: Sequence of RFMScore objects

    Returns:
        DataFrame with one row per customer in input order. Amounts are
        floats; last_transaction_date holds ``datetime.date`` values.

    Example:
        >>> scores = calculate_rfm(transactions)
        >>> df = rfm_scores_to_dataframe(scores)
        >>> df.groupby("segment_name").size()
    """
    if not scores:
        return pd.DataFrame(columns=RFM_SCORE_COLUMNS)

    rows = [
        {
            "customer_id": s.customer_id,
            "recency_score": s.recency_score,
            "frequency_score": s.frequency_score,
            "monetary_score": s.monetary_score,
            "total_transactions": s.total_transactions,
            "total_spend": decimal_to_float(s.total_spend),
            "avg_spend": decimal_to_float(s.avg_spend),
            "last_transaction_date": s.last_transaction_date,
            "segment_name": s.segment_name,
        }
        for s in scores
    ]
    return pd.DataFrame(rows, columns=RFM_SCORE_COLUMNS)


def calculate_rfm_df(
    transactions_df: pd.DataFrame,
    as_of: Optional[datetime] = None,
) -> pd.DataFrame:
    """Score a DataFrame of transactions and return the scores as a DataFrame.

    Args:
        transactions_df: DataFrame with customer_id, transaction_date and
            transaction_amount columns (customer_name optional)
        as_of: Reference time for recency (defaults to now, UTC)

    Raises:
        MissingColumnsError: If required columns are absent
        InvalidTransactionsError: If no usable rows remain
    """
    parsed = transactions_from_dataframe(transactions_df)
    return rfm_scores_to_dataframe(calculate_rfm(parsed.transactions, as_of=as_of))
