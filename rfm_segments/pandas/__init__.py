"""Pandas DataFrame adapters for RFM segmentation components."""

from .rfm import (
    calculate_rfm_df,
    rfm_scores_to_dataframe,
)
from .transactions import (
    CsvParseResult,
    MissingColumnsError,
    parse_transactions_csv,
    read_transactions_csv,
    transactions_from_dataframe,
    transactions_to_dataframe,
)

__all__ = [
    # RFM adapters
    "calculate_rfm_df",
    "rfm_scores_to_dataframe",
    # Transaction ingestion
    "CsvParseResult",
    "MissingColumnsError",
    "parse_transactions_csv",
    "read_transactions_csv",
    "transactions_from_dataframe",
    "transactions_to_dataframe",
]
