"""Synthetic data generation utilities.

This package helps produce realistic-but-fake transaction files to exercise
the RFM upload pipeline without accessing production data.
"""

from .generator import generate_sample_transactions, write_transactions_csv

__all__ = [
    "generate_sample_transactions",
    "write_transactions_csv",
]
