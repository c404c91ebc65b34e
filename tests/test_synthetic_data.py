"""Tests for the synthetic transaction generator."""

from datetime import date

import pytest

from rfm_segments.foundation.rfm import calculate_rfm
from rfm_segments.pandas import read_transactions_csv
from rfm_segments.synthetic import generate_sample_transactions, write_transactions_csv

START = date(2024, 1, 1)
END = date(2024, 12, 31)


def test_generation_is_deterministic_with_seed():
    first = generate_sample_transactions(50, START, END, seed=7)
    second = generate_sample_transactions(50, START, END, seed=7)
    assert first == second


def test_every_customer_has_a_transaction_in_range():
    transactions = generate_sample_transactions(40, START, END, seed=1)
    assert {t.customer_id for t in transactions} == {f"C-{i + 1}" for i in range(40)}
    for t in transactions:
        assert START <= t.transaction_date.date() <= END
        assert t.transaction_amount > 0


def test_zero_customers_returns_empty():
    assert generate_sample_transactions(0, START, END) == []


def test_invalid_date_range_raises():
    with pytest.raises(ValueError, match="start date must be <= end date"):
        generate_sample_transactions(5, END, START)


def test_written_csv_is_scoreable(tmp_path):
    transactions = generate_sample_transactions(30, START, END, seed=3)
    path = write_transactions_csv(transactions, tmp_path / "out" / "sample.csv")

    parsed = read_transactions_csv(path)
    assert parsed.skipped_rows == 0
    assert len(parsed.transactions) == len(transactions)

    scores = calculate_rfm(parsed.transactions)
    assert len(scores) == 30
