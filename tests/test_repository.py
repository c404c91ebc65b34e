"""Tests for the in-memory segment repository."""

import threading
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from rfm_segments.foundation.rfm import RFMScore
from rfm_segments.foundation.transactions import Transaction
from rfm_segments.storage import (
    InMemorySegmentRepository,
    UploadRecord,
    transaction_row,
)

UTC = timezone.utc


def _txn(customer_id):
    return Transaction(customer_id, datetime(2024, 1, 1, tzinfo=UTC), Decimal("10"))


def _score(customer_id):
    return RFMScore(
        customer_id=customer_id,
        recency_score=4,
        frequency_score=1,
        monetary_score=1,
        total_transactions=1,
        total_spend=Decimal("10"),
        avg_spend=Decimal("10"),
        last_transaction_date=date(2024, 1, 1),
        segment_name="New Customers",
    )


@pytest.fixture
def repository():
    return InMemorySegmentRepository()


class TestUploadRecord:
    def test_negative_file_size_raises_error(self):
        with pytest.raises(ValueError, match="File size cannot be negative"):
            UploadRecord("u1", "user", "f.csv", -1, 0, 0, datetime.now(UTC))


class TestInMemorySegmentRepository:
    """Test per-user isolation and segment replacement."""

    def test_record_upload_assigns_unique_ids(self, repository):
        first = repository.record_upload(
            "alice", file_name="a.csv", file_size=10, transactions_count=2, customers_count=1
        )
        second = repository.record_upload(
            "alice", file_name="b.csv", file_size=20, transactions_count=3, customers_count=2
        )
        assert first.upload_id != second.upload_id
        assert [u.file_name for u in repository.list_uploads("alice")] == ["a.csv", "b.csv"]

    def test_transactions_are_scoped_by_user(self, repository):
        repository.add_transactions("alice", "upload-1", [_txn("A"), _txn("B")])
        repository.add_transactions("bob", "upload-2", [_txn("Z")])

        assert [t.customer_id for t in repository.list_transactions("alice")] == ["A", "B"]
        assert [t.customer_id for t in repository.list_transactions("bob")] == ["Z"]
        assert repository.list_transactions("carol") == []

    def test_transactions_accumulate_across_uploads(self, repository):
        repository.add_transactions("alice", "upload-1", [_txn("A")])
        repository.add_transactions("alice", "upload-2", [_txn("B")])
        assert len(repository.list_transactions("alice")) == 2

    def test_replace_segments_discards_previous_set(self, repository):
        repository.replace_segments("alice", "upload-1", [_score("A"), _score("B")])
        repository.replace_segments("alice", "upload-2", [_score("C")])

        assert [s.customer_id for s in repository.list_segments("alice")] == ["C"]
        assert repository.segments_upload_id("alice") == "upload-2"

    def test_segments_are_scoped_by_user(self, repository):
        repository.replace_segments("alice", "upload-1", [_score("A")])
        assert repository.list_segments("bob") == []
        assert repository.segments_upload_id("bob") is None

    def test_returned_lists_are_copies(self, repository):
        repository.replace_segments("alice", "upload-1", [_score("A")])
        repository.list_segments("alice").clear()
        assert len(repository.list_segments("alice")) == 1

    def test_transactions_round_trip_through_rows(self, repository):
        original = Transaction(
            "A",
            datetime(2024, 3, 5, 14, 30, tzinfo=UTC),
            Decimal("19.99"),
            customer_name="Ada",
        )
        repository.add_transactions("alice", "upload-1", [original, _txn("B")])

        assert repository.list_transactions("alice") == [original, _txn("B")]

    def test_transaction_row_shape(self):
        row = transaction_row("upload-7", _txn("A"))
        assert row == {
            "upload_id": "upload-7",
            "customer_id": "A",
            "customer_name": None,
            "transaction_date": "2024-01-01T00:00:00+00:00",
            "transaction_amount": "10",
        }

    def test_concurrent_uploads_get_distinct_ids(self, repository):
        ids = []
        lock = threading.Lock()

        def worker():
            record = repository.record_upload(
                "alice", file_name="f.csv", file_size=1, transactions_count=1, customers_count=1
            )
            with lock:
                ids.append(record.upload_id)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(ids)) == 20
