"""Tests for the upload pipeline."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from rfm_segments.foundation.rfm import InvalidTransactionsError
from rfm_segments.ingest import NoTransactionsError, process_upload
from rfm_segments.pandas import MissingColumnsError
from rfm_segments.storage import InMemorySegmentRepository

AS_OF = datetime(2024, 6, 2, tzinfo=timezone.utc)

FIRST_UPLOAD = (
    "customer_id,customer_name,transaction_date,transaction_amount\n"
    "A,Ada,2024-01-01,100\n"
    "A,Ada,2024-02-01,200\n"
    "B,Bo,2024-06-01,50\n"
)


@pytest.fixture
def repository():
    return InMemorySegmentRepository()


class TestProcessUpload:
    """Test process_upload end to end against the in-memory repository."""

    def test_first_upload(self, repository):
        result = process_upload(repository, "alice", "first.csv", FIRST_UPLOAD, as_of=AS_OF)

        assert result.transactions_processed == 3
        assert result.customers_segmented == 2
        assert result.skipped_rows == 0
        assert result.message == "Data processed successfully"
        assert result.stats() == {"transactions_processed": 3, "customers_segmented": 2}

        segments = {s.customer_id: s for s in repository.list_segments("alice")}
        assert segments["B"].segment_name == "New Customers"
        assert segments["A"].segment_name == "Potential Loyalists"

        (upload,) = repository.list_uploads("alice")
        assert upload.upload_id == result.upload_id
        assert upload.file_name == "first.csv"
        assert upload.file_size == len(FIRST_UPLOAD.encode("utf-8"))
        assert upload.transactions_count == 3
        assert upload.customers_count == 2

    def test_second_upload_rescores_full_history(self, repository):
        process_upload(repository, "alice", "first.csv", FIRST_UPLOAD, as_of=AS_OF)
        result = process_upload(
            repository,
            "alice",
            "second.csv",
            "customer_id,transaction_date,transaction_amount\n"
            "B,2024-06-01,500\n"
            "C,2024-05-01,5\n",
            as_of=AS_OF,
        )

        assert result.transactions_processed == 2
        assert result.customers_segmented == 3
        assert len(repository.list_transactions("alice")) == 5

        segments = {s.customer_id: s for s in repository.list_segments("alice")}
        assert set(segments) == {"A", "B", "C"}
        assert segments["B"].total_transactions == 2
        assert segments["B"].total_spend == Decimal("550")
        assert repository.segments_upload_id("alice") == result.upload_id

        second_upload = repository.list_uploads("alice")[-1]
        assert second_upload.customers_count == 2

    def test_users_are_isolated(self, repository):
        process_upload(repository, "alice", "a.csv", FIRST_UPLOAD, as_of=AS_OF)
        process_upload(
            repository,
            "bob",
            "b.csv",
            "customer_id,transaction_date,transaction_amount\nZ,2024-01-01,1\n",
            as_of=AS_OF,
        )
        assert {s.customer_id for s in repository.list_segments("alice")} == {"A", "B"}
        assert {s.customer_id for s in repository.list_segments("bob")} == {"Z"}

    def test_missing_headers_leave_repository_untouched(self, repository):
        with pytest.raises(MissingColumnsError, match="transaction_amount"):
            process_upload(
                repository,
                "alice",
                "bad.csv",
                "customer_id,transaction_date\nA,2024-01-01\n",
                as_of=AS_OF,
            )
        assert repository.list_uploads("alice") == []

    def test_no_valid_rows(self, repository):
        with pytest.raises(NoTransactionsError, match="No valid transactions found in CSV"):
            process_upload(
                repository,
                "alice",
                "empty.csv",
                "customer_id,transaction_date,transaction_amount\n,2024-01-01,1\n",
                as_of=AS_OF,
            )
        assert repository.list_uploads("alice") == []

    def test_no_transactions_error_is_invalid_input(self):
        assert issubclass(NoTransactionsError, InvalidTransactionsError)
        assert issubclass(NoTransactionsError, ValueError)

    def test_skipped_rows_reported(self, repository):
        result = process_upload(
            repository,
            "alice",
            "partial.csv",
            FIRST_UPLOAD + "D,Di,yesterday,10\n",
            as_of=AS_OF,
        )
        assert result.skipped_rows == 1
        assert result.transactions_processed == 3

    def test_bytes_content(self, repository):
        result = process_upload(
            repository, "alice", "f.csv", FIRST_UPLOAD.encode("utf-8"), as_of=AS_OF
        )
        assert result.customers_segmented == 2

    def test_empty_user_id_rejected(self, repository):
        with pytest.raises(ValueError, match="user_id is required"):
            process_upload(repository, "", "f.csv", FIRST_UPLOAD, as_of=AS_OF)

    def test_out_of_range_amount_does_not_fail_upload(self, repository):
        result = process_upload(
            repository,
            "alice",
            "huge.csv",
            "customer_id,transaction_date,transaction_amount\n"
            "A,2024-01-01,1e1000000\n"
            "B,2024-01-02,5\n",
            as_of=AS_OF,
        )
        assert result.customers_segmented == 2
        segments = {s.customer_id: s for s in repository.list_segments("alice")}
        assert segments["A"].total_spend == Decimal("0")
        assert segments["B"].total_spend == Decimal("5")

    def test_trailing_commas_are_accepted(self, repository):
        result = process_upload(
            repository,
            "alice",
            "trailing.csv",
            "customer_id,transaction_date,transaction_amount\n"
            "A,2024-01-01,100,\n"
            "B,2024-02-01,50,\n",
            as_of=AS_OF,
        )
        assert result.transactions_processed == 2
        assert result.skipped_rows == 0
        assert [s.customer_id for s in repository.list_segments("alice")] == ["A", "B"]
