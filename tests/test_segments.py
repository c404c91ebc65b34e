"""Tests for the segment rule chain and segment summaries."""

from datetime import date
from decimal import Decimal
from itertools import product

import pytest

from rfm_segments.foundation.rfm import RFMScore
from rfm_segments.foundation.segments import (
    SEGMENT_RULES,
    CustomerSegment,
    assign_segment,
    summarize_segments,
)


class TestAssignSegment:
    """Test first-match evaluation of the segment rules."""

    @pytest.mark.parametrize(
        "scores, expected",
        [
            ((4, 4, 4), CustomerSegment.CHAMPIONS),
            ((3, 3, 3), CustomerSegment.LOYAL_CUSTOMERS),
            ((4, 3, 4), CustomerSegment.LOYAL_CUSTOMERS),
            ((4, 1, 1), CustomerSegment.NEW_CUSTOMERS),
            ((4, 2, 4), CustomerSegment.NEW_CUSTOMERS),
            ((3, 1, 2), CustomerSegment.POTENTIAL_LOYALISTS),
            ((4, 3, 2), CustomerSegment.POTENTIAL_LOYALISTS),
            ((2, 2, 2), CustomerSegment.NEEDS_ATTENTION),
            ((2, 4, 4), CustomerSegment.NEEDS_ATTENTION),
            ((2, 3, 1), CustomerSegment.AT_RISK),
            ((1, 4, 4), CustomerSegment.AT_RISK),
            ((2, 1, 3), CustomerSegment.BIG_SPENDERS_AT_RISK),
            ((1, 2, 4), CustomerSegment.BIG_SPENDERS_AT_RISK),
            ((1, 1, 1), CustomerSegment.LOST_CUSTOMERS),
            ((4, 4, 1), CustomerSegment.HIGH_VALUE),
            ((1, 2, 2), CustomerSegment.LOST_CUSTOMERS),
            ((3, 1, 1), CustomerSegment.LOW_VALUE),
            ((3, 2, 1), CustomerSegment.MEDIUM_VALUE),
            ((2, 2, 1), CustomerSegment.LOW_VALUE),
        ],
    )
    def test_rule_chain(self, scores, expected):
        assert assign_segment(*scores) is expected

    def test_lost_customers_requires_low_recency(self):
        """R=1, F<=2 only reaches Lost Customers when M<=2."""
        assert assign_segment(1, 1, 2) is CustomerSegment.LOST_CUSTOMERS
        assert assign_segment(1, 1, 3) is CustomerSegment.BIG_SPENDERS_AT_RISK

    def test_sum_fallback_buckets(self):
        # No named rule matches these combinations
        assert assign_segment(3, 1, 1) is CustomerSegment.LOW_VALUE  # sum 5
        assert assign_segment(2, 1, 2) is CustomerSegment.LOW_VALUE  # sum 5
        assert assign_segment(3, 2, 1) is CustomerSegment.MEDIUM_VALUE  # sum 6
        assert assign_segment(4, 3, 1) is CustomerSegment.MEDIUM_VALUE  # sum 8
        assert assign_segment(4, 4, 1) is CustomerSegment.HIGH_VALUE  # sum 9

    def test_every_score_combination_gets_a_label(self):
        labels = {assign_segment(r, f, m) for r, f, m in product(range(1, 5), repeat=3)}
        assert labels <= set(CustomerSegment)

    def test_first_matching_rule_wins(self):
        """The chain result equals the first rule whose predicate holds."""
        for r, f, m in product(range(1, 5), repeat=3):
            matches = [seg for pred, seg in SEGMENT_RULES if pred(r, f, m)]
            if matches:
                assert assign_segment(r, f, m) is matches[0]

    def test_segment_values_are_labels(self):
        assert CustomerSegment.NEEDS_ATTENTION.value == "Customers Needing Attention"
        assert CustomerSegment("Big Spenders at Risk") is CustomerSegment.BIG_SPENDERS_AT_RISK


def _score(customer_id, segment, spend, count=1):
    spend = Decimal(str(spend))
    return RFMScore(
        customer_id=customer_id,
        recency_score=1,
        frequency_score=1,
        monetary_score=1,
        total_transactions=count,
        total_spend=spend,
        avg_spend=spend / count,
        last_transaction_date=date(2024, 1, 1),
        segment_name=segment,
    )


class TestSummarizeSegments:
    """Test summarize_segments aggregation."""

    def test_empty_input(self):
        assert summarize_segments([]) == []

    def test_counts_shares_and_spend(self):
        scores = [
            _score("A", "Champions", 300),
            _score("B", "Champions", 100),
            _score("C", "Low Value", 10),
        ]
        summaries = summarize_segments(scores)

        assert [s.segment_name for s in summaries] == ["Champions", "Low Value"]
        champions = summaries[0]
        assert champions.customer_count == 2
        assert champions.customer_pct == Decimal("66.67")
        assert champions.total_spend == Decimal("400")
        assert champions.avg_spend_per_customer == Decimal("200.00")
        assert summaries[1].customer_pct == Decimal("33.33")

    def test_ties_ordered_by_label(self):
        scores = [_score("A", "Lost Customers", 1), _score("B", "At Risk", 1)]
        assert [s.segment_name for s in summarize_segments(scores)] == [
            "At Risk",
            "Lost Customers",
        ]
