"""Named customer segments derived from R/F/M quartile scores.

Segment assignment is an ordered rule chain. The rules overlap on
purpose, so the first rule whose predicate matches wins and the order of
:data:`SEGMENT_RULES` is part of the contract.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from rfm_segments.foundation.rfm import RFMScore

PERCENTAGE_PRECISION = Decimal("0.01")

# Sum-of-scores cut-offs for customers no named rule matched.
HIGH_VALUE_MIN_SCORE = 9
MEDIUM_VALUE_MIN_SCORE = 6


class CustomerSegment(str, Enum):
    """Fixed enumeration of segment labels."""

    CHAMPIONS = "Champions"
    LOYAL_CUSTOMERS = "Loyal Customers"
    NEW_CUSTOMERS = "New Customers"
    POTENTIAL_LOYALISTS = "Potential Loyalists"
    NEEDS_ATTENTION = "Customers Needing Attention"
    AT_RISK = "At Risk"
    BIG_SPENDERS_AT_RISK = "Big Spenders at Risk"
    LOST_CUSTOMERS = "Lost Customers"
    HIGH_VALUE = "High Value"
    MEDIUM_VALUE = "Medium Value"
    LOW_VALUE = "Low Value"


SegmentPredicate = Callable[[int, int, int], bool]

SEGMENT_RULES: tuple[tuple[SegmentPredicate, CustomerSegment], ...] = (
    (lambda r, f, m: r >= 4 and f >= 4 and m >= 4, CustomerSegment.CHAMPIONS),
    (lambda r, f, m: r >= 3 and f >= 3 and m >= 3, CustomerSegment.LOYAL_CUSTOMERS),
    (lambda r, f, m: r >= 4 and f <= 2, CustomerSegment.NEW_CUSTOMERS),
    (
        lambda r, f, m: r >= 3 and f >= 1 and m >= 2,
        CustomerSegment.POTENTIAL_LOYALISTS,
    ),
    (
        lambda r, f, m: 2 <= r <= 3 and f >= 2 and m >= 2,
        CustomerSegment.NEEDS_ATTENTION,
    ),
    (lambda r, f, m: r <= 2 and f >= 3, CustomerSegment.AT_RISK),
    (
        lambda r, f, m: r <= 2 and f <= 2 and m >= 3,
        CustomerSegment.BIG_SPENDERS_AT_RISK,
    ),
    (lambda r, f, m: r <= 1 and f <= 2, CustomerSegment.LOST_CUSTOMERS),
)


def assign_segment(r_score: int, f_score: int, m_score: int) -> CustomerSegment:
    """Return the first segment whose rule matches the scores.

    Customers matching no named rule are bucketed by the sum of their
    scores into High, Medium or Low Value.

    >>> assign_segment(4, 4, 4).value
    'Champions'
    >>> assign_segment(1, 1, 1).value
    'Lost Customers'
    >>> assign_segment(3, 1, 1).value
    'Low Value'
    """
    for predicate, segment in SEGMENT_RULES:
        if predicate(r_score, f_score, m_score):
            return segment

    total = r_score + f_score + m_score
    if total >= HIGH_VALUE_MIN_SCORE:
        return CustomerSegment.HIGH_VALUE
    if total >= MEDIUM_VALUE_MIN_SCORE:
        return CustomerSegment.MEDIUM_VALUE
    return CustomerSegment.LOW_VALUE


@dataclass(frozen=True)
class SegmentSummary:
    """Aggregate view of the customers in one segment.

    Attributes
    ----------
    segment_name:
        Segment label
    customer_count:
        Number of customers assigned to the segment
    customer_pct:
        Share of all scored customers, in percent (2 decimal places)
    total_spend:
        Sum of total_spend over the segment's customers
    avg_spend_per_customer:
        total_spend / customer_count (2 decimal places)
    """

    segment_name: str
    customer_count: int
    customer_pct: Decimal
    total_spend: Decimal
    avg_spend_per_customer: Decimal

    def __post_init__(self) -> None:
        if self.customer_count <= 0:
            raise ValueError(
                f"Segment customer count must be positive: {self.customer_count} "
                f"(segment={self.segment_name})"
            )
        if not 0 <= self.customer_pct <= 100:
            raise ValueError(
                f"Segment percentage must be 0-100: {self.customer_pct} "
                f"(segment={self.segment_name})"
            )


def summarize_segments(scores: Sequence[RFMScore]) -> list[SegmentSummary]:
    """Summarise scored customers per segment.

    Returns one :class:`SegmentSummary` per segment present in ``scores``,
    largest segment first (ties broken by label).
    """
    if not scores:
        return []

    counts: dict[str, int] = defaultdict(int)
    spend: dict[str, Decimal] = defaultdict(Decimal)
    for score in scores:
        counts[score.segment_name] += 1
        spend[score.segment_name] += score.total_spend

    total_customers = len(scores)
    summaries = [
        SegmentSummary(
            segment_name=name,
            customer_count=count,
            customer_pct=(Decimal(count) * 100 / total_customers).quantize(
                PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP
            ),
            total_spend=spend[name],
            avg_spend_per_customer=(spend[name] / count).quantize(
                PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP
            ),
        )
        for name, count in counts.items()
    ]
    summaries.sort(key=lambda s: (-s.customer_count, s.segment_name))
    return summaries
