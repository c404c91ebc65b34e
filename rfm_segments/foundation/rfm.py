"""RFM (Recency-Frequency-Monetary) scoring.

RFM analysis segments customers based on three dimensions:
- Recency: How recently did the customer make a purchase?
- Frequency: How often do they purchase?
- Monetary: How much do they spend?

Each dimension is scored 1-4 by quartile within the scored cohort and the
three scores are mapped to a named segment. Scores are recomputed from the
complete transaction history on every call; nothing is updated
incrementally.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Sequence

from rfm_segments.foundation.segments import assign_segment
from rfm_segments.foundation.transactions import Transaction

MIN_SCORE = 1
MAX_SCORE = 4

# (upper percentile bound, score); percentiles above the last bound score 4
QUARTILE_THRESHOLDS = ((0.25, 1), (0.50, 2), (0.75, 3))


class InvalidTransactionsError(ValueError):
    """Raised when there is nothing to score."""


@dataclass(slots=True)
class CustomerAggregate:
    """Running totals for one customer, built in a single pass.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    transaction_count:
        Number of transactions seen for the customer (>= 1)
    total_spend:
        Sum of transaction amounts
    last_transaction_date:
        Latest transaction timestamp seen, regardless of input order
    """

    customer_id: str
    transaction_count: int
    total_spend: Decimal
    last_transaction_date: datetime

    def recency_days(self, as_of: datetime) -> int:
        """Whole days from the last transaction to ``as_of``, floored."""
        return (as_of - self.last_transaction_date).days


@dataclass(frozen=True)
class RFMScore:
    """RFM quartile scores (1-4) and aggregate statistics for one customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    recency_score:
        Recency score (1-4, where 4 = most recent)
    frequency_score:
        Frequency score (1-4, where 4 = most transactions)
    monetary_score:
        Monetary score (1-4, where 4 = highest total spend)
    total_transactions:
        Number of transactions for the customer
    total_spend:
        Sum of the customer's transaction amounts
    avg_spend:
        total_spend / total_transactions
    last_transaction_date:
        Calendar date (UTC) of the latest transaction
    segment_name:
        Segment label from :func:`assign_segment`
    """

    customer_id: str
    recency_score: int
    frequency_score: int
    monetary_score: int
    total_transactions: int
    total_spend: Decimal
    avg_spend: Decimal
    last_transaction_date: date
    segment_name: str

    def __post_init__(self) -> None:
        """Validate RFM scores."""
        for score_name, score_value in [
            ("recency_score", self.recency_score),
            ("frequency_score", self.frequency_score),
            ("monetary_score", self.monetary_score),
        ]:
            if not MIN_SCORE <= score_value <= MAX_SCORE:
                raise ValueError(
                    f"{score_name} must be between {MIN_SCORE} and {MAX_SCORE}: "
                    f"{score_value} (customer_id={self.customer_id})"
                )
        if self.total_transactions <= 0:
            raise ValueError(
                f"Total transactions must be positive: {self.total_transactions} "
                f"(customer_id={self.customer_id})"
            )
        if self.avg_spend != self.total_spend / self.total_transactions:
            raise ValueError(
                f"avg_spend ({self.avg_spend}) != total_spend / total_transactions "
                f"(customer_id={self.customer_id})"
            )

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable representation of the score."""
        return {
            "customer_id": self.customer_id,
            "recency_score": self.recency_score,
            "frequency_score": self.frequency_score,
            "monetary_score": self.monetary_score,
            "total_transactions": self.total_transactions,
            "total_spend": float(self.total_spend),
            "avg_spend": float(self.avg_spend),
            "last_transaction_date": self.last_transaction_date.isoformat(),
            "segment_name": self.segment_name,
        }


def aggregate_transactions(
    transactions: Sequence[Transaction],
) -> dict[str, CustomerAggregate]:
    """Group transactions by customer in one pass.

    The returned dict preserves the order in which customers were first
    encountered. Out-of-order transactions are fine: the latest date is a
    max reduction, not "last seen".
    """
    aggregates: dict[str, CustomerAggregate] = {}
    for txn in transactions:
        aggregate = aggregates.get(txn.customer_id)
        if aggregate is None:
            aggregates[txn.customer_id] = CustomerAggregate(
                customer_id=txn.customer_id,
                transaction_count=1,
                total_spend=txn.transaction_amount,
                last_transaction_date=txn.transaction_date,
            )
            continue

        aggregate.transaction_count += 1
        aggregate.total_spend += txn.transaction_amount
        if txn.transaction_date > aggregate.last_transaction_date:
            aggregate.last_transaction_date = txn.transaction_date
    return aggregates


def quartile_score(sorted_values: Sequence[Any], value: Any) -> int:
    """Map ``value`` to a 1-4 quartile score within ``sorted_values``.

    The rank is the index of the *first* element equal to ``value``, so
    every customer sharing a value gets the same score. The percentile is
    ``index / len(sorted_values)``.

    >>> quartile_score([1, 2, 3, 4, 5, 6, 7, 8], 8)
    4
    >>> quartile_score([5, 5, 5, 5], 5)
    1
    """
    if not sorted_values:
        raise InvalidTransactionsError("Cannot compute quartiles of an empty array")

    index = bisect_left(sorted_values, value)
    if index == len(sorted_values) or sorted_values[index] != value:
        raise ValueError(f"Value {value!r} is not present in the scored values")

    percentile = index / len(sorted_values)
    for upper_bound, score in QUARTILE_THRESHOLDS:
        if percentile <= upper_bound:
            return score
    return MAX_SCORE


def calculate_rfm(
    transactions: Sequence[Transaction],
    as_of: datetime | None = None,
) -> list[RFMScore]:
    """Score every customer present in ``transactions``.

    Parameters
    ----------
    transactions:
        Full transaction history to score (existing plus newly uploaded).
    as_of:
        Reference time for recency. Defaults to the current UTC time.
        Naive datetimes are treated as UTC.

    Returns
    -------
    list[RFMScore]
        One score per distinct customer_id, in first-encounter order.

    Raises
    ------
    InvalidTransactionsError
        If ``transactions`` is empty.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from decimal import Decimal
    >>> utc = timezone.utc
    >>> txns = [
    ...     Transaction("A", datetime(2024, 1, 1, tzinfo=utc), Decimal("100")),
    ...     Transaction("A", datetime(2024, 2, 1, tzinfo=utc), Decimal("200")),
    ...     Transaction("B", datetime(2024, 6, 1, tzinfo=utc), Decimal("50")),
    ... ]
    >>> scores = calculate_rfm(txns, as_of=datetime(2024, 6, 2, tzinfo=utc))
    >>> [(s.customer_id, s.recency_score, s.segment_name) for s in scores]
    [('A', 3, 'Potential Loyalists'), ('B', 4, 'New Customers')]
    """
    if not transactions:
        raise InvalidTransactionsError("Cannot calculate RFM scores without transactions")

    if as_of is None:
        as_of = datetime.now(timezone.utc)
    elif as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)

    aggregates = list(aggregate_transactions(transactions).values())
    recency = {a.customer_id: a.recency_days(as_of) for a in aggregates}

    recency_values = sorted(recency.values())
    frequency_values = sorted(a.transaction_count for a in aggregates)
    monetary_values = sorted(a.total_spend for a in aggregates)

    scores: list[RFMScore] = []
    for aggregate in aggregates:
        r = MAX_SCORE + 1 - quartile_score(recency_values, recency[aggregate.customer_id])
        f = quartile_score(frequency_values, aggregate.transaction_count)
        m = quartile_score(monetary_values, aggregate.total_spend)

        scores.append(
            RFMScore(
                customer_id=aggregate.customer_id,
                recency_score=r,
                frequency_score=f,
                monetary_score=m,
                total_transactions=aggregate.transaction_count,
                total_spend=aggregate.total_spend,
                avg_spend=aggregate.total_spend / aggregate.transaction_count,
                last_transaction_date=aggregate.last_transaction_date.date(),
                segment_name=assign_segment(r, f, m).value,
            )
        )
    return scores
