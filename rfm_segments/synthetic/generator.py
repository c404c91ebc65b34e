from __future__ import annotations

import math
import random
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Sequence

from rfm_segments.foundation.transactions import Transaction

FIRST_NAMES = (
    "Ana", "Bruno", "Chen", "Dara", "Emeka", "Farah", "Goran", "Hana",
    "Ines", "Jonas", "Kofi", "Lena", "Mateo", "Nadia", "Omar", "Priya",
)


def _sample_amount(rng: random.Random, mean: float, variability: float) -> Decimal:
    # Log-normal draw keeps amounts positive with a long right tail
    sigma = min(max(variability, 0.01), 1.0)
    mu = math.log(max(mean, 0.01)) - 0.5 * sigma * sigma
    amount = math.exp(rng.normalvariate(mu, sigma))
    return Decimal(str(round(max(amount, 0.01), 2)))


def generate_sample_transactions(
    n_customers: int,
    start: date,
    end: date,
    *,
    mean_transactions: float = 3.0,
    mean_amount: float = 60.0,
    amount_variability: float = 0.6,
    seed: Optional[int] = None,
) -> List[Transaction]:
    """Generate transactions for ``n_customers`` between ``start`` and ``end``.

    Each customer gets a geometric-ish number of transactions (at least one)
    on uniformly drawn days, so the output covers the full spread of
    recency, frequency and monetary values. Output is grouped by customer.
    """

    if n_customers <= 0:
        return []
    if start > end:
        raise ValueError("start date must be <= end date")

    rng = random.Random(seed)
    total_days = (end - start).days + 1
    continue_prob = 1.0 - 1.0 / max(mean_transactions, 1.0)

    transactions: List[Transaction] = []
    for i in range(n_customers):
        customer_id = f"C-{i + 1}"
        name = f"{rng.choice(FIRST_NAMES)} {chr(ord('A') + i % 26)}."
        count = 1
        while rng.random() < continue_prob:
            count += 1
        for _ in range(count):
            day = start + timedelta(days=rng.randrange(total_days))
            transactions.append(
                Transaction(
                    customer_id=customer_id,
                    transaction_date=datetime.combine(day, time(), tzinfo=timezone.utc),
                    transaction_amount=_sample_amount(
                        rng, mean_amount, amount_variability
                    ),
                    customer_name=name,
                )
            )
    return transactions


def write_transactions_csv(transactions: Sequence[Transaction], path: Path) -> Path:
    """Write transactions as an upload-ready CSV file."""
    from rfm_segments.pandas.transactions import transactions_to_dataframe

    df = transactions_to_dataframe(transactions)
    df["transaction_date"] = [t.transaction_date.date().isoformat() for t in transactions]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
