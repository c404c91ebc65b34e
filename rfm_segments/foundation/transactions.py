"""Transaction records and lenient field parsing.

Transactions are the only input to RFM scoring. They arrive from two
places: freshly uploaded CSV rows and previously persisted rows. Both
sources are normalised into :class:`Transaction` instances here so the
scorer never has to deal with raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, getcontext
from typing import Any, Iterable, Mapping

ZERO = Decimal("0")


@dataclass(frozen=True)
class Transaction:
    """A single customer transaction.

    Attributes
    ----------
    customer_id:
        Opaque customer identifier. Must be non-empty.
    transaction_date:
        Point in time of the transaction, timezone-aware UTC.
    transaction_amount:
        Non-negative transaction amount.
    customer_name:
        Optional display name carried through to persistence.
    """

    customer_id: str
    transaction_date: datetime
    transaction_amount: Decimal
    customer_name: str | None = None

    def __post_init__(self) -> None:
        if not self.customer_id:
            raise ValueError("Transaction customer_id cannot be empty")
        if not isinstance(self.transaction_date, datetime):
            raise TypeError(
                "transaction_date must be a datetime instance",
                {"customer_id": self.customer_id, "value": self.transaction_date},
            )
        if self.transaction_amount < 0:
            raise ValueError(
                f"Transaction amount cannot be negative: {self.transaction_amount} "
                f"(customer_id={self.customer_id})"
            )


def parse_amount(value: Any) -> Decimal:
    """Parse a transaction amount, degrading malformed values to zero.

    A single bad cell must not fail a whole upload, so anything that is not
    a finite, non-negative number becomes ``Decimal("0")``. Magnitudes in the
    upper half of the decimal context's exponent range count as malformed
    too, so totals over many rows stay representable.

    >>> parse_amount("12.50")
    Decimal('12.50')
    >>> parse_amount("n/a")
    Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return ZERO
    if not amount.is_finite() or amount < 0:
        return ZERO
    if amount and amount.adjusted() > getcontext().Emax // 2:
        return ZERO
    return amount


def parse_transaction_date(value: Any) -> datetime:
    """Parse a transaction date into a timezone-aware UTC datetime.

    Date-only values map to midnight UTC. Naive datetimes are assumed to be
    UTC already.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Transaction date cannot be empty")
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Unparseable transaction date: {value!r}") from exc
    else:
        raise ValueError(
            f"Unsupported transaction date type: {type(value).__name__}"
        )

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalise_transactions(
    records: Iterable[Mapping[str, Any]],
) -> list[Transaction]:
    """Convert raw mappings (e.g. persisted rows) into transactions.

    Parameters
    ----------
    records:
        Mappings providing at least ``customer_id``, ``transaction_date`` and
        ``transaction_amount``. ``customer_name`` is optional.

    Raises
    ------
    ValueError
        If a record has no customer_id or an unparseable date. The error
        carries the offending record index.
    """
    transactions: list[Transaction] = []
    for idx, record in enumerate(records):
        customer_id = str(record.get("customer_id") or "").strip()
        if not customer_id:
            raise ValueError(
                "Transaction record missing customer_id", {"record_index": idx}
            )

        try:
            transaction_date = parse_transaction_date(record.get("transaction_date"))
        except ValueError as exc:
            raise ValueError(
                "Transaction record has an invalid transaction_date",
                {"record_index": idx, "value": record.get("transaction_date")},
            ) from exc

        name = record.get("customer_name")
        customer_name = str(name).strip() if name is not None else ""

        transactions.append(
            Transaction(
                customer_id=customer_id,
                transaction_date=transaction_date,
                transaction_amount=parse_amount(record.get("transaction_amount")),
                customer_name=customer_name or None,
            )
        )
    return transactions
