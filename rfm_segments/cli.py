"""Command line entry points for RFM segmentation."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path

from rfm_segments.foundation.rfm import calculate_rfm
from rfm_segments.foundation.segments import summarize_segments
from rfm_segments.pandas.rfm import rfm_scores_to_dataframe
from rfm_segments.pandas.transactions import read_transactions_csv
from rfm_segments.synthetic.generator import (
    generate_sample_transactions,
    write_transactions_csv,
)

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _check_input_size(path: Path) -> Path:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    return resolved


def _parse_as_of(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def score_transactions_cli(argv: list[str] | None = None) -> int:
    """Score customers from a transactions CSV.

    Reads a CSV with customer_id, transaction_date and transaction_amount
    columns (customer_name optional), computes RFM quartile scores and
    segments, and writes one row per customer.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Calculate RFM scores and segments from a transactions CSV"
    )
    parser.add_argument("input", type=Path, help="Path to transactions CSV file")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for writing scores as CSV (JSON to stdout otherwise).",
    )
    parser.add_argument(
        "--as-of",
        type=str,
        help="Reference date for recency (ISO format: YYYY-MM-DD). Defaults to now.",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a per-segment summary instead of per-customer scores.",
    )

    args = parser.parse_args(argv)

    try:
        as_of = _parse_as_of(args.as_of)
    except ValueError:
        logger.error(f"Invalid --as-of value: {args.as_of!r} (expected YYYY-MM-DD)")
        return 1

    logger.info(f"Loading transactions from {args.input}")
    try:
        parsed = read_transactions_csv(_check_input_size(args.input))
    except ValueError as exc:
        logger.error(f"Cannot read {args.input}: {exc}")
        return 1
    if parsed.skipped_rows:
        logger.warning(f"Skipped {parsed.skipped_rows} invalid rows")

    if not parsed.transactions:
        logger.error("No valid transactions found in input file")
        return 1

    scores = calculate_rfm(parsed.transactions, as_of=as_of)
    logger.info(f"Scored {len(scores)} customers")

    if args.summary:
        payload = [
            {
                "segment_name": s.segment_name,
                "customer_count": s.customer_count,
                "customer_pct": float(s.customer_pct),
                "total_spend": float(s.total_spend),
                "avg_spend_per_customer": float(s.avg_spend_per_customer),
            }
            for s in summarize_segments(scores)
        ]
        json.dump(payload, fp=sys.stdout, indent=2)
        print()
        return 0

    if args.output:
        output_path = args.output
        output_path.parent.mkdir(parents=True, exist_ok=True)
        rfm_scores_to_dataframe(scores).to_csv(output_path, index=False)
        logger.info(f"RFM scores exported to {output_path}")
    else:  # stdout fallback enables piping in shell usage.
        json.dump([s.as_dict() for s in scores], fp=sys.stdout, indent=2)
        print()

    return 0


def generate_sample_cli(argv: list[str] | None = None) -> int:
    """Write a synthetic transactions CSV for trying out the scorer."""

    parser = argparse.ArgumentParser(description=generate_sample_cli.__doc__)
    parser.add_argument("output", type=Path, help="Path for the generated CSV")
    parser.add_argument(
        "--customers", type=int, default=200, help="Number of customers (default: 200)"
    )
    parser.add_argument(
        "--start",
        type=date.fromisoformat,
        default=date(2024, 1, 1),
        help="First transaction date (default: 2024-01-01)",
    )
    parser.add_argument(
        "--end",
        type=date.fromisoformat,
        default=date(2024, 12, 31),
        help="Last transaction date (default: 2024-12-31)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed")

    args = parser.parse_args(argv)
    transactions = generate_sample_transactions(
        args.customers, args.start, args.end, seed=args.seed
    )
    path = write_transactions_csv(transactions, args.output)
    logger.info(f"Wrote {len(transactions)} transactions to {path}")
    return 0


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def main() -> None:
    _configure_logging()
    raise SystemExit(score_transactions_cli())


def generate_main() -> None:
    _configure_logging()
    raise SystemExit(generate_sample_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
