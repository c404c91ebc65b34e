"""RFM segmentation demo with synthetic transactions.

This example walks the upload pipeline end to end:
1. Generate synthetic customer transactions
2. Score customers with RFM quartiles
3. Summarize customers by segment
4. Process the same data as a CSV upload into the in-memory repository
"""

from datetime import date, datetime, timezone

from rfm_segments.foundation.rfm import calculate_rfm
from rfm_segments.foundation.segments import summarize_segments
from rfm_segments.ingest.upload import process_upload
from rfm_segments.pandas.rfm import rfm_scores_to_dataframe
from rfm_segments.pandas.transactions import transactions_to_dataframe
from rfm_segments.storage.repository import InMemorySegmentRepository
from rfm_segments.synthetic.generator import generate_sample_transactions


def main():
    """Demonstrate RFM scoring and segment summaries."""
    print("=" * 80)
    print("RFM Segmentation Demo with Synthetic Data")
    print("=" * 80)

    as_of = datetime(2025, 1, 1, tzinfo=timezone.utc)

    # Step 1: Generate synthetic data
    print("\n📊 Step 1: Generating synthetic transactions...")
    transactions = generate_sample_transactions(
        300, date(2024, 1, 1), date(2024, 12, 31), seed=7
    )
    print(f"   Transactions: {len(transactions)}")

    # Step 2: Score customers
    print("\n🔢 Step 2: Calculating RFM scores...")
    scores = calculate_rfm(transactions, as_of=as_of)
    df = rfm_scores_to_dataframe(scores)
    print(f"   Customers scored: {len(scores)}")
    print(df.head(10).to_string(index=False))

    # Step 3: Segment summary
    print("\n🎯 Step 3: Segment summary")
    print(f"   {'Segment':<30} {'Customers':>10} {'Share %':>8} {'Avg Spend':>10}")
    for summary in summarize_segments(scores):
        print(
            f"   {summary.segment_name:<30} {summary.customer_count:>10} "
            f"{summary.customer_pct:>8} {summary.avg_spend_per_customer:>10}"
        )

    # Step 4: Upload pipeline
    print("\n📤 Step 4: Processing as a CSV upload...")
    repository = InMemorySegmentRepository()
    content = transactions_to_dataframe(transactions).to_csv(index=False)
    result = process_upload(
        repository,
        user_id="demo-user",
        file_name="synthetic.csv",
        content=content,
        as_of=as_of,
    )
    print(f"   {result.message}")
    print(f"   Upload: {result.upload_id}")
    print(f"   Transactions processed: {result.transactions_processed}")
    print(f"   Customers segmented: {result.customers_segmented}")

    print("\n" + "=" * 80)


if __name__ == "__main__":
    main()
