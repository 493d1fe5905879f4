"""Statement pipeline: bank statement ingestion, verification and spending aggregation."""
