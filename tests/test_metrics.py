"""Unit tests for the canonical daily record."""

import pytest

from recon_health.domain.metrics import DailyMetric, ImportSummary, MetricField, TimeRange


def test_with_values_never_clears() -> None:
    """Test None values leave existing observations alone."""
    record = DailyMetric(date="2024-01-01", weight=80.0)

    updated = record.with_values({MetricField.WEIGHT: None, MetricField.STEPS: 1200})

    if updated.weight != 80.0 or updated.steps != 1200:
        raise AssertionError(f"Unexpected record: {updated}")

    if record.steps is not None:
        raise AssertionError("Expected the source record to be unchanged")

    if updated.defined_fields() != {MetricField.WEIGHT, MetricField.STEPS}:
        raise AssertionError(f"Unexpected defined fields: {updated.defined_fields()}")


def test_with_values_rejects_unknown_fields() -> None:
    """Test only canonical keys can be set."""
    with pytest.raises(ValueError):
        DailyMetric(date="2024-01-01").with_values({"vo2Max": 45})  # type: ignore[dict-item]


def test_canonical_serialization() -> None:
    """Test records serialize with canonical keys and omit missing values."""
    record = DailyMetric(date="2024-01-01", sleep_rem=90, body_fat=18.5)

    data = record.to_dict()
    if data != {"date": "2024-01-01", "bodyFat": 18.5, "sleepREM": 90}:
        raise AssertionError(f"Unexpected serialization: {data}")

    restored = DailyMetric.from_dict({**data, "user_id": "alice"})
    if restored != record:
        raise AssertionError(f"Expected {record}, got {restored}")

    if restored.get("sleepREM") != 90 or restored.get(MetricField.WEIGHT) is not None:
        raise AssertionError(f"Unexpected field access on {restored}")


def test_time_range_days() -> None:
    """Test range tokens map to day counts."""
    expected = {"7D": 7, "30D": 30, "90D": 90, "6M": 183, "1Y": 365, "ALL": None}
    actual = {token.value: token.days for token in TimeRange}

    if actual != expected:
        raise AssertionError(f"Expected {expected}, got {actual}")


def test_import_summary_message() -> None:
    """Test the user-facing import message."""
    summary = ImportSummary(
        imported_days=3, start_date="2024-01-01", end_date="2024-01-03", total_days=10
    )

    if summary.message != "3 days imported, date range [2024-01-01, 2024-01-03]":
        raise AssertionError(f"Unexpected message: {summary.message}")
