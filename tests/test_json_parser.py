"""Unit tests for JSON parser."""

import json

import pytest

from recon_health.domain.metrics import MetricField
from recon_health.infrastructure.parsers.json_parser import (
    JSONParser,
    JSONShape,
    classify_document,
)
from recon_health.utils.exceptions import ParsingError


def _nested(*groups: dict) -> str:
    return json.dumps({"data": {"metrics": list(groups)}})


def test_classify_document_order() -> None:
    """Test shape detection checks data.metrics, then metrics, then lists."""
    both = {"data": {"metrics": [1]}, "metrics": [2]}
    if classify_document(both).shape is not JSONShape.NESTED_METRICS:
        raise AssertionError("Expected nested metrics to win")

    if classify_document({"metrics": []}).shape is not JSONShape.FLAT_METRICS:
        raise AssertionError("Expected flat metrics")

    if classify_document({"data": {"metrics": "nope"}, "metrics": []}).shape is not (
        JSONShape.FLAT_METRICS
    ):
        raise AssertionError("Expected non-list data.metrics to fall through")

    if classify_document([]).shape is not JSONShape.DAILY_RECORDS:
        raise AssertionError("Expected daily records")

    for document in [{"foo": 1}, 42, "text", None]:
        if classify_document(document).shape is not JSONShape.UNSUPPORTED:
            raise AssertionError(f"Expected unsupported for {document!r}")


def test_heart_rate_group_expands() -> None:
    """Test one heart_rate point yields min, max and avg."""
    text = _nested(
        {
            "name": "heart_rate",
            "units": "count/min",
            "data": [{"date": "2024-01-01", "min": 55, "max": 130, "avg": 72}],
        }
    )

    records = JSONParser().parse(text)

    if len(records) != 1:
        raise AssertionError(f"Expected 1 record, got {len(records)}")

    record = records[0]
    expected = {
        MetricField.HEART_RATE_MIN: 55,
        MetricField.HEART_RATE_MAX: 130,
        MetricField.HEART_RATE_AVG: 72,
    }
    if record.values() != expected:
        raise AssertionError(f"Expected {expected}, got {record.values()}")


def test_flat_metrics_and_value_fallbacks() -> None:
    """Test flat metric groups and the qty/value/avg fallback chain."""
    text = json.dumps(
        {
            "metrics": [
                {"name": " Step_Count ", "data": [{"date": "2024-01-01", "value": 5000}]},
                {
                    "name": "resting_heart_rate",
                    "data": [{"Date": "2024-01-01", "qty": 51, "avg": 99}],
                },
                {"name": "weight", "data": [{"date": "2024-01-02", "qty": None, "value": 80.1}]},
            ]
        }
    )

    records = JSONParser().parse(text)

    if [r.date for r in records] != ["2024-01-01", "2024-01-02"]:
        raise AssertionError(f"Unexpected dates: {[r.date for r in records]}")

    if records[0].steps != 5000:
        raise AssertionError(f"Expected steps from 'value', got {records[0].steps}")

    if records[0].resting_heart_rate != 99:
        raise AssertionError(
            f"Expected resting HR from named 'avg' key, got {records[0].resting_heart_rate}"
        )

    if records[1].weight != 80.1:
        raise AssertionError(f"Expected null qty to fall back to value, got {records[1].weight}")


def test_sleep_group_unit_heuristic() -> None:
    """Test sleep_analysis converts hours and passes minutes through."""
    text = _nested(
        {
            "name": "sleep_analysis",
            "data": [{"date": "2024-01-01 00:00:00 +0000", "asleep": 7.5, "inBed": 480}],
        },
        {"name": "sleep_core", "data": [{"date": "2024-01-01", "qty": 4.25}]},
    )

    record = JSONParser().parse(text)[0]

    if record.sleep_duration != 450:
        raise AssertionError(f"Expected 450, got {record.sleep_duration}")

    if record.sleep_in_bed != 480:
        raise AssertionError(f"Expected 480, got {record.sleep_in_bed}")

    if record.sleep_light != 255:
        raise AssertionError(f"Expected 255, got {record.sleep_light}")


def test_ignored_and_unknown_metrics() -> None:
    """Test intentionally ignored metrics and the flat-table fallback."""
    text = _nested(
        {"name": "lean_body_mass", "data": [{"date": "2024-01-01", "qty": 60}]},
        {"name": "body_mass_index", "data": [{"date": "2024-01-01", "qty": 24.1}]},
        {"name": "Sleep_Duration", "data": [{"date": "2024-01-02", "qty": 400}]},
        {"name": "vo2_max", "data": [{"date": "2024-01-03", "qty": 45}]},
    )

    records = {r.date: r for r in JSONParser().parse(text)}

    if records["2024-01-01"].values():
        raise AssertionError(f"Expected ignored metrics to set nothing: {records['2024-01-01']}")

    if records["2024-01-02"].sleep_duration != 400:
        raise AssertionError(
            f"Expected flat fallback without conversion, got {records['2024-01-02']}"
        )

    if records["2024-01-03"].values():
        raise AssertionError(f"Expected unknown metric to set nothing: {records['2024-01-03']}")


def test_malformed_groups_and_points_are_skipped() -> None:
    """Test bad groups and points do not abort the document."""
    text = _nested(
        "not a group",
        {"data": [{"date": "2024-01-01", "qty": 1}]},
        {"name": "step_count", "data": "nope"},
        {
            "name": "step_count",
            "data": [
                7,
                {"qty": 100},
                {"date": "", "qty": 200},
                {"date": "2024-01-05", "qty": "lots"},
                {"date": "2024-01-06", "qty": 300},
            ],
        },
    )

    records = JSONParser().parse(text)

    if [r.date for r in records] != ["2024-01-05", "2024-01-06"]:
        raise AssertionError(f"Unexpected dates: {[r.date for r in records]}")

    if records[0].steps is not None or records[1].steps != 300:
        raise AssertionError(f"Unexpected records: {records}")


def test_daily_records_round_trip() -> None:
    """Test flat daily records set exactly the given fields."""
    rows = [
        {"date": "2024-01-01", "steps": 8000, "weight": 82.3},
        {"date": "2024-01-02", "steps": 9100, "weight": 82.0},
    ]

    records = JSONParser().parse(json.dumps(rows))

    for row, record in zip(rows, records):
        if record.date != row["date"]:
            raise AssertionError(f"Expected date {row['date']}, got {record.date}")
        expected = {MetricField.STEPS: row["steps"], MetricField.WEIGHT: row["weight"]}
        if record.values() != expected:
            raise AssertionError(f"Expected only {expected}, got {record.values()}")


def test_daily_records_date_keys_and_unmapped() -> None:
    """Test date key priority, skipped rows and ignored keys."""
    rows = [
        {"Date": "", "dateString": "02/03/2024", "Step Count": "1234", "mood": "great"},
        {"steps": 10},
        "junk",
        {"date": "2024-03-01", "Blood Oxygen (%)": 97, "Weight (kg)": None},
    ]

    records = JSONParser().parse(json.dumps(rows))

    if [r.date for r in records] != ["2024-03-01", "2024-03-02"]:
        raise AssertionError(f"Unexpected dates: {[r.date for r in records]}")

    if records[0].values() != {MetricField.BLOOD_OXYGEN: 97}:
        raise AssertionError(f"Unexpected first record: {records[0]}")

    if records[1].values() != {MetricField.STEPS: 1234}:
        raise AssertionError(f"Unexpected second record: {records[1]}")


def test_unsupported_and_invalid_documents() -> None:
    """Test unknown shapes are empty and invalid JSON raises."""
    if JSONParser().parse('{"export": "v2"}') != []:
        raise AssertionError("Expected unsupported shape to parse to nothing")

    with pytest.raises(ParsingError):
        JSONParser().parse("{not json")
