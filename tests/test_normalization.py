"""Unit tests for value normalization."""

import math

from recon_health.domain.metrics import MetricField
from recon_health.utils.normalization import (
    hours_to_minutes,
    is_hours_column,
    normalize_date,
    parse_number,
    round_half_up,
)


def test_normalize_iso_dates() -> None:
    """Test ISO dates keep the written calendar date and drop the time."""
    cases = {
        "2024-01-15": "2024-01-15",
        "2024-01-15T08:30:00Z": "2024-01-15",
        "2024-01-15 00:00:00 -0500": "2024-01-15",
        "2024-01-15 23:30:00 +1000": "2024-01-15",
        "2024-1-5": "2024-01-05",
    }
    for raw, expected in cases.items():
        result = normalize_date(raw)
        if result != expected:
            raise AssertionError(f"normalize_date({raw!r}): expected {expected}, got {result}")


def test_normalize_day_month_year() -> None:
    """Test DD/MM/YYYY dates are parsed positionally and zero-padded."""
    if normalize_date("15/01/2024") != "2024-01-15":
        raise AssertionError(f"Expected 2024-01-15, got {normalize_date('15/01/2024')}")

    if normalize_date("5/1/2024") != "2024-01-05":
        raise AssertionError(f"Expected 2024-01-05, got {normalize_date('5/1/2024')}")

    # Day-first even when both parts could be a month.
    if normalize_date("03/04/2024") != "2024-04-03":
        raise AssertionError(f"Expected 2024-04-03, got {normalize_date('03/04/2024')}")


def test_normalize_date_passthrough() -> None:
    """Test unrecognized dates are returned unchanged."""
    for raw in ["yesterday", "2024/01/15/extra", ""]:
        if normalize_date(raw) != raw:
            raise AssertionError(f"Expected {raw!r} unchanged, got {normalize_date(raw)!r}")


def test_parse_number() -> None:
    """Test lenient numeric coercion."""
    if parse_number("75.5") != 75.5:
        raise AssertionError(f"Expected 75.5, got {parse_number('75.5')}")

    if parse_number(" 12000 ") != 12000:
        raise AssertionError(f"Expected 12000, got {parse_number(' 12000 ')}")

    if parse_number(42) != 42.0:
        raise AssertionError(f"Expected 42.0, got {parse_number(42)}")

    for raw in [None, "", "   ", "abc", float("nan"), "NaN", "inf", True, [1]]:
        if parse_number(raw) is not None:
            raise AssertionError(f"Expected None for {raw!r}, got {parse_number(raw)}")


def test_hours_to_minutes_boundary() -> None:
    """Test the under-24-means-hours heuristic around its boundary."""
    cases = [(7.5, 450), (420, 420), (24, 24), (23.9, 1434), (0.25, 15)]
    for value, expected in cases:
        result = hours_to_minutes(value)
        if result != expected:
            raise AssertionError(f"hours_to_minutes({value}): expected {expected}, got {result}")


def test_round_half_up() -> None:
    """Test ties round toward positive infinity."""
    if round_half_up(2.5) != 3:
        raise AssertionError(f"Expected 3, got {round_half_up(2.5)}")

    if round_half_up(-2.5) != -2:
        raise AssertionError(f"Expected -2, got {round_half_up(-2.5)}")

    if not math.isclose(round_half_up(99.25, 1), 99.3):
        raise AssertionError(f"Expected 99.3, got {round_half_up(99.25, 1)}")


def test_is_hours_column() -> None:
    """Test the (hr) marker only applies to sleep fields."""
    if not is_hours_column("Sleep Analysis [Asleep] (hr)", MetricField.SLEEP_DURATION):
        raise AssertionError("Expected asleep (hr) column to be hours")

    if not is_hours_column("Sleep Analysis [In Bed] (hr)", "sleepInBed"):
        raise AssertionError("Expected in bed (hr) column to be hours")

    if is_hours_column("Sleep Duration (min)", MetricField.SLEEP_DURATION):
        raise AssertionError("Expected minutes column not to be hours")

    if is_hours_column("Steps (hr)", MetricField.STEPS):
        raise AssertionError("Expected non-sleep field not to be hours")

    if is_hours_column("Date (hr)", "date"):
        raise AssertionError("Expected date key not to be hours")
