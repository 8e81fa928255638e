"""Shared test fixtures."""

from collections.abc import Callable, Iterator
from datetime import date, timedelta

import pytest

from recon_health.domain.metrics import DailyMetric


@pytest.fixture(autouse=True)
def no_env_api_key(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep a developer's API_KEY from leaking into authorization tests."""
    monkeypatch.delenv("API_KEY", raising=False)
    yield


@pytest.fixture(name="steps_series")
def steps_series_fixture() -> list[DailyMetric]:
    """Four consecutive days of step counts."""
    return [
        DailyMetric(date="2024-01-01", steps=12000),
        DailyMetric(date="2024-01-02", steps=11000),
        DailyMetric(date="2024-01-03", steps=9000),
        DailyMetric(date="2024-01-04", steps=13000),
    ]


@pytest.fixture(name="daily_weights")
def daily_weights_fixture() -> Callable[[list[float]], list[DailyMetric]]:
    """Factory for consecutive daily records starting 2024-01-01 with the given weights."""

    def build(weights: list[float]) -> list[DailyMetric]:
        start = date(2024, 1, 1)
        return [
            DailyMetric(date=(start + timedelta(days=i)).isoformat(), weight=weight)
            for i, weight in enumerate(weights)
        ]

    return build
