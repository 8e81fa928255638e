"""
Storage port for the canonical series and user goals.

The core never reads or writes storage itself; the application picks an
adapter and hands loaded data to the parsers, merger and derived metrics.
Adapters key everything by an opaque identity string and keep one record
per date.
"""

from abc import ABC, abstractmethod

from recon_health.domain.metrics import DailyMetric, Goals
from recon_health.utils.parameters import GoalDefaultsConfig


class MetricsStore(ABC):
    """Load and save a keyed metric series and goals object."""

    def __init__(self, goal_defaults: GoalDefaultsConfig | None = None) -> None:
        self.goal_defaults = goal_defaults or GoalDefaultsConfig()

    def default_goals(self) -> Goals:
        """Goals returned when none have been saved."""
        return Goals.model_validate(self.goal_defaults.model_dump())

    @abstractmethod
    def load_metrics(self, identity: str) -> list[DailyMetric]:
        """Return the stored series, sorted by date (empty if none)."""

    @abstractmethod
    def save_metrics(self, identity: str, series: list[DailyMetric]) -> None:
        """Replace the stored series."""

    @abstractmethod
    def clear_metrics(self, identity: str) -> None:
        """Delete the stored series."""

    @abstractmethod
    def load_goals(self, identity: str) -> Goals:
        """Return the stored goals, or the defaults."""

    @abstractmethod
    def save_goals(self, identity: str, goals: Goals) -> None:
        """Replace the stored goals."""


class InMemoryStore(MetricsStore):
    """Process-local store, used for tests and throwaway sessions."""

    def __init__(self, goal_defaults: GoalDefaultsConfig | None = None) -> None:
        super().__init__(goal_defaults)
        self._metrics: dict[str, list[DailyMetric]] = {}
        self._goals: dict[str, Goals] = {}

    def load_metrics(self, identity: str) -> list[DailyMetric]:
        return list(self._metrics.get(identity, []))

    def save_metrics(self, identity: str, series: list[DailyMetric]) -> None:
        self._metrics[identity] = sorted(series, key=lambda record: record.date)

    def clear_metrics(self, identity: str) -> None:
        self._metrics.pop(identity, None)

    def load_goals(self, identity: str) -> Goals:
        return self._goals.get(identity) or self.default_goals()

    def save_goals(self, identity: str, goals: Goals) -> None:
        self._goals[identity] = goals
