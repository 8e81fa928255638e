"""
Daily health metric domain models and canonical schema.

This module defines the canonical per-day record that every import format is
normalized onto, plus the derived structures the dashboard is built from.
Canonical field keys (``weight``, ``sleepREM``...) are kept as pydantic
aliases so serialized records use the same keys as the export vendor tables.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MetricField(str, Enum):
    """Closed set of canonical metric keys."""

    WEIGHT = "weight"
    BODY_FAT = "bodyFat"
    STEPS = "steps"
    ACTIVE_CALORIES = "activeCalories"
    BASAL_CALORIES = "basalCalories"
    DISTANCE = "distance"
    FLIGHTS_CLIMBED = "flightsClimbed"
    RESTING_HEART_RATE = "restingHeartRate"
    HEART_RATE_MIN = "heartRateMin"
    HEART_RATE_MAX = "heartRateMax"
    HEART_RATE_AVG = "heartRateAvg"
    SLEEP_DURATION = "sleepDuration"
    SLEEP_IN_BED = "sleepInBed"
    SLEEP_DEEP = "sleepDeep"
    SLEEP_LIGHT = "sleepLight"
    SLEEP_REM = "sleepREM"
    SLEEP_AWAKE = "sleepAwake"
    BLOOD_OXYGEN = "bloodOxygen"


# Fields stored in minutes.
SLEEP_FIELDS: frozenset[MetricField] = frozenset(
    {
        MetricField.SLEEP_DURATION,
        MetricField.SLEEP_IN_BED,
        MetricField.SLEEP_DEEP,
        MetricField.SLEEP_LIGHT,
        MetricField.SLEEP_REM,
        MetricField.SLEEP_AWAKE,
    }
)


class DailyMetric(BaseModel):
    """
    Canonical record for one calendar date.

    Every metric is optional: None means "not observed" and is never
    zero-filled. A series holds at most one record per date.
    """

    date: str = Field(description="Calendar date, YYYY-MM-DD")

    weight: float | None = Field(None, alias="weight", description="Body weight in kg")
    body_fat: float | None = Field(None, alias="bodyFat", description="Body fat percentage")
    steps: float | None = Field(None, alias="steps", description="Step count")
    active_calories: float | None = Field(
        None, alias="activeCalories", description="Active energy in kcal"
    )
    basal_calories: float | None = Field(
        None, alias="basalCalories", description="Basal energy in kcal"
    )
    distance: float | None = Field(None, alias="distance", description="Walking + running km")
    flights_climbed: float | None = Field(None, alias="flightsClimbed")
    resting_heart_rate: float | None = Field(
        None, alias="restingHeartRate", description="Resting heart rate in bpm"
    )
    heart_rate_min: float | None = Field(None, alias="heartRateMin")
    heart_rate_max: float | None = Field(None, alias="heartRateMax")
    heart_rate_avg: float | None = Field(None, alias="heartRateAvg")
    sleep_duration: float | None = Field(
        None, alias="sleepDuration", description="Time asleep in minutes"
    )
    sleep_in_bed: float | None = Field(None, alias="sleepInBed", description="Minutes in bed")
    sleep_deep: float | None = Field(None, alias="sleepDeep")
    sleep_light: float | None = Field(None, alias="sleepLight")
    sleep_rem: float | None = Field(None, alias="sleepREM")
    sleep_awake: float | None = Field(None, alias="sleepAwake")
    blood_oxygen: float | None = Field(
        None, alias="bloodOxygen", description="Blood oxygen saturation percentage"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def get(self, field: MetricField | str) -> float | None:
        """Return the value of a canonical field, or None if not observed."""
        return getattr(self, FIELD_ATTRIBUTES[MetricField(field)])  # type: ignore[no-any-return]

    def values(self) -> dict[MetricField, float]:
        """Return only the observed fields, keyed by canonical field."""
        observed: dict[MetricField, float] = {}
        for field, attribute in FIELD_ATTRIBUTES.items():
            value = getattr(self, attribute)
            if value is not None:
                observed[field] = value
        return observed

    def defined_fields(self) -> set[MetricField]:
        return set(self.values())

    def with_values(self, values: Mapping[MetricField, float | None]) -> "DailyMetric":
        """
        Return a copy with the given fields applied.

        None values are skipped, so an existing observation is never cleared.

        Args:
            values: Canonical field to value mapping.

        Returns:
            Updated copy of this record.
        """
        update = {
            FIELD_ATTRIBUTES[MetricField(field)]: value
            for field, value in values.items()
            if value is not None
        }
        if not update:
            return self
        return self.model_copy(update=update)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with canonical keys, omitting unobserved fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DailyMetric":
        """Build a record from canonical keys; unknown keys are ignored."""
        return cls.model_validate(dict(data))


FIELD_ATTRIBUTES: dict[MetricField, str] = {
    MetricField(info.alias): name
    for name, info in DailyMetric.model_fields.items()
    if info.alias is not None and name != "date"
}


class WeightTrend(BaseModel):
    """Weight observation with its trailing moving averages."""

    date: str
    weight: float
    moving_avg_7d: float
    moving_avg_30d: float


class Goals(BaseModel):
    """User-configured targets."""

    target_weight: float | None = Field(None, alias="targetWeight", description="kg")
    target_date: str | None = Field(None, alias="targetDate", description="YYYY-MM-DD")
    daily_steps: float | None = Field(None, alias="dailySteps")
    daily_calories: float | None = Field(None, alias="dailyCalories", description="kcal")
    daily_sleep: float | None = Field(None, alias="dailySleep", description="minutes")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PersonalRecord(BaseModel):
    """Best value ever recorded for a tracked metric."""

    metric: str
    value: float
    date: str
    label: str
    unit: str | None = None
    display_value: str


class TimeRange(str, Enum):
    """Dashboard time range selector."""

    SEVEN_DAYS = "7D"
    THIRTY_DAYS = "30D"
    NINETY_DAYS = "90D"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    ALL = "ALL"

    @property
    def days(self) -> int | None:
        """Number of days covered, or None for the whole series."""
        return _RANGE_DAYS[self]


_RANGE_DAYS: dict[TimeRange, int | None] = {
    TimeRange.SEVEN_DAYS: 7,
    TimeRange.THIRTY_DAYS: 30,
    TimeRange.NINETY_DAYS: 90,
    TimeRange.SIX_MONTHS: 183,
    TimeRange.ONE_YEAR: 365,
    TimeRange.ALL: None,
}


class GoalStatus(str, Enum):
    """Outcome of a goal-date projection."""

    ON_TRACK = "on_track"
    REACHED = "reached"


class GoalProjection(BaseModel):
    """Projected date at which the weight goal is met."""

    status: GoalStatus
    target_date: str | None = None
    label: str


class ComparisonDelta(BaseModel):
    """Change of a metric's mean between two adjacent windows."""

    value: float
    percentage: int


class ActivitySummary(BaseModel):
    """Activity aggregates over a time range; missing days count as 0."""

    avg_steps: int = 0
    avg_calories: int = 0
    avg_distance: float = Field(0.0, description="km per day")
    total_distance: float = Field(0.0, description="km")
    total_flights: float = 0
    goal_days: int = Field(0, description="Days at or above the step goal")
    goal_percentage: int = 0


class SleepSummary(BaseModel):
    """Sleep aggregates over the nights that have a sleep duration."""

    nights: int = 0
    avg_sleep: int = Field(0, description="minutes")
    avg_in_bed: int = Field(0, description="minutes")
    efficiency: int = Field(0, description="Average asleep / in bed, percent")
    best_sleep: float = 0
    worst_sleep: float = 0
    goal_days: int = 0
    goal_percentage: int = 0
    avg_deep: int = 0
    avg_rem: int = 0
    avg_light: int = 0
    avg_awake: int = 0


class HeartSummary(BaseModel):
    """Heart aggregates over a time range."""

    current_rhr: float | None = None
    avg_rhr: int = 0
    lowest_rhr: float = 0
    highest_rhr: float = 0
    max_hr: float = 0
    min_hr: float = 0
    rhr_change: float = Field(0.0, description="Last 7 RHR readings vs the 7 before, bpm")
    avg_spo2: float = 0.0


class ImportSummary(BaseModel):
    """Result of importing one document into the stored series."""

    imported_days: int
    start_date: str
    end_date: str
    total_days: int

    @property
    def message(self) -> str:
        return (
            f"{self.imported_days} days imported, "
            f"date range [{self.start_date}, {self.end_date}]"
        )
