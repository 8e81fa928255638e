"""
Vendor field name tables.

Health Auto Export names the same metric differently depending on export
format and app version. Two tables resolve those names onto canonical keys:

* ``FIELD_MAP``: flat column name (CSV header or flat JSON key) to a single
  canonical key. Lookups are exact and case sensitive.
* ``METRIC_GROUP_MAP``: metric group name (JSON ``metrics[].name``) to the
  list of fields one data point expands into. An empty list marks a metric
  that is known but intentionally not tracked.
"""

from collections.abc import Callable
from typing import NamedTuple

from recon_health.domain.metrics import MetricField
from recon_health.utils.normalization import hours_to_minutes

DATE_KEY = "date"


class GroupedMapping(NamedTuple):
    """One canonical field produced by a metric group data point."""

    field: MetricField
    value_key: str
    convert: Callable[[float], float] | None = None


FIELD_MAP: dict[str, str] = {
    "date": DATE_KEY,
    "Date": DATE_KEY,
    "weight": MetricField.WEIGHT.value,
    "Weight": MetricField.WEIGHT.value,
    "weight_kg": MetricField.WEIGHT.value,
    "Weight (kg)": MetricField.WEIGHT.value,
    "body_mass": MetricField.WEIGHT.value,
    "Body Mass (kg)": MetricField.WEIGHT.value,
    "body_fat_percentage": MetricField.BODY_FAT.value,
    "Body Fat Percentage": MetricField.BODY_FAT.value,
    "body_fat": MetricField.BODY_FAT.value,
    "step_count": MetricField.STEPS.value,
    "Step Count": MetricField.STEPS.value,
    "steps": MetricField.STEPS.value,
    "Steps": MetricField.STEPS.value,
    "active_energy": MetricField.ACTIVE_CALORIES.value,
    "Active Energy (kcal)": MetricField.ACTIVE_CALORIES.value,
    "active_energy_burned": MetricField.ACTIVE_CALORIES.value,
    "Active Energy Burned (kcal)": MetricField.ACTIVE_CALORIES.value,
    "basal_energy_burned": MetricField.BASAL_CALORIES.value,
    "Basal Energy Burned (kcal)": MetricField.BASAL_CALORIES.value,
    "walking_running_distance": MetricField.DISTANCE.value,
    "Walking + Running Distance (km)": MetricField.DISTANCE.value,
    "distance_walking_running": MetricField.DISTANCE.value,
    "flights_climbed": MetricField.FLIGHTS_CLIMBED.value,
    "Flights Climbed": MetricField.FLIGHTS_CLIMBED.value,
    "resting_heart_rate": MetricField.RESTING_HEART_RATE.value,
    "Resting Heart Rate (bpm)": MetricField.RESTING_HEART_RATE.value,
    "heart_rate_min": MetricField.HEART_RATE_MIN.value,
    "heart_rate_max": MetricField.HEART_RATE_MAX.value,
    "heart_rate_avg": MetricField.HEART_RATE_AVG.value,
    "Heart Rate [Min] (bpm)": MetricField.HEART_RATE_MIN.value,
    "Heart Rate [Max] (bpm)": MetricField.HEART_RATE_MAX.value,
    "Heart Rate [Avg] (bpm)": MetricField.HEART_RATE_AVG.value,
    "sleep_duration": MetricField.SLEEP_DURATION.value,
    "Sleep Duration (min)": MetricField.SLEEP_DURATION.value,
    "sleep_analysis_asleep": MetricField.SLEEP_DURATION.value,
    "Sleep Analysis [Asleep] (hr)": MetricField.SLEEP_DURATION.value,
    "sleep_analysis_inbed": MetricField.SLEEP_IN_BED.value,
    "Sleep Analysis [In Bed] (hr)": MetricField.SLEEP_IN_BED.value,
    "sleep_deep": MetricField.SLEEP_DEEP.value,
    "sleep_light": MetricField.SLEEP_LIGHT.value,
    "sleep_rem": MetricField.SLEEP_REM.value,
    "sleep_awake": MetricField.SLEEP_AWAKE.value,
    "blood_oxygen": MetricField.BLOOD_OXYGEN.value,
    "Blood Oxygen (%)": MetricField.BLOOD_OXYGEN.value,
    "oxygen_saturation": MetricField.BLOOD_OXYGEN.value,
}


def _qty(field: MetricField) -> list[GroupedMapping]:
    return [GroupedMapping(field, "qty")]


def _sleep_qty(field: MetricField) -> list[GroupedMapping]:
    return [GroupedMapping(field, "qty", hours_to_minutes)]


METRIC_GROUP_MAP: dict[str, list[GroupedMapping]] = {
    # Body
    "body_mass": _qty(MetricField.WEIGHT),
    "weight": _qty(MetricField.WEIGHT),
    "body_fat_percentage": _qty(MetricField.BODY_FAT),
    "lean_body_mass": [],
    "body_mass_index": [],
    # Activity
    "step_count": _qty(MetricField.STEPS),
    "active_energy_burned": _qty(MetricField.ACTIVE_CALORIES),
    "active_energy": _qty(MetricField.ACTIVE_CALORIES),
    "basal_energy_burned": _qty(MetricField.BASAL_CALORIES),
    "distance_walking_running": _qty(MetricField.DISTANCE),
    "walking_running_distance": _qty(MetricField.DISTANCE),
    "flights_climbed": _qty(MetricField.FLIGHTS_CLIMBED),
    # Heart
    "heart_rate": [
        GroupedMapping(MetricField.HEART_RATE_MIN, "min"),
        GroupedMapping(MetricField.HEART_RATE_MAX, "max"),
        GroupedMapping(MetricField.HEART_RATE_AVG, "avg"),
    ],
    "resting_heart_rate": [GroupedMapping(MetricField.RESTING_HEART_RATE, "avg")],
    "heart_rate_variability_sdnn": [],
    # Sleep arrives in hours or minutes without a unit flag.
    "sleep_analysis": [
        GroupedMapping(MetricField.SLEEP_DURATION, "asleep", hours_to_minutes),
        GroupedMapping(MetricField.SLEEP_IN_BED, "inBed", hours_to_minutes),
    ],
    "sleep_analysis_asleep": _sleep_qty(MetricField.SLEEP_DURATION),
    "sleep_analysis_inbed": _sleep_qty(MetricField.SLEEP_IN_BED),
    "sleep_deep": _sleep_qty(MetricField.SLEEP_DEEP),
    "sleep_core": _sleep_qty(MetricField.SLEEP_LIGHT),
    "sleep_rem": _sleep_qty(MetricField.SLEEP_REM),
    "sleep_awake": _sleep_qty(MetricField.SLEEP_AWAKE),
    # Blood oxygen
    "oxygen_saturation": [GroupedMapping(MetricField.BLOOD_OXYGEN, "avg")],
    "blood_oxygen": [GroupedMapping(MetricField.BLOOD_OXYGEN, "avg")],
}


def resolve_field(name: str) -> str | None:
    """
    Resolve a flat column name to a canonical key.

    Args:
        name: Vendor column name or flat JSON key.

    Returns:
        ``"date"``, a ``MetricField`` value, or None when unmapped.
    """
    if name in FIELD_MAP:
        return FIELD_MAP[name]
    return FIELD_MAP.get(name.strip())


def resolve_metric_group(name: str) -> list[GroupedMapping] | None:
    """
    Resolve a metric group identifier to its field expansions.

    Returns None for unknown metrics and an empty list for metrics that are
    recognized but not tracked.
    """
    return METRIC_GROUP_MAP.get(name)
