"""
Derived metrics for the dashboard views.

Every function here is a pure function of a chronologically sorted series
(and of the goals, where relevant). Nothing is cached between calls; the
dashboard recomputes from the canonical series whenever it changes.
"""

import logging
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

import pandas as pd

from recon_health.domain.metrics import (
    ActivitySummary,
    ComparisonDelta,
    DailyMetric,
    GoalProjection,
    Goals,
    GoalStatus,
    HeartSummary,
    MetricField,
    PersonalRecord,
    SleepSummary,
    TimeRange,
    WeightTrend,
)
from recon_health.utils.normalization import round_half_up
from recon_health.utils.timezone_utils import days_before, to_date_key

logger = logging.getLogger(__name__)

SHORT_WINDOW = 7
LONG_WINDOW = 30
MIN_PROJECTION_POINTS = 14
GOAL_REACHED_LABEL = "Goal reached!"
DEFAULT_STEP_GOAL = 10000
DEFAULT_SLEEP_GOAL = 420


def _resolve_today(today: date | None) -> date:
    return today if today is not None else date.today()


def weight_trend(series: Sequence[DailyMetric]) -> list[WeightTrend]:
    """
    Compute trailing 7- and 30-point weight averages.

    Windows run over the weight observations only (days without a weight
    are not counted) and shrink at the start of the series.

    Args:
        series: Chronologically sorted records.

    Returns:
        One trend point per record that has a weight.
    """
    with_weight = [record for record in series if record.weight is not None]
    if not with_weight:
        return []

    weights = pd.Series([record.weight for record in with_weight], dtype="float64")
    short_avg = weights.rolling(SHORT_WINDOW, min_periods=1).mean()
    long_avg = weights.rolling(LONG_WINDOW, min_periods=1).mean()

    return [
        WeightTrend(
            date=record.date,
            weight=record.weight,  # type: ignore[arg-type]
            moving_avg_7d=round_half_up(float(short_avg.iloc[i]), 1),
            moving_avg_30d=round_half_up(float(long_avg.iloc[i]), 1),
        )
        for i, record in enumerate(with_weight)
    ]


def weight_rate(trend: Sequence[WeightTrend]) -> float:
    """
    Weekly weight change in kg; negative means losing.

    Compares the mean 7-day average of the last seven trend points with the
    seven before them. Returns 0 when either window is incomplete.
    """
    if len(trend) < SHORT_WINDOW:
        return 0.0

    recent = trend[-SHORT_WINDOW:]
    older = trend[-2 * SHORT_WINDOW : -SHORT_WINDOW]
    if len(older) < SHORT_WINDOW:
        return 0.0

    recent_avg = sum(point.moving_avg_7d for point in recent) / len(recent)
    older_avg = sum(point.moving_avg_7d for point in older) / len(older)
    return round_half_up(recent_avg - older_avg, 2)


def projected_goal_date(
    trend: Sequence[WeightTrend], goal_weight: float, today: date | None = None
) -> GoalProjection | None:
    """
    Project when the weight goal will be reached at the current rate.

    Args:
        trend: Weight trend points.
        goal_weight: Target weight in kg.
        today: Date to project from; defaults to the system date.

    Returns:
        A REACHED projection if the latest 7-day average is at or below the
        goal, an ON_TRACK projection with a month/year label, or None when
        there is too little data or weight is not going down.
    """
    if len(trend) < MIN_PROJECTION_POINTS:
        return None

    rate = weight_rate(trend)
    if rate >= 0:
        return None

    kg_to_lose = trend[-1].moving_avg_7d - goal_weight
    if kg_to_lose <= 0:
        return GoalProjection(status=GoalStatus.REACHED, label=GOAL_REACHED_LABEL)

    weeks_needed = kg_to_lose / abs(rate)
    target = _resolve_today(today) + timedelta(days=int(weeks_needed * 7))

    return GoalProjection(
        status=GoalStatus.ON_TRACK,
        target_date=to_date_key(target),
        label=target.strftime("%b %Y"),
    )


def filter_by_time_range(
    series: Sequence[DailyMetric], time_range: TimeRange | str, today: date | None = None
) -> list[DailyMetric]:
    """
    Keep the records inside a dashboard time range.

    Args:
        series: Chronologically sorted records.
        time_range: Range token (``7D``, ``30D``, ``90D``, ``6M``, ``1Y``, ``ALL``).
        today: Reference date; defaults to the system date.

    Returns:
        Records dated on or after the cutoff.
    """
    days = TimeRange(time_range).days
    if days is None:
        return list(series)

    cutoff = days_before(_resolve_today(today), days)
    return [record for record in series if record.date >= cutoff]


def _format_value(value: float, unit: str | None) -> str:
    text = str(int(value)) if float(value).is_integer() else f"{value:.1f}"
    return f"{text} {unit}" if unit else text


def _format_sleep(minutes: float) -> str:
    whole = int(minutes)
    return f"{whole // 60}h {whole % 60}m"


# (metric, field, lowest wins, label, unit)
RECORD_DEFINITIONS: list[tuple[str, MetricField, bool, str, str | None]] = [
    ("weight", MetricField.WEIGHT, True, "Lowest Weight", "kg"),
    ("steps", MetricField.STEPS, False, "Most Steps", None),
    ("rhr", MetricField.RESTING_HEART_RATE, True, "Lowest RHR", "bpm"),
    ("sleep", MetricField.SLEEP_DURATION, False, "Best Sleep", "min"),
    ("calories", MetricField.ACTIVE_CALORIES, False, "Most Cals Burned", "kcal"),
    ("flights", MetricField.FLIGHTS_CLIMBED, False, "Most Flights", None),
]


def personal_records(series: Sequence[DailyMetric]) -> list[PersonalRecord]:
    """
    Extract the best value of each tracked metric.

    Metrics with no observations are omitted. On ties the earliest record
    is kept.
    """
    records: list[PersonalRecord] = []

    for metric, field, lowest, label, unit in RECORD_DEFINITIONS:
        best: DailyMetric | None = None
        best_value: float | None = None

        for record in series:
            value = record.get(field)
            if value is None:
                continue
            if best_value is None or (value < best_value if lowest else value > best_value):
                best, best_value = record, value

        if best is None or best_value is None:
            continue

        display = (
            _format_sleep(best_value)
            if field is MetricField.SLEEP_DURATION
            else _format_value(best_value, unit)
        )
        records.append(
            PersonalRecord(
                metric=metric,
                value=best_value,
                date=best.date,
                label=label,
                unit=unit,
                display_value=display,
            )
        )

    return records


def streak(series: Sequence[DailyMetric], field: MetricField | str, goal: float) -> int:
    """
    Count the trailing run of records meeting a goal.

    Scans backwards from the most recent record and stops at the first one
    where the metric is missing or below ``goal``.
    """
    metric = MetricField(field)
    count = 0

    for record in reversed(series):
        value = record.get(metric)
        if value is None or value < goal:
            break
        count += 1

    return count


def comparison_delta(
    series: Sequence[DailyMetric], field: MetricField | str, days: int = 7
) -> ComparisonDelta | None:
    """
    Compare a metric's mean over the last ``days`` records with the window before.

    Missing values count as 0.

    Args:
        series: Chronologically sorted records.
        field: Metric to compare.
        days: Window size in records.

    Returns:
        Absolute (one decimal) and percentage change, or None without a
        baseline window.

    Raises:
        ValueError: If ``days`` is smaller than 1.
    """
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")

    if len(series) < days + 1:
        return None

    metric = MetricField(field)
    recent = series[-days:]
    previous = series[-2 * days : -days]
    if not previous:
        return None

    recent_avg = sum(record.get(metric) or 0 for record in recent) / len(recent)
    previous_avg = sum(record.get(metric) or 0 for record in previous) / len(previous)

    percentage = (
        int(round_half_up((recent_avg - previous_avg) / previous_avg * 100))
        if previous_avg != 0
        else 0
    )
    return ComparisonDelta(
        value=round_half_up(recent_avg - previous_avg, 1), percentage=percentage
    )


def today_metrics(
    series: Sequence[DailyMetric], today: date | None = None
) -> DailyMetric | None:
    """Return today's record, else the latest record, else None."""
    today_key = to_date_key(_resolve_today(today))

    for record in series:
        if record.date == today_key:
            return record

    return series[-1] if series else None


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _percentage(part: int, whole: int) -> int:
    return int(round_half_up(part / whole * 100)) if whole else 0


def activity_summary(
    series: Sequence[DailyMetric], step_goal: float | None = None
) -> ActivitySummary:
    """
    Summarize steps, calories, distance and flights.

    Averages run over every record in ``series``, with missing values
    counted as 0. A missing or zero ``step_goal`` falls back to 10000.
    """
    if not series:
        return ActivitySummary()

    goal = step_goal or DEFAULT_STEP_GOAL
    steps = [record.steps or 0 for record in series]
    distances = [record.distance or 0 for record in series]
    goal_days = sum(1 for value in steps if value >= goal)

    return ActivitySummary(
        avg_steps=int(round_half_up(_mean(steps))),
        avg_calories=int(round_half_up(_mean([r.active_calories or 0 for r in series]))),
        avg_distance=round_half_up(_mean(distances), 1),
        total_distance=round_half_up(sum(distances), 1),
        total_flights=sum(record.flights_climbed or 0 for record in series),
        goal_days=goal_days,
        goal_percentage=_percentage(goal_days, len(series)),
    )


def sleep_summary(
    series: Sequence[DailyMetric], sleep_goal: float | None = None
) -> SleepSummary:
    """
    Summarize the nights in ``series`` that have a sleep duration.

    Time in bed falls back to the sleep duration on nights without it.
    Phase averages count a missing phase as 0. A missing or zero
    ``sleep_goal`` falls back to 420 minutes.
    """
    nights = [record for record in series if record.sleep_duration is not None]
    if not nights:
        return SleepSummary()

    goal = sleep_goal or DEFAULT_SLEEP_GOAL
    durations: list[float] = [record.sleep_duration for record in nights]  # type: ignore[misc]
    avg_sleep = int(round_half_up(_mean(durations)))
    in_bed = [record.sleep_in_bed or record.sleep_duration or 0 for record in nights]
    avg_in_bed = int(round_half_up(_mean(in_bed)))
    goal_days = sum(1 for value in durations if value >= goal)

    def phase(field: MetricField) -> int:
        return int(round_half_up(_mean([record.get(field) or 0 for record in nights])))

    return SleepSummary(
        nights=len(nights),
        avg_sleep=avg_sleep,
        avg_in_bed=avg_in_bed,
        efficiency=(
            int(round_half_up(avg_sleep / avg_in_bed * 100)) if avg_sleep and avg_in_bed else 0
        ),
        best_sleep=max(durations),
        worst_sleep=min(durations),
        goal_days=goal_days,
        goal_percentage=_percentage(goal_days, len(nights)),
        avg_deep=phase(MetricField.SLEEP_DEEP),
        avg_rem=phase(MetricField.SLEEP_REM),
        avg_light=phase(MetricField.SLEEP_LIGHT),
        avg_awake=phase(MetricField.SLEEP_AWAKE),
    )


def heart_summary(series: Sequence[DailyMetric]) -> HeartSummary:
    """
    Summarize resting, peak and minimum heart rate plus blood oxygen.

    ``rhr_change`` compares the mean of the last seven resting heart rate
    readings with the seven before them, and stays 0 below fourteen readings.
    """
    resting: list[float] = [
        record.resting_heart_rate for record in series if record.resting_heart_rate is not None
    ]
    peaks = [record.heart_rate_max for record in series if record.heart_rate_max is not None]
    lows = [record.heart_rate_min for record in series if record.heart_rate_min is not None]
    spo2 = [record.blood_oxygen for record in series if record.blood_oxygen is not None]

    rhr_change = 0.0
    if len(resting) >= MIN_PROJECTION_POINTS:
        recent = resting[-SHORT_WINDOW:]
        previous = resting[-2 * SHORT_WINDOW : -SHORT_WINDOW]
        rhr_change = round_half_up(_mean(recent) - _mean(previous), 1)

    return HeartSummary(
        current_rhr=resting[-1] if resting else None,
        avg_rhr=int(round_half_up(_mean(resting))) if resting else 0,
        lowest_rhr=min(resting, default=0),
        highest_rhr=max(resting, default=0),
        max_hr=max(peaks, default=0),
        min_hr=min(lows, default=0),
        rhr_change=rhr_change,
        avg_spo2=round_half_up(_mean(spo2), 1) if spo2 else 0.0,
    )


def dashboard_summary(
    series: Sequence[DailyMetric],
    goals: Goals,
    today: date | None = None,
    time_range: TimeRange | str = TimeRange.ALL,
) -> dict[str, Any]:
    """
    Assemble the aggregates shown on the dashboard.

    The activity, sleep and heart summaries cover ``time_range`` only.
    Trend, streaks, deltas and personal records always use the whole series.

    Args:
        series: Chronologically sorted records.
        goals: User goals.
        today: Reference date; defaults to the system date.
        time_range: Range token for the view summaries.

    Returns:
        JSON-serializable summary.
    """
    in_range = filter_by_time_range(series, time_range, today)
    trend = weight_trend(series)
    current = today_metrics(series, today)

    projection = None
    if goals.target_weight is not None:
        projection = projected_goal_date(trend, goals.target_weight, today)

    streak_goals = {
        "steps": (MetricField.STEPS, goals.daily_steps),
        "calories": (MetricField.ACTIVE_CALORIES, goals.daily_calories),
        "sleep": (MetricField.SLEEP_DURATION, goals.daily_sleep),
    }
    streaks = {
        name: streak(series, field, goal)
        for name, (field, goal) in streak_goals.items()
        if goal is not None
    }

    deltas: dict[str, Any] = {}
    for field in (
        MetricField.WEIGHT,
        MetricField.STEPS,
        MetricField.ACTIVE_CALORIES,
        MetricField.RESTING_HEART_RATE,
        MetricField.SLEEP_DURATION,
    ):
        delta = comparison_delta(series, field)
        deltas[field.value] = delta.model_dump() if delta else None

    logger.debug(f"Built dashboard summary over {len(in_range)} of {len(series)} days")

    return {
        "days": len(in_range),
        "today": current.to_dict() if current else None,
        "latest_trend": trend[-1].model_dump() if trend else None,
        "weight_rate": weight_rate(trend),
        "projection": projection.model_dump(mode="json") if projection else None,
        "streaks": streaks,
        "deltas": deltas,
        "personal_records": [record.model_dump() for record in personal_records(series)],
        "activity": activity_summary(in_range, goals.daily_steps).model_dump(),
        "sleep": sleep_summary(in_range, goals.daily_sleep).model_dump(),
        "heart": heart_summary(in_range).model_dump(),
    }
