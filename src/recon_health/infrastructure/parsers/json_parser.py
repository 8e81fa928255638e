"""
JSON parser for Health Auto Export data.

Supported document shapes:

1. Nested metric groups: ``{"data": {"metrics": [{"name", "units", "data": [...]}]}}``
2. Flat metric groups:   ``{"metrics": [{"name", "data": [...]}]}``
3. Daily records:        ``[{"date": "...", "steps": 1234, ...}]``

Anything else parses to an empty result. The shape is decided once, up
front, by ``classify_document``.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from recon_health.domain.field_mappings import (
    DATE_KEY,
    GroupedMapping,
    resolve_field,
    resolve_metric_group,
)
from recon_health.domain.metrics import DailyMetric, MetricField
from recon_health.services.merger import MergeService
from recon_health.utils.exceptions import ParsingError
from recon_health.utils.normalization import normalize_date, parse_number

logger = logging.getLogger(__name__)

RECORD_DATE_KEYS = ("date", "Date", "dateString")
POINT_DATE_KEYS = ("date", "Date")
FALLBACK_VALUE_KEYS = ("qty", "value", "avg")


class JSONShape(str, Enum):
    """Recognized top-level JSON document shapes."""

    NESTED_METRICS = "nested_metrics"
    FLAT_METRICS = "flat_metrics"
    DAILY_RECORDS = "daily_records"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ClassifiedDocument:
    """A JSON document tagged with its shape and the items to parse."""

    shape: JSONShape
    items: list[Any] = field(default_factory=list)


def classify_document(document: Any) -> ClassifiedDocument:
    """
    Decide which shape a decoded JSON document has.

    Checks ``data.metrics``, then ``metrics``, then a top-level list; the
    first match wins.

    Args:
        document: Decoded JSON value.

    Returns:
        The tagged document.
    """
    if isinstance(document, dict):
        inner = document.get("data")
        if isinstance(inner, dict) and isinstance(inner.get("metrics"), list):
            return ClassifiedDocument(JSONShape.NESTED_METRICS, inner["metrics"])
        if isinstance(document.get("metrics"), list):
            return ClassifiedDocument(JSONShape.FLAT_METRICS, document["metrics"])

    if isinstance(document, list):
        return ClassifiedDocument(JSONShape.DAILY_RECORDS, document)

    return ClassifiedDocument(JSONShape.UNSUPPORTED)


def _first_date(entry: Mapping[str, Any], keys: Iterable[str]) -> str | None:
    for key in keys:
        value = entry.get(key)
        if value is not None and str(value).strip():
            return normalize_date(value)
    return None


def _first_present(entry: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


class JSONParser:
    """Parser for JSON health exports."""

    def __init__(self) -> None:
        self.merger = MergeService()

    def _parse_daily_records(self, rows: list[Any]) -> list[DailyMetric]:
        """
        Parse a list of flat daily records.

        Args:
            rows: Decoded list elements.

        Returns:
            Partial records, in document order.
        """
        partials: list[DailyMetric] = []

        for idx, row in enumerate(rows):
            if not isinstance(row, dict):
                continue

            date_str = _first_date(row, RECORD_DATE_KEYS)
            if not date_str:
                logger.debug(f"Record {idx}: no date, skipping")
                continue

            values: dict[MetricField, float | None] = {}
            for key, raw in row.items():
                canonical = resolve_field(str(key))
                if canonical is None or canonical == DATE_KEY:
                    continue
                number = parse_number(raw)
                if number is not None:
                    values[MetricField(canonical)] = number

            partials.append(DailyMetric(date=date_str).with_values(values))

        return partials

    def _grouped_values(
        self, point: Mapping[str, Any], mappings: list[GroupedMapping]
    ) -> dict[MetricField, float | None]:
        values: dict[MetricField, float | None] = {}

        for mapping in mappings:
            raw = _first_present(point, (mapping.value_key, *FALLBACK_VALUE_KEYS))
            number = parse_number(raw)
            if number is None:
                continue
            values[mapping.field] = mapping.convert(number) if mapping.convert else number

        return values

    def _flat_values(
        self, point: Mapping[str, Any], metric_name: str
    ) -> dict[MetricField, float | None]:
        canonical = resolve_field(metric_name)
        if canonical is None or canonical == DATE_KEY:
            return {}

        number = parse_number(_first_present(point, FALLBACK_VALUE_KEYS))
        if number is None:
            return {}
        return {MetricField(canonical): number}

    def _parse_metric_groups(self, groups: list[Any]) -> list[DailyMetric]:
        """
        Parse metric groups into partial records.

        Known metrics expand through the grouped table; metrics the grouped
        table lists with no fields are skipped on purpose. Unknown metrics
        fall back to the flat table keyed by the metric name.

        Args:
            groups: Decoded ``metrics`` list.

        Returns:
            Partial records, in document order.
        """
        partials: list[DailyMetric] = []

        for group in groups:
            if not isinstance(group, dict):
                continue

            metric_name = str(group.get("name") or "").lower().strip()
            points = group.get("data")
            if not metric_name or not isinstance(points, list):
                continue

            mappings = resolve_metric_group(metric_name)
            if mappings is None:
                logger.debug(f"Metric '{metric_name}' has no grouped mapping, trying flat table")

            for point in points:
                if not isinstance(point, dict):
                    continue

                date_str = _first_date(point, POINT_DATE_KEYS)
                if not date_str:
                    continue

                if mappings is not None:
                    values = self._grouped_values(point, mappings)
                else:
                    values = self._flat_values(point, metric_name)

                partials.append(DailyMetric(date=date_str).with_values(values))

        return partials

    def parse(self, text: str) -> list[DailyMetric]:
        """
        Parse JSON text into daily records.

        Args:
            text: JSON document.

        Returns:
            Records sorted by date, one per date.

        Raises:
            ParsingError: If the text is not valid JSON.
        """
        try:
            document = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise ParsingError(f"Failed to parse JSON document: {e}") from e

        classified = classify_document(document)

        if classified.shape is JSONShape.DAILY_RECORDS:
            partials = self._parse_daily_records(classified.items)
        elif classified.shape is JSONShape.UNSUPPORTED:
            logger.warning("Unsupported JSON structure, nothing to import")
            partials = []
        else:
            partials = self._parse_metric_groups(classified.items)

        records = self.merger.accumulate(partials)
        logger.info(f"Parsed {len(records)} days from {classified.shape.value} JSON")
        return records
