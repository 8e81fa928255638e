"""
Value normalization for vendor export data.

Date canonicalization, lenient numeric coercion and sleep unit conversion.
None of these functions raise: a value that cannot be normalized is either
passed through (dates) or treated as not observed (numbers).
"""

import math
import re
from typing import Any

from dateutil import parser as date_parser

from recon_health.domain.metrics import SLEEP_FIELDS, MetricField

ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}")
HOURS_COLUMN_MARKER = "(hr)"


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round with ties going towards positive infinity.

    Args:
        value: Value to round.
        digits: Number of decimal places to keep.

    Returns:
        Rounded value.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def normalize_date(raw: Any) -> str:
    """
    Canonicalize a vendor date to ``YYYY-MM-DD``.

    ISO-8601 strings (with ``T`` or space separator and an optional offset)
    keep the calendar date as written and drop the time of day. ``DD/MM/YYYY``
    is handled positionally. Anything else is returned unchanged.

    Args:
        raw: Date string from the export.

    Returns:
        Normalized date string.
    """
    text = str(raw).strip()

    if ISO_DATE_PREFIX.match(text):
        try:
            return date_parser.parse(text).date().isoformat()
        except (ValueError, OverflowError):
            pass

    parts = text.split("/")
    if len(parts) == 3:
        day, month, year = (part.strip() for part in parts)
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return str(raw)


def parse_number(raw: Any) -> float | None:
    """
    Coerce a cell or JSON value to a float.

    Args:
        raw: Value to convert (string, number, None, NaN...).

    Returns:
        Finite float, or None for empty and non-numeric input.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None

    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(value):
        return None

    return value


def hours_to_minutes(value: float) -> int:
    """
    Convert a sleep value of unknown unit to minutes.

    Values below 24 are taken to be hours, anything else is already minutes.
    This is an approximation: it relies on no single sleep value reaching a
    full day, and misreads sub-24-minute values (e.g. short awake periods)
    as hours.
    """
    if value < 24:
        return int(round_half_up(value * 60))
    return int(round_half_up(value))


def is_hours_column(column: str, field: MetricField | str) -> bool:
    """Whether a CSV column holds a sleep value explicitly labelled in hours."""
    try:
        metric = MetricField(field)
    except ValueError:
        return False
    return HOURS_COLUMN_MARKER in column and metric in SLEEP_FIELDS
