"""
Timezone and calendar-date utilities.

The canonical series is keyed by calendar dates, so "today" has to be
resolved in the user's timezone rather than the server's.
"""

from datetime import date, datetime, timedelta

import pytz


def today_in_timezone(timezone_str: str = "UTC") -> date:
    """
    Return the current calendar date in a timezone.

    Args:
        timezone_str: Timezone string (e.g., "Europe/London").

    Returns:
        Today's date as seen in that timezone.
    """
    tz = pytz.timezone(timezone_str)
    return datetime.now(pytz.utc).astimezone(tz).date()


def to_date_key(day: date) -> str:
    """Format a date as a ``YYYY-MM-DD`` series key."""
    return day.strftime("%Y-%m-%d")


def days_before(day: date, days: int) -> str:
    """Return the series key ``days`` calendar days before ``day``."""
    return to_date_key(day - timedelta(days=days))
