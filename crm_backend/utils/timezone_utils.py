"""
Timezone utility functions for the CRM backend.
Timestamps are stored as naive UTC; reports bucket them in the display
timezone (DISPLAY_TIMEZONE, default UTC).
"""

from datetime import datetime, timezone
import pytz
from flask import current_app, has_app_context
from typing import Optional, Union


def get_display_timezone() -> str:
    """Configured display timezone name."""
    if has_app_context():
        return current_app.config.get('DISPLAY_TIMEZONE') or 'UTC'
    return 'UTC'


def utc_now() -> datetime:
    """
    Get current time in UTC.

    Returns:
        Current datetime in UTC (timezone-aware)
    """
    return datetime.now(timezone.utc)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalise an aware datetime to the naive UTC form stored in the database."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def naive_utc_now() -> datetime:
    """Current UTC time without tzinfo, as stored in DateTime columns."""
    return to_naive_utc(utc_now())


def convert_utc_to_display(utc_dt: Union[datetime, str]) -> datetime:
    """
    Convert a UTC datetime (naive values are taken as UTC) to the display timezone.
    """
    if isinstance(utc_dt, str):
        utc_dt = parse_datetime_string(utc_dt)
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)

    display_tz = pytz.timezone(get_display_timezone())
    return utc_dt.astimezone(display_tz)


def parse_datetime_string(dt_string: str) -> Optional[datetime]:
    """
    Parse an ISO-ish datetime string and return a timezone-aware datetime in UTC.

    Naive strings are assumed to be UTC, matching what JavaScript clients send
    from ``toISOString()``.

    Raises:
        ValueError: if no known format matches
    """
    if not dt_string:
        return None

    try:
        dt = datetime.fromisoformat(dt_string.replace('Z', '+00:00'))
    except ValueError:
        for fmt in [
            '%Y-%m-%d %H:%M:%S',
            '%Y-%m-%d %H:%M:%S.%f',
            '%Y-%m-%dT%H:%M:%S.%fZ',
            '%Y/%m/%d %H:%M',
            '%d/%m/%Y',
        ]:
            try:
                dt = datetime.strptime(dt_string, fmt)
                break
            except ValueError:
                continue
        else:
            raise ValueError(f"Unable to parse datetime string: {dt_string}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_datetime_for_api(value) -> Optional[str]:
    """
    Format a datetime/date for API responses in ISO format.
    Strings are passed through (SQLite hands raw text back for textual SELECTs).
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat()
    return value.isoformat()
