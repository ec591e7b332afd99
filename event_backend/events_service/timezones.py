"""
Conversions between the display timezone and stored UTC instants.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_to_utc(value: datetime, tz_name: str) -> datetime:
    """
    Read `value` as a wall-clock time in `tz_name` and return the UTC instant.

    Values that already carry an offset keep their instant.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz_name))
    return value.astimezone(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # Naive values coming back from the database are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_isoformat(value: datetime) -> str:
    return as_utc(value).isoformat()


def format_for_display(value: datetime, tz_name: str) -> str:
    """Render a stored instant as `YYYY-MM-DD HH:mm:ss` in `tz_name`."""
    return as_utc(value).astimezone(ZoneInfo(tz_name)).strftime(DISPLAY_FORMAT)
