"""Date and time handling utilities."""

import time
from datetime import datetime, date
from dateutil import parser
import pytz
from typing import Optional, Union


class SystemClock:
    """Wall clock used by caches, validators and the migration engine.

    Replaced by a fake in tests so TTL expiry and politeness delays are
    deterministic.
    """

    def now(self) -> datetime:
        """Current time as an aware UTC datetime."""
        return datetime.now(pytz.utc)

    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        return int(self.now().timestamp() * 1000)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def to_iso(dt: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision and a Z suffix.

    Args:
        dt: Datetime to format; naive values are taken as UTC

    Returns:
        e.g. '2025-07-28T04:56:09.346Z'
    """
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    dt = dt.astimezone(pytz.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp string

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the value cannot be parsed
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    try:
        dt = parser.isoparse(value.strip())
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Failed to parse timestamp '{value}': {e}")

    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def parse_holiday_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a provider date ('2024-07-04' or '2024-03-10T02:00:00-08:00').

    The calendar date is taken as written, before any timezone conversion.

    Returns:
        The parsed date, or None when the value does not parse
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return parser.isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None
