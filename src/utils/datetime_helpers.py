"""
Standardized Date/Time Handling Utilities

This module provides centralized functions for date/time operations so that
every day-boundary comparison in the engine uses one reference calendar:

1. "Today" is always computed in the reference timezone (GAMIFICATION_TIMEZONE)
2. Timezone-aware datetimes are converted into the reference timezone before
   their calendar date is taken
3. Naive datetimes are assumed to already be in the reference timezone
4. ISO strings from the persistence layer are accepted wherever a date is

CRITICAL RULES:
- Never call date.today() or datetime.now() without a timezone in engine code
- Always normalize incoming dates with to_reference_date()
"""

import logging
from datetime import datetime, date, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src import config
from src.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

DateLike = Union[date, datetime, str]


def get_reference_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Get the reference timezone, or UTC if the name is unknown

    Args:
        tz_name: IANA timezone name (defaults to GAMIFICATION_TIMEZONE)

    Returns:
        ZoneInfo object for the reference calendar
    """
    tz_name = tz_name or config.GAMIFICATION_TIMEZONE
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}', falling back to {DEFAULT_TIMEZONE}: {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def now_in_timezone(tz_name: Optional[str] = None) -> datetime:
    """Get current datetime in the reference timezone"""
    return datetime.now(get_reference_timezone(tz_name))


def today_in_timezone(tz_name: Optional[str] = None) -> date:
    """
    Get today's date in the reference timezone

    Args:
        tz_name: IANA timezone name (defaults to GAMIFICATION_TIMEZONE)

    Returns:
        Today's date in the reference calendar
    """
    return now_in_timezone(tz_name).date()


def to_reference_datetime(value: Union[datetime, str], tz_name: Optional[str] = None) -> datetime:
    """
    Normalize a datetime (or ISO datetime string) into the reference timezone

    Aware datetimes are converted. Naive datetimes are returned unchanged,
    since they are assumed to already be reference-calendar wall time.

    Raises:
        ValidationError: If value is a string that is not ISO 8601
    """
    if isinstance(value, str):
        value = _parse_iso_datetime(value)

    if value.tzinfo is None:
        return value

    return value.astimezone(get_reference_timezone(tz_name))


def to_reference_date(value: Optional[DateLike], tz_name: Optional[str] = None) -> Optional[date]:
    """
    Convert a date, datetime or ISO string to a calendar date in the reference timezone

    Args:
        value: Date-like value, or None
        tz_name: IANA timezone name (defaults to GAMIFICATION_TIMEZONE)

    Returns:
        Calendar date, or None if value is None

    Raises:
        ValidationError: If value is a string that is not ISO 8601
    """
    if value is None:
        return None

    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return to_reference_datetime(value, tz_name).date()

    if isinstance(value, date):
        return value

    value = value.strip()
    if len(value) == 10:
        try:
            return date.fromisoformat(value)
        except ValueError as e:
            raise ValidationError(f"Invalid date '{value}'. Expected YYYY-MM-DD", field="date", value=value, cause=e)

    return to_reference_datetime(_parse_iso_datetime(value), tz_name).date()


def _parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 datetime string, accepting a trailing 'Z' for UTC"""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid datetime '{value}'. Expected ISO 8601", field="datetime", value=value, cause=e)


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)"""
    return (end - start).days


def yesterday_of(day: date) -> date:
    """Calendar day before the given day"""
    return day - timedelta(days=1)
