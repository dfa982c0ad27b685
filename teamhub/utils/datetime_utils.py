"""
Datetime utility functions.
Provides replacements for deprecated datetime functions.
"""

from datetime import date, datetime, time
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def today() -> date:
    """Current UTC calendar date, used for "upcoming" comparisons."""
    return utcnow().date()


def isoformat_or_none(value: Optional[Union[date, time, datetime]]) -> Optional[str]:
    """
    Serialize a date, time or datetime for JSON responses.

    Times are rendered as HH:MM, which is the format clients submit.

    Examples:
        >>> isoformat_or_none(time(18, 30))
        "18:30"
        >>> isoformat_or_none(date(2026, 1, 21))
        "2026-01-21"
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return value.isoformat()
