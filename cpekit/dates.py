"""
Date parsing for attendance exports and meeting configuration.

Webinar exports and hand-written configuration files use a handful of date
layouts. The explicit layouts are tried first; anything else goes to the
dateutil parser.

Example usage:
    from cpekit.dates import parse_date

    parse_date("Apr 14, 2021 06:58 PM")   # datetime(2021, 4, 14, 18, 58)
    parse_date("2021-04-14 19:00:00")     # datetime(2021, 4, 14, 19, 0)
"""

import re
from datetime import datetime
from typing import Any, Optional

from dateutil import parser as dtparser

from cpekit.errors import DateParseError

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

_AMPM_RE = re.compile(
    r"([A-Za-z]+)\.?\s+(\d{1,2}),\s+(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])"
)
_MONTH_24H_RE = re.compile(r"([A-Za-z]+)\.?\s+(\d{1,2}),\s+(\d{4})\s+(\d{1,2}):(\d{2}):(\d{2})")
_ISO_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})\s(\d{2}):(\d{2}):(\d{2})")


def decode_month(name: str) -> Optional[int]:
    """
    Decode an English month name or unambiguous prefix to 1-12.

    Returns None for unknown or ambiguous names ("ju" could be June or July).
    """
    name = name.strip().lower()
    if not name:
        return None
    matches = [i for i, month in enumerate(MONTH_NAMES, start=1) if month.startswith(name)]
    if len(matches) == 1:
        return matches[0]
    return None


def _build(text: str, year: int, month: Optional[int], day: int,
           hour: int, minute: int, second: int) -> datetime:
    if month is None:
        raise DateParseError(text, "unknown month name")
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise DateParseError(text, str(e)) from e


def parse_date(text: Any) -> datetime:
    """
    Parse date and time text into a naive datetime with whole-second resolution.

    Supported layouts, tried in order:
        "Month D, YYYY H:MM[:SS] AM/PM"
        "Month D, YYYY H:MM:SS" (24 hour)
        "YYYY-MM-DD HH:MM:SS"
        anything dateutil understands

    Args:
        text: Date string (datetime values pass through)

    Returns:
        Parsed datetime

    Raises:
        DateParseError: If the text is missing or cannot be parsed
    """
    if isinstance(text, datetime):
        return text.replace(tzinfo=None, microsecond=0)
    if text is None:
        raise DateParseError(text, "undefined date string")
    text = str(text).strip()
    if not text:
        raise DateParseError(text, "empty date string")

    match = _AMPM_RE.search(text)
    if match:
        month_name, day, year, hour, minute, second, ampm = match.groups()
        hour = int(hour) % 12
        if ampm.upper() == "PM":
            hour += 12
        return _build(text, int(year), decode_month(month_name), int(day),
                      hour, int(minute), int(second or 0))

    match = _MONTH_24H_RE.search(text)
    if match:
        month_name, day, year, hour, minute, second = match.groups()
        return _build(text, int(year), decode_month(month_name), int(day),
                      int(hour), int(minute), int(second))

    match = _ISO_RE.search(text)
    if match:
        year, month, day, hour, minute, second = (int(g) for g in match.groups())
        return _build(text, year, month, day, hour, minute, second)

    try:
        parsed = dtparser.parse(text)
    except (ValueError, OverflowError) as e:
        raise DateParseError(text, str(e)) from e
    return parsed.replace(tzinfo=None, microsecond=0)


def format_activity_date(value: datetime) -> str:
    """Format a date as MM/DD/YYYY for the credit report."""
    return f"{value.month:02d}/{value.day:02d}/{value.year:04d}"
