"""
Date normalization for free-text event dates.

Providers describe dates as ISO strings, "June 5, 2025", "Sat, June 14th",
"tomorrow", "6/14/2025" and so on. ``parse_event_date`` resolves them to a
calendar date relative to a fixed ``today`` so results are reproducible.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from dateutil import parser as date_parser

MONTHS = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

SATURDAY = 5

_MONTH_RE = re.compile(r"\b(" + "|".join(MONTHS) + r")\b", re.IGNORECASE)
_DAY_RE = re.compile(r"(?<!\d)(\d{1,2})(?:st|nd|rd|th)?(?!\d)", re.IGNORECASE)
_YEAR_RE = re.compile(r"(?<!\d)(20\d{2})(?!\d)")
_US_NUMERIC_RE = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4})(?!\d)")
_ISO_NUMERIC_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")


def start_of_day(value: Union[date, datetime, None] = None) -> date:
    """Calendar day of ``value`` (defaults to the local current day)."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def next_saturday(today: date) -> date:
    """The coming Saturday, or ``today`` itself on a Saturday."""
    return today + timedelta(days=(SATURDAY - today.weekday()) % 7)


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_absolute(text: str, today: date) -> Optional[date]:
    default = datetime(today.year, today.month, today.day)
    try:
        return date_parser.parse(text, default=default).date()
    except (ValueError, OverflowError):
        return None


def _parse_keyword(text: str, today: date) -> Optional[date]:
    lowered = text.lower()
    if "today" in lowered:
        return today
    if "tomorrow" in lowered:
        return today + timedelta(days=1)
    if "this weekend" in lowered:
        return next_saturday(today)
    if "next week" in lowered:
        return today + timedelta(days=7)
    if "this month" in lowered:
        return today
    return None


def _parse_month_name(text: str, today: date) -> Optional[date]:
    month_match = _MONTH_RE.search(text)
    if not month_match:
        return None
    day_match = _DAY_RE.search(text)
    if not day_match:
        return None
    year_match = _YEAR_RE.search(text)
    year = int(year_match.group(1)) if year_match else today.year
    month = MONTHS.index(month_match.group(1).lower()) + 1
    return _safe_date(year, month, int(day_match.group(1)))


def _parse_us_numeric(text: str, today: date) -> Optional[date]:
    match = _US_NUMERIC_RE.search(text)
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    return _safe_date(year, month, day)


def _parse_iso_numeric(text: str, today: date) -> Optional[date]:
    match = _ISO_NUMERIC_RE.search(text)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    return _safe_date(year, month, day)


_RESOLVERS: tuple[Callable[[str, date], Optional[date]], ...] = (
    _parse_absolute,
    _parse_keyword,
    _parse_month_name,
    _parse_us_numeric,
    _parse_iso_numeric,
)


def parse_event_date(raw: object, today: Optional[date] = None) -> Optional[date]:
    """
    Resolve a free-text date to a calendar date.

    Tries, in order: an absolute date/time parse, relative keywords
    ("today", "tomorrow", "this weekend", "next week", "this month"), a month
    name with day and optional year, ``M/D/YYYY`` and ``YYYY-M-D``. The first
    resolver that succeeds wins. Returns ``None`` when nothing matches.
    """
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None

    reference = start_of_day(today)
    for resolver in _RESOLVERS:
        resolved = resolver(text, reference)
        if resolved is not None:
            return resolved
    return None
