"""
Event Sanitization

Turns untrusted event candidates into display-ready ``Event`` records:
fields are decoded with explicit defaults, HTML-escaped, URLs are restricted
to absolute http(s) links, and dates are normalized before escaping.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Union
from urllib.parse import urlparse

from .dates import parse_event_date, start_of_day
from .logging_utils import get_logger
from .models import Event

logger = get_logger(__name__)

DEFAULT_TITLE = "Untitled Event"
DEFAULT_DATE = "Date TBD"
DEFAULT_LOCATION = "Location TBD"
DEFAULT_CATEGORY = "Uncategorized"

MAX_TEXT_LENGTHS = {
    "title": 200,
    "date": 100,
    "location": 200,
    "address": 300,
    "description": 500,
    "category": 60,
    "time": 60,
}
MAX_URL_LENGTH = 2048

ALLOWED_URL_SCHEMES = {"http", "https"}

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:(?!\d)")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Present:
    """A field the provider supplied as usable text."""
    value: str


@dataclass(frozen=True)
class Defaulted:
    """A field that was missing or unusable and got its placeholder."""
    value: str


FieldValue = Union[Present, Defaulted]


def decode_text(value: Any, default: str, max_length: Optional[int] = None) -> FieldValue:
    """Decode one untrusted field, substituting ``default`` for non-text."""
    if not isinstance(value, str):
        return Defaulted(default)
    text = _WHITESPACE_RE.sub(" ", value).strip()
    if not text:
        return Defaulted(default)
    if max_length and len(text) > max_length:
        text = text[: max_length - 1].rstrip() + "…"
    return Present(text)


def decode_first(candidate: dict[str, Any], keys: Iterable[str], default: str, max_length: Optional[int] = None) -> FieldValue:
    """Decode the first usable field among ``keys`` (e.g. title, then name)."""
    for key in keys:
        decoded = decode_text(candidate.get(key), default, max_length)
        if isinstance(decoded, Present):
            return decoded
    return Defaulted(default)


def escape_html(text: str) -> str:
    """Escape ``& < > " '`` for direct insertion into HTML."""
    return html.escape(text, quote=True)


def sanitize_url(value: Any) -> Optional[str]:
    """
    Validate an event link. Returns the escaped URL, or None when absent.

    A bare ``host/path`` gets an ``https://`` prefix before validation; any
    scheme other than http/https is rejected.
    """
    if not isinstance(value, str):
        return None
    url = value.strip().strip("<>").strip()
    if not url or len(url) > MAX_URL_LENGTH or any(char.isspace() for char in url):
        return None
    if "://" not in url and not _SCHEME_RE.match(url):
        url = f"https://{url.lstrip('/')}"

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return None
    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES or not hostname:
        return None
    if "." not in hostname and hostname != "localhost":
        return None
    return escape_html(url)


def _escaped(field: FieldValue) -> str:
    return escape_html(field.value)


def is_stale(resolved: Optional[date], today: date) -> bool:
    """True when the event's date lies strictly before today."""
    return resolved is not None and resolved < today


def build_event(candidate: dict[str, Any], now: Union[date, datetime, None] = None) -> Event:
    """Sanitize one candidate without applying the freshness filter."""
    today = start_of_day(now)
    title = decode_first(candidate, ("title", "name"), DEFAULT_TITLE, MAX_TEXT_LENGTHS["title"])
    date_field = decode_text(candidate.get("date"), DEFAULT_DATE, MAX_TEXT_LENGTHS["date"])
    location = decode_first(candidate, ("location", "venue"), DEFAULT_LOCATION, MAX_TEXT_LENGTHS["location"])
    address = decode_text(candidate.get("address"), "", MAX_TEXT_LENGTHS["address"])
    description = decode_text(candidate.get("description"), "", MAX_TEXT_LENGTHS["description"])
    category = decode_text(candidate.get("category"), DEFAULT_CATEGORY, MAX_TEXT_LENGTHS["category"])
    time_field = decode_text(candidate.get("time"), "", MAX_TEXT_LENGTHS["time"])

    resolved = (
        parse_event_date(date_field.value, today=today)
        if isinstance(date_field, Present)
        else None
    )

    return Event(
        title=_escaped(title),
        date_text=_escaped(date_field),
        location=_escaped(location),
        address=_escaped(address),
        description=_escaped(description),
        category=_escaped(category),
        time=_escaped(time_field),
        url=sanitize_url(candidate.get("url")),
        resolved_date=resolved,
    )


def sanitize_event(candidate: Any, now: Union[date, datetime, None] = None) -> Optional[Event]:
    """
    Sanitize one candidate. Returns None only for events dated before today;
    events whose date cannot be resolved are kept.
    """
    if not isinstance(candidate, dict):
        candidate = {}
    event = build_event(candidate, now)
    if is_stale(event.resolved_date, start_of_day(now)):
        return None
    return event


def sanitize_batch(candidates: Iterable[Any], now: Union[date, datetime, None] = None) -> list[Event]:
    """Sanitize a batch, dropping stale events and keeping insertion order."""
    today = start_of_day(now)
    events: list[Event] = []
    dropped = 0
    for candidate in candidates:
        event = sanitize_event(candidate, today)
        if event is None:
            dropped += 1
            continue
        events.append(event)
    if dropped:
        logger.info("Freshness filter removed %s past events", dropped)
    return events


def placeholder_events() -> list[Event]:
    """Stand-in events shown when a search produced nothing displayable."""
    return [
        Event(
            title="No upcoming events found",
            date_text=DEFAULT_DATE,
            location="Try a nearby city or a larger radius",
            description="The event service did not return any upcoming events for this search.",
            category="Info",
            is_placeholder=True,
        ),
        Event(
            title="Try again",
            date_text=DEFAULT_DATE,
            location="Change the filters or pick the other API",
            description="Results vary between searches. Running the same search again often helps.",
            category="Info",
            is_placeholder=True,
        ),
    ]
