"""
Search request validation.

Turns the loosely typed JSON body of ``POST /api/events`` (or the values a
client collected) into a ``SearchQuery``. Every rule failure raises
``QueryValidationError`` with the message shown to the user.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from .errors import QueryValidationError
from .models import DateWindow, EventCategory, Provider, SearchQuery, SortOrder

MAX_LOCATION_LENGTH = 100
MIN_RADIUS = 1
MAX_RADIUS = 500

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_radius(value: Any) -> int | None:
    """Parse a radius the way a browser form submits it ("25", 25, "25 miles")."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match:
            return int(match.group(1))
    return None


def _validate_location(value: Any) -> str:
    if not value or not isinstance(value, str) or len(value) > MAX_LOCATION_LENGTH:
        raise QueryValidationError(
            "Invalid location. Please provide a valid location (city or zip code).",
            field="location",
        )
    location = value.strip()
    if not location:
        raise QueryValidationError(
            "Invalid location. Please provide a valid location (city or zip code).",
            field="location",
        )
    return location


def _validate_radius(value: Any) -> int:
    radius = parse_radius(value)
    if radius is None or radius < MIN_RADIUS or radius > MAX_RADIUS:
        raise QueryValidationError(
            f"Invalid radius. Please provide a number between {MIN_RADIUS} and {MAX_RADIUS}.",
            field="radius",
        )
    return radius


def _validate_category(value: Any) -> EventCategory:
    if value is None or value == "":
        return EventCategory.ALL
    try:
        return EventCategory(value)
    except ValueError:
        raise QueryValidationError(
            "Invalid category. Please select from the provided options.",
            field="category",
        ) from None


def _validate_date_window(value: Any) -> DateWindow:
    if value is None or value == "":
        return DateWindow.ALL
    try:
        return DateWindow(value)
    except ValueError:
        raise QueryValidationError(
            "Invalid date filter. Please select from the provided options.",
            field="eventDate",
        ) from None


def _validate_provider(value: Any) -> Provider:
    try:
        return Provider(value)
    except ValueError:
        raise QueryValidationError(
            "Invalid API selection. Please select either Perplexity or Gemini.",
            field="apiChoice",
        ) from None


def parse_search_request(payload: Any) -> SearchQuery:
    """Validate a raw request body and build the ``SearchQuery``."""
    if not isinstance(payload, Mapping):
        raise QueryValidationError("Invalid request body. Expected a JSON object.")

    return SearchQuery(
        location=_validate_location(payload.get("location")),
        radius_miles=_validate_radius(payload.get("radius")),
        category=_validate_category(payload.get("category")),
        date_window=_validate_date_window(payload.get("eventDate")),
        provider=_validate_provider(payload.get("apiChoice")),
    )


def parse_sort_order(value: Any) -> SortOrder:
    try:
        return SortOrder(value)
    except ValueError:
        raise QueryValidationError("Invalid sort order", field="sort") from None
