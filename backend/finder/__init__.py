"""
Event Finder Package

Recovers, sanitizes, filters and sorts events from LLM search replies.
"""

from .models import DateWindow, DisplayList, Event, EventCategory, Provider, SearchQuery, SearchResults, SortOrder
from .json_recovery import extract_events
from .dates import parse_event_date
from .sanitizer import sanitize_event, sanitize_batch
from .filtering import apply_filters
from .pipeline import build_results

__all__ = [
    "DateWindow",
    "DisplayList",
    "Event",
    "EventCategory",
    "Provider",
    "SearchQuery",
    "SearchResults",
    "SortOrder",
    "extract_events",
    "parse_event_date",
    "sanitize_event",
    "sanitize_batch",
    "apply_filters",
    "build_results",
]
