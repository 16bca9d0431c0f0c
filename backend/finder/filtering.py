"""
Filter & sort engine for sanitized events.

Category matching works on the provider's free-text category through keyword
groups; date windows are computed relative to today. Undated events are never
excluded by a date window and always sort after dated ones.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from .dates import next_saturday, start_of_day
from .models import DateWindow, DisplayList, Event, EventCategory, SortOrder

DISPLAY_LIMIT = 50

CATEGORY_KEYWORDS: dict[EventCategory, tuple[str, ...]] = {
    EventCategory.MUSIC: ("music", "concert", "band", "live music", "festival", "dj", "orchestra"),
    EventCategory.SPORTS: ("sport", "game", "match", "tournament", "race", "fitness", "athletic"),
    EventCategory.ARTS: ("art", "culture", "museum", "gallery", "exhibition"),
    EventCategory.FOOD: ("food", "drink", "culinary", "wine", "beer", "tasting", "dining"),
    EventCategory.OUTDOOR: ("outdoor", "nature", "hiking", "park", "adventure", "garden"),
    EventCategory.FAMILY: ("family", "kids", "children", "child"),
    EventCategory.COMEDY: ("comedy", "stand-up", "standup", "improv", "funny"),
    EventCategory.THEATER: ("theater", "theatre", "show", "performance", "musical", "play"),
    EventCategory.FESTIVALS: ("festival", "fair", "celebration", "carnival", "parade"),
    EventCategory.NIGHTLIFE: ("nightlife", "club", "bar", "party", "night"),
    EventCategory.BUSINESS: ("business", "networking", "conference", "professional", "career"),
    EventCategory.EDUCATION: ("education", "learning", "workshop", "class", "lecture", "seminar"),
    EventCategory.CHARITY: ("charity", "cause", "fundraiser", "volunteer", "nonprofit", "benefit"),
    EventCategory.HEALTH: ("health", "wellness", "yoga", "fitness", "meditation"),
    EventCategory.TECH: ("tech", "technology", "coding", "developer", "startup", "hackathon"),
}


def matches_category(event: Event, category: EventCategory) -> bool:
    if category is EventCategory.ALL or event.is_placeholder:
        return True
    text = event.category.lower()
    keywords = CATEGORY_KEYWORDS.get(category)
    if not keywords:
        return category.value in text
    return any(keyword in text for keyword in keywords)


def date_window_bounds(window: DateWindow, today: date) -> Optional[tuple[date, date]]:
    """Inclusive (start, end) bounds of ``window``, or None for ``all``."""
    if window is DateWindow.TODAY:
        return today, today
    if window is DateWindow.TOMORROW:
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow
    if window is DateWindow.THIS_WEEKEND:
        if today.weekday() == 6:
            return today, today
        saturday = next_saturday(today)
        return saturday, saturday + timedelta(days=1)
    if window is DateWindow.NEXT_WEEK:
        monday = today + timedelta(days=7 - today.weekday())
        return monday, monday + timedelta(days=6)
    if window is DateWindow.THIS_MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today, today.replace(day=last_day)
    return None


def in_date_window(event: Event, window: DateWindow, today: date) -> bool:
    if event.resolved_date is None:
        return True
    bounds = date_window_bounds(window, today)
    if bounds is None:
        return True
    start, end = bounds
    return start <= event.resolved_date <= end


def sort_events(events: Iterable[Event], order: SortOrder) -> list[Event]:
    """Dated events first (ascending for recent, descending for future), then undated in original order."""
    events = list(events)
    dated = [event for event in events if event.resolved_date is not None]
    undated = [event for event in events if event.resolved_date is None]
    dated.sort(key=lambda event: event.resolved_date, reverse=order is SortOrder.FUTURE)
    return dated + undated


def apply_filters(
    events: Iterable[Event],
    category: EventCategory = EventCategory.ALL,
    date_window: DateWindow = DateWindow.ALL,
    sort_order: SortOrder = SortOrder.RECENT,
    today: Union[date, datetime, None] = None,
    limit: int = DISPLAY_LIMIT,
) -> DisplayList:
    """Filter by category and date window, sort, and cap for display."""
    reference = start_of_day(today)
    selected = [
        event
        for event in events
        if matches_category(event, category) and in_date_window(event, date_window, reference)
    ]
    ordered = sort_events(selected, sort_order)
    total = len(ordered)
    if total <= limit:
        return DisplayList(events=ordered, total=total)
    return DisplayList(
        events=ordered[:limit],
        total=total,
        truncated=True,
        notice=f"Showing {limit} of {total} events.",
    )
