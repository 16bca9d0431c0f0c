"""
HTML rendering of event cards.

Event fields are already escaped by the sanitizer, so they are inserted as
is. Only values produced here (dates, class names, messages) are escaped.
"""

from __future__ import annotations

import html
import re
from typing import Optional

from .models import DisplayList, Event

NO_MATCHES_MESSAGE = "No events match your filters. Try different filter options."


def format_event_date(event: Event) -> str:
    if event.resolved_date is None:
        return event.date_text or "Date not specified"
    day = event.resolved_date
    formatted = f"{day.strftime('%A, %B')} {day.day}, {day.year}"
    if event.time:
        formatted += f" at {event.time}"
    return formatted


def category_class(category: str) -> str:
    return "cat-" + re.sub(r"[^a-z0-9]", "", category.lower())


def render_event_card(event: Event, index: int = 0) -> str:
    parts = [
        f'<div class="event-card" style="animation-delay: {index * 0.05:.2f}s">',
        '<div class="event-details">',
        f'<h2 class="event-title">{event.title}</h2>',
        f'<div class="event-date"><i class="far fa-calendar-alt"></i> {format_event_date(event)}</div>',
        f'<div class="event-location"><i class="fas fa-map-marker-alt"></i> {event.location}</div>',
    ]
    if event.address:
        parts.append(
            f'<div class="event-address"><i class="fas fa-location-dot"></i> {event.address}</div>'
        )
    if event.category:
        parts.append(
            '<div class="event-category"><i class="fas fa-tag"></i> '
            f'<span class="category-badge {category_class(event.category)}">{event.category}</span></div>'
        )
    parts.append(
        f'<p class="event-description">{event.description or "No description available"}</p>'
    )
    if event.url:
        parts.append(
            f'<div class="event-link"><a href="{event.url}" target="_blank" rel="noopener noreferrer">'
            '<i class="fas fa-external-link-alt"></i> More Info</a></div>'
        )
    parts.append("</div></div>")
    return "\n".join(parts)


def render_message(message: str, css_class: str = "error-message") -> str:
    return f'<div class="{css_class}"><p>{html.escape(message)}</p></div>'


def render_display(display: DisplayList, notice: Optional[str] = None) -> str:
    """Render the card list plus any informational or truncation notice."""
    blocks: list[str] = []
    if notice:
        blocks.append(render_message(notice, "search-notice"))
    if not display.events:
        blocks.append(render_message(NO_MATCHES_MESSAGE))
        return "\n".join(blocks)
    blocks.extend(render_event_card(event, index) for index, event in enumerate(display.events))
    if display.truncated and display.notice:
        blocks.append(render_message(display.notice, "truncation-notice"))
    return "\n".join(blocks)
