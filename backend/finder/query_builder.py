"""
Prompt construction for the upstream providers.

The prompt pins down the output shape the extractor expects: a bare JSON
array of at most 30 objects with the keys ``title, description, location,
date, category, address, url``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .models import DateWindow, EventCategory, SearchQuery

MAX_EVENTS = 30

CATEGORY_LABELS = (
    "Music, Sports, Arts & Culture, Food & Drink, Outdoor, Family & Kids, Comedy, "
    "Theater & Shows, Festivals, Nightlife, Business & Networking, Education & Learning, "
    "Charity & Causes, Health & Wellness, Technology, or Other"
)

TIME_FRAMES = {
    DateWindow.TODAY: "today",
    DateWindow.TOMORROW: "tomorrow",
    DateWindow.THIS_WEEKEND: "this weekend",
    DateWindow.NEXT_WEEK: "next week",
    DateWindow.THIS_MONTH: "this month (within the next 30 days)",
}
DEFAULT_TIME_FRAME = "in the next 30 days"

OUTPUT_CONTRACT = (
    "Return ONLY a JSON array with each event having these properties: "
    "title (string), description (string, keep it brief under 150 characters), "
    "location (string), date (string in Month Day, Year format), "
    f"category (string - use one of these categories: {CATEGORY_LABELS}), "
    "address (string), and url (string with a valid URL to the official event page or ticket page). "
    "Do not include any explanatory text, just the JSON array. "
    f"Ensure all events are in the future. Limit to {MAX_EVENTS} events maximum."
)


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str

    def combined(self) -> str:
        """Single-turn form for providers without a system role."""
        return f"{self.system}\n\n{self.user}"


def _clean_location(location: str) -> str:
    return re.sub(r"[^\w\s,.'-]", "", location).strip()


def _clean_category(category: EventCategory) -> str:
    return re.sub(r"[^\w\s&]", "", category.value).strip()


def time_frame_for(window: DateWindow) -> str:
    return TIME_FRAMES.get(window, DEFAULT_TIME_FRAME)


def build_prompt(query: SearchQuery, today: Optional[date] = None) -> Prompt:
    """Build the system and user messages for ``query``."""
    today = today or date.today()
    today_text = today.strftime("%B %d, %Y").replace(" 0", " ")
    location = _clean_location(query.location) or query.location.strip()
    category = _clean_category(query.category)
    time_frame = time_frame_for(query.date_window)

    search_line = (
        f"Find CURRENT and UPCOMING events happening near {location} "
        f"within {query.radius_miles} miles {time_frame}."
    )

    user = search_line + " "
    if query.category is not EventCategory.ALL:
        user += f"***Only return {category} events or activities.*** "
    user += (
        "Search the internet for the most recent information about these events. "
        f"ONLY include events that are happening in the future (after today's date which is {today_text}). "
        "DO NOT include any events from past years or months. "
        + OUTPUT_CONTRACT
    )

    system = (
        "You are a helpful assistant that provides information about local activities and events "
        "in JSON format. Always respond with valid JSON only. For each event, include a valid URL "
        "to the official event page or ticket page. "
        f"Categorize each event using one of these categories: {CATEGORY_LABELS}. "
        "Keep descriptions brief.\n"
        f"Today's date is {today_text}. {search_line} "
    )
    if query.category is not EventCategory.ALL:
        system += f"Focus on {category} events. "
    system += (
        "ONLY include events that are happening in the future (after today's date). "
        "DO NOT include any events from past years or months. "
        + OUTPUT_CONTRACT
    )

    return Prompt(system=system, user=user)
