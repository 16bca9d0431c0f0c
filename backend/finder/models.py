"""
Pydantic Models for the Event Finder

Defines the search inputs, the sanitized event record and the result
containers passed between the pipeline stages.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventCategory(str, Enum):
    """Categories a search can be narrowed to."""
    ALL = "all"
    MUSIC = "music"
    SPORTS = "sports"
    ARTS = "arts"
    FOOD = "food"
    OUTDOOR = "outdoor"
    FAMILY = "family"
    COMEDY = "comedy"
    THEATER = "theater"
    FESTIVALS = "festivals"
    NIGHTLIFE = "nightlife"
    BUSINESS = "business"
    EDUCATION = "education"
    CHARITY = "charity"
    HEALTH = "health"
    TECH = "tech"


class DateWindow(str, Enum):
    """Relative time range used to narrow results."""
    ALL = "all"
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEKEND = "this weekend"
    NEXT_WEEK = "next week"
    THIS_MONTH = "this month"


class Provider(str, Enum):
    """Upstream text-completion services."""
    PERPLEXITY = "perplexity"
    GEMINI = "gemini"


class SortOrder(str, Enum):
    """Display order for dated events."""
    RECENT = "recent"
    FUTURE = "future"


class SearchQuery(BaseModel):
    """A fully validated search request."""
    model_config = ConfigDict(frozen=True)

    location: str = Field(..., min_length=1, max_length=100, description="City or zip code")
    radius_miles: int = Field(..., ge=1, le=500, description="Search radius in miles")
    category: EventCategory = Field(default=EventCategory.ALL)
    date_window: DateWindow = Field(default=DateWindow.ALL)
    provider: Provider = Field(..., description="Upstream provider serving the search")

    def to_request_body(self) -> dict:
        """Wire format understood by POST /api/events."""
        return {
            "location": self.location,
            "radius": self.radius_miles,
            "category": self.category.value,
            "eventDate": self.date_window.value,
            "apiChoice": self.provider.value,
        }


class Event(BaseModel):
    """A sanitized, display-ready event. Every text field is HTML-escaped."""
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Event title")
    date_text: str = Field(..., description="Date as reported by the provider")
    location: str = Field(..., description="Venue or area")
    address: str = Field(default="", description="Street address, may be empty")
    description: str = Field(default="", description="Short summary, may be empty")
    category: str = Field(..., description="Free-text category reported by the provider")
    time: str = Field(default="", description="Start time as reported, may be empty")
    url: Optional[str] = Field(None, description="Validated http(s) link, None when absent")
    resolved_date: Optional[date] = Field(None, description="Normalized calendar date")
    is_placeholder: bool = Field(default=False, description="True for 'no results' stand-ins")


class SearchResults(BaseModel):
    """Events produced from one provider reply, before display filtering."""
    events: list[Event] = Field(default_factory=list)
    notice: Optional[str] = None
    candidates_found: int = 0
    events_dropped_stale: int = 0


class DisplayList(BaseModel):
    """Filtered, sorted and capped events ready for rendering."""
    events: list[Event] = Field(default_factory=list)
    total: int = 0
    truncated: bool = False
    notice: Optional[str] = None
