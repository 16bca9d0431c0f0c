from datetime import date

from finder.filtering import (
    CATEGORY_KEYWORDS,
    DISPLAY_LIMIT,
    apply_filters,
    date_window_bounds,
    matches_category,
    sort_events,
)
from finder.models import DateWindow, Event, EventCategory, SortOrder
from finder.sanitizer import placeholder_events

WEDNESDAY = date(2025, 6, 11)


def _event(title, resolved_date=None, category="Music"):
    return Event(
        title=title,
        date_text=resolved_date.isoformat() if resolved_date else "Date TBD",
        location="Austin, TX",
        category=category,
        resolved_date=resolved_date,
    )


def test_recent_sorts_ascending_with_undated_last():
    events = [_event("12", date(2025, 6, 12)), _event("11", date(2025, 6, 11)), _event("tbd")]

    assert [event.title for event in sort_events(events, SortOrder.RECENT)] == ["11", "12", "tbd"]


def test_future_sorts_descending_with_undated_last():
    events = [_event("11", date(2025, 6, 11)), _event("tbd"), _event("12", date(2025, 6, 12))]

    assert [event.title for event in sort_events(events, SortOrder.FUTURE)] == ["12", "11", "tbd"]


def test_undated_events_keep_their_order():
    events = [_event("first"), _event("dated", date(2025, 6, 20)), _event("second")]

    assert [event.title for event in sort_events(iter(events), SortOrder.RECENT)] == [
        "dated",
        "first",
        "second",
    ]


def test_category_keyword_groups():
    assert matches_category(_event("a", category="Arts &amp; Culture"), EventCategory.ARTS)
    assert matches_category(_event("b", category="Museum Night"), EventCategory.ARTS)
    assert not matches_category(_event("c", category="Music"), EventCategory.ARTS)
    assert matches_category(_event("d", category="Live Concert"), EventCategory.MUSIC)
    assert matches_category(_event("e", category="anything"), EventCategory.ALL)


def test_category_without_keyword_group_uses_substring(monkeypatch):
    monkeypatch.delitem(CATEGORY_KEYWORDS, EventCategory.TECH)

    assert matches_category(_event("a", category="Tech Meetup"), EventCategory.TECH)
    assert not matches_category(_event("b", category="Hackathon"), EventCategory.TECH)


def test_placeholders_survive_category_filter():
    display = apply_filters(placeholder_events(), category=EventCategory.SPORTS, today=WEDNESDAY)

    assert display.total == 2


def test_window_bounds_midweek():
    assert date_window_bounds(DateWindow.TODAY, WEDNESDAY) == (WEDNESDAY, WEDNESDAY)
    assert date_window_bounds(DateWindow.TOMORROW, WEDNESDAY) == (date(2025, 6, 12), date(2025, 6, 12))
    assert date_window_bounds(DateWindow.THIS_WEEKEND, WEDNESDAY) == (date(2025, 6, 14), date(2025, 6, 15))
    assert date_window_bounds(DateWindow.NEXT_WEEK, WEDNESDAY) == (date(2025, 6, 16), date(2025, 6, 22))
    assert date_window_bounds(DateWindow.THIS_MONTH, WEDNESDAY) == (WEDNESDAY, date(2025, 6, 30))
    assert date_window_bounds(DateWindow.ALL, WEDNESDAY) is None


def test_weekend_on_sunday_is_only_today():
    sunday = date(2025, 6, 15)

    assert date_window_bounds(DateWindow.THIS_WEEKEND, sunday) == (sunday, sunday)


def test_next_week_from_sunday_starts_next_day():
    sunday = date(2025, 6, 15)

    assert date_window_bounds(DateWindow.NEXT_WEEK, sunday) == (date(2025, 6, 16), date(2025, 6, 22))


def test_date_window_filter_keeps_undated():
    events = [
        _event("sat", date(2025, 6, 14)),
        _event("mon", date(2025, 6, 16)),
        _event("tbd"),
    ]

    display = apply_filters(events, date_window=DateWindow.THIS_WEEKEND, today=WEDNESDAY)

    assert [event.title for event in display.events] == ["sat", "tbd"]


def test_display_is_capped_with_notice():
    events = [_event(str(index)) for index in range(60)]

    display = apply_filters(events, today=WEDNESDAY)

    assert len(display.events) == DISPLAY_LIMIT
    assert display.total == 60
    assert display.truncated is True
    assert display.notice == "Showing 50 of 60 events."


def test_small_result_is_not_truncated():
    display = apply_filters([_event("a")], today=WEDNESDAY)

    assert display.truncated is False
    assert display.notice is None
    assert display.total == 1
