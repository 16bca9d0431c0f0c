from datetime import date

import pytest

from finder.filtering import apply_filters
from finder.models import DisplayList, Event
from finder.pipeline import NO_EVENTS_NOTICE, build_results, content_from_envelope
from finder.render import (
    NO_MATCHES_MESSAGE,
    category_class,
    format_event_date,
    render_display,
    render_event_card,
)
from finder.sanitizer import sanitize_event

TODAY = date(2025, 6, 10)


def test_unparseable_reply_yields_placeholders_and_notice():
    results = build_results("I'm sorry, I couldn't find anything.", TODAY)

    assert results.notice == "Could not parse events data. Please try again."
    assert len(results.events) == 2
    assert all(event.is_placeholder for event in results.events)


def test_empty_array_yields_no_events_notice():
    results = build_results("[]", TODAY)

    assert results.notice == NO_EVENTS_NOTICE
    assert all(event.is_placeholder for event in results.events)


def test_only_past_events_yield_no_events_notice():
    results = build_results('[{"title": "Old", "date": "June 1, 2025"}]', TODAY)

    assert results.notice == NO_EVENTS_NOTICE
    assert results.candidates_found == 1
    assert results.events_dropped_stale == 1


def test_upcoming_events_pass_through():
    results = build_results('[{"title": "New", "date": "June 11, 2025"}]', TODAY)

    assert results.notice is None
    assert [event.title for event in results.events] == ["New"]


def test_content_from_envelope():
    assert content_from_envelope({"choices": [{"message": {"content": "[]"}}]}) == "[]"


@pytest.mark.parametrize(
    "payload",
    [None, [], {}, {"choices": []}, {"choices": [{"message": {}}]}, {"choices": [{"message": {"content": 5}}]}],
)
def test_bad_envelope_raises(payload):
    with pytest.raises(ValueError):
        content_from_envelope(payload)


def test_format_event_date_with_time():
    event = sanitize_event({"title": "A", "date": "June 14, 2025", "time": "7 PM"}, TODAY)

    assert format_event_date(event) == "Saturday, June 14, 2025 at 7 PM"


def test_format_event_date_falls_back_to_text():
    event = sanitize_event({"title": "A", "date": "Every Friday"}, TODAY)

    assert format_event_date(event) == "Every Friday"


def test_category_class_is_slugged():
    assert category_class("Arts &amp; Culture") == "cat-artsampculture"


def test_card_contains_escaped_fields_and_safe_link():
    event = sanitize_event(
        {"title": "<b>Jazz</b>", "date": "June 14, 2025", "url": "https://example.com/jazz"},
        TODAY,
    )

    card = render_event_card(event)

    assert "&lt;b&gt;Jazz&lt;/b&gt;" in card
    assert "<b>" not in card
    assert 'href="https://example.com/jazz"' in card
    assert 'rel="noopener noreferrer"' in card


def test_card_without_url_has_no_link():
    event = sanitize_event({"title": "A", "url": "javascript:alert(1)"}, TODAY)

    assert "href" not in render_event_card(event)


def test_render_empty_display_shows_no_matches():
    html_text = render_display(DisplayList())

    assert NO_MATCHES_MESSAGE in html_text


def test_render_truncated_display_shows_notice():
    events = [Event(title=str(index), date_text="TBD", location="X", category="Music") for index in range(55)]

    html_text = render_display(apply_filters(events, today=TODAY), notice="<heads up>")

    assert "Showing 50 of 55 events." in html_text
    assert "&lt;heads up&gt;" in html_text
    assert html_text.count('class="event-card"') == 50
