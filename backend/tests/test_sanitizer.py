from datetime import date

from finder.sanitizer import (
    DEFAULT_CATEGORY,
    DEFAULT_DATE,
    DEFAULT_LOCATION,
    DEFAULT_TITLE,
    MAX_TEXT_LENGTHS,
    Defaulted,
    Present,
    build_event,
    decode_first,
    decode_text,
    placeholder_events,
    sanitize_batch,
    sanitize_event,
    sanitize_url,
)

TODAY = date(2025, 6, 10)


def _candidate(**overrides):
    candidate = {
        "title": "Jazz in the Park",
        "description": "Free open-air concert",
        "location": "Zilker Park",
        "address": "2207 Lou Neff Rd, Austin, TX",
        "date": "June 14, 2025",
        "time": "7:00 PM",
        "category": "Music",
        "url": "https://example.com/events/jazz",
    }
    candidate.update(overrides)
    return candidate


def test_complete_candidate_is_kept_with_resolved_date():
    event = sanitize_event(_candidate(), TODAY)

    assert event is not None
    assert event.title == "Jazz in the Park"
    assert event.resolved_date == date(2025, 6, 14)
    assert event.url == "https://example.com/events/jazz"
    assert event.is_placeholder is False


def test_javascript_url_is_removed():
    event = sanitize_event(_candidate(url="javascript:alert(1)"), TODAY)

    assert event.url is None


def test_markup_in_title_is_escaped():
    event = sanitize_event(_candidate(title="<script>alert('x')</script>"), TODAY)

    assert "<" not in event.title
    assert ">" not in event.title
    assert event.title.startswith("&lt;script&gt;")


def test_bare_host_gets_https_prefix():
    assert sanitize_url("example.com/events/1") == "https://example.com/events/1"


def test_url_query_is_escaped():
    assert sanitize_url("https://a.com/?x=1&y=2") == "https://a.com/?x=1&amp;y=2"


def test_urls_rejected():
    assert sanitize_url("ftp://files.example.com/x") is None
    assert sanitize_url("data:text/html,hi") is None
    assert sanitize_url("https://not a url.com") is None
    assert sanitize_url("") is None
    assert sanitize_url(None) is None
    assert sanitize_url("https://intranet/page") is None


def test_missing_fields_take_defaults():
    event = sanitize_event({}, TODAY)

    assert event.title == DEFAULT_TITLE
    assert event.date_text == DEFAULT_DATE
    assert event.location == DEFAULT_LOCATION
    assert event.category == DEFAULT_CATEGORY
    assert event.description == ""
    assert event.address == ""
    assert event.url is None
    assert event.resolved_date is None


def test_non_object_candidate_becomes_default_event():
    event = sanitize_event("just a string", TODAY)

    assert event.title == DEFAULT_TITLE


def test_decode_text_distinguishes_present_and_defaulted():
    assert decode_text("  Jazz   Night ", "X") == Present("Jazz Night")
    assert decode_text(5, "X") == Defaulted("X")
    assert decode_text("   ", "X") == Defaulted("X")


def test_decode_first_falls_back_to_alternate_key():
    assert decode_first({"name": "Jazz"}, ("title", "name"), DEFAULT_TITLE) == Present("Jazz")
    assert decode_first({"title": ""}, ("title", "name"), DEFAULT_TITLE) == Defaulted(DEFAULT_TITLE)


def test_venue_used_when_location_missing():
    candidate = _candidate(venue="The Mohawk")
    del candidate["location"]

    assert sanitize_event(candidate, TODAY).location == "The Mohawk"


def test_long_text_is_truncated():
    event = sanitize_event(_candidate(title="x" * 1000), TODAY)

    assert len(event.title) <= MAX_TEXT_LENGTHS["title"]
    assert event.title.endswith("…")


def test_date_is_resolved_before_escaping():
    event = build_event(_candidate(date="June 12 & 13, 2025"), TODAY)

    assert event.date_text == "June 12 &amp; 13, 2025"
    assert event.resolved_date == date(2025, 6, 12)


def test_yesterday_is_dropped():
    assert sanitize_event(_candidate(date="2025-06-09"), TODAY) is None


def test_today_is_kept():
    event = sanitize_event(_candidate(date="2025-06-10"), TODAY)

    assert event is not None
    assert event.resolved_date == TODAY


def test_unparseable_date_is_kept():
    event = sanitize_event(_candidate(date="Every other Friday"), TODAY)

    assert event is not None
    assert event.resolved_date is None
    assert event.date_text == "Every other Friday"


def test_batch_drops_stale_and_keeps_order():
    candidates = [
        _candidate(title="B", date="June 20, 2025"),
        _candidate(title="Old", date="May 1, 2025"),
        _candidate(title="A", date="June 11, 2025"),
    ]

    events = sanitize_batch(candidates, TODAY)

    assert [event.title for event in events] == ["B", "A"]


def test_placeholders_are_flagged():
    events = placeholder_events()

    assert len(events) == 2
    assert all(event.is_placeholder for event in events)
    assert all(event.resolved_date is None for event in events)
