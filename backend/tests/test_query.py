from datetime import date

import pytest

from finder.errors import QueryValidationError
from finder.models import DateWindow, EventCategory, Provider, SearchQuery, SortOrder
from finder.query import parse_radius, parse_search_request, parse_sort_order
from finder.query_builder import MAX_EVENTS, build_prompt


def _payload(**overrides):
    payload = {
        "location": "Austin, TX",
        "radius": "25",
        "category": "music",
        "eventDate": "this weekend",
        "apiChoice": "perplexity",
    }
    payload.update(overrides)
    return payload


def test_valid_payload_builds_query():
    query = parse_search_request(_payload())

    assert query == SearchQuery(
        location="Austin, TX",
        radius_miles=25,
        category=EventCategory.MUSIC,
        date_window=DateWindow.THIS_WEEKEND,
        provider=Provider.PERPLEXITY,
    )


def test_missing_filters_default_to_all():
    query = parse_search_request(_payload(category=None, eventDate=""))

    assert query.category is EventCategory.ALL
    assert query.date_window is DateWindow.ALL


def test_location_is_trimmed():
    assert parse_search_request(_payload(location="  10001 ")).location == "10001"


@pytest.mark.parametrize("location", [None, "", "   ", 12345, "x" * 101])
def test_invalid_location_is_rejected(location):
    with pytest.raises(QueryValidationError) as excinfo:
        parse_search_request(_payload(location=location))

    assert excinfo.value.field == "location"


@pytest.mark.parametrize("radius", [0, 501, "abc", None, True, "-5", float("nan")])
def test_invalid_radius_is_rejected(radius):
    with pytest.raises(QueryValidationError) as excinfo:
        parse_search_request(_payload(radius=radius))

    assert excinfo.value.field == "radius"
    assert "between 1 and 500" in excinfo.value.message


@pytest.mark.parametrize("radius, expected", [(1, 1), (500, 500), ("25 miles", 25), (12.9, 12), (" 40", 40)])
def test_parse_radius(radius, expected):
    assert parse_radius(radius) == expected


def test_unknown_category_is_rejected():
    with pytest.raises(QueryValidationError) as excinfo:
        parse_search_request(_payload(category="karaoke"))

    assert excinfo.value.field == "category"


def test_unknown_date_window_is_rejected():
    with pytest.raises(QueryValidationError) as excinfo:
        parse_search_request(_payload(eventDate="someday"))

    assert excinfo.value.field == "eventDate"


@pytest.mark.parametrize("provider", [None, "", "openai", "Gemini"])
def test_unknown_provider_is_rejected(provider):
    with pytest.raises(QueryValidationError) as excinfo:
        parse_search_request(_payload(apiChoice=provider))

    assert "Perplexity or Gemini" in excinfo.value.message


def test_non_object_body_is_rejected():
    with pytest.raises(QueryValidationError):
        parse_search_request(["Austin"])


def test_parse_sort_order():
    assert parse_sort_order("future") is SortOrder.FUTURE
    with pytest.raises(QueryValidationError):
        parse_sort_order("random")


def test_request_body_round_trips_through_validation():
    query = parse_search_request(_payload(apiChoice="gemini"))

    assert parse_search_request(query.to_request_body()) == query


def test_prompt_carries_every_search_parameter():
    query = parse_search_request(_payload())

    prompt = build_prompt(query, today=date(2025, 6, 5))

    assert "Austin, TX" in prompt.user
    assert "within 25 miles" in prompt.user
    assert "this weekend" in prompt.user
    assert "Only return music events" in prompt.user
    assert "June 5, 2025" in prompt.system
    assert f"Limit to {MAX_EVENTS} events maximum" in prompt.user
    assert "Focus on music events" in prompt.system


def test_prompt_for_all_categories_has_no_category_restriction():
    query = parse_search_request(_payload(category="all", eventDate="this month"))

    prompt = build_prompt(query, today=date(2025, 6, 5))

    assert "Only return" not in prompt.user
    assert "this month (within the next 30 days)" in prompt.user


def test_prompt_without_date_window_uses_next_30_days():
    query = parse_search_request(_payload(eventDate="all"))

    assert "in the next 30 days" in build_prompt(query, today=date(2025, 6, 5)).user


def test_prompt_strips_markup_from_location():
    query = parse_search_request(_payload(location="Austin<script>"))

    prompt = build_prompt(query, today=date(2025, 6, 5))

    assert "<script>" not in prompt.user
    assert "Austinscript" in prompt.user


def test_combined_prompt_holds_both_messages():
    prompt = build_prompt(parse_search_request(_payload()), today=date(2025, 6, 5))

    assert prompt.combined().startswith(prompt.system)
    assert prompt.combined().endswith(prompt.user)
