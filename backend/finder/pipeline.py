"""
Result Pipeline

Turns one provider reply into displayable search results:
1. Extraction (recover raw event objects from the reply text)
2. Sanitization (escape, validate links, normalize dates)
3. Freshness (drop events dated before today)
4. Fallback (placeholder events when nothing is left)

Display filtering and sorting happen afterwards in ``filtering.apply_filters``
so the user can change filters without a new search.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Union

from .dates import start_of_day
from .errors import ExtractionFailure
from .json_recovery import require_candidates
from .logging_utils import get_logger
from .models import SearchResults
from .sanitizer import placeholder_events, sanitize_batch

logger = get_logger(__name__)

NO_EVENTS_NOTICE = "No events found. Try a different location or filters."


def content_from_envelope(payload: Any) -> str:
    """Read ``choices[0].message.content`` from the canonical API envelope."""
    if not isinstance(payload, dict):
        raise ValueError("Invalid response format from the API")
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise ValueError("Invalid response format from the API")
    message = choices[0].get("message")
    if not isinstance(message, dict) or not isinstance(message.get("content"), str):
        raise ValueError("Invalid response format from the API")
    return message["content"]


def build_results(content: str, now: Union[date, datetime, None] = None) -> SearchResults:
    """Run extraction, sanitization and the freshness filter on one reply."""
    today = start_of_day(now)

    try:
        candidates = require_candidates(content)
    except ExtractionFailure as exc:
        logger.warning("Extraction failed: %s", exc.message)
        return SearchResults(events=placeholder_events(), notice=exc.message)

    events = sanitize_batch(candidates, today)
    dropped = len(candidates) - len(events)
    logger.info("Pipeline: %s candidates -> %s upcoming events", len(candidates), len(events))

    if not events:
        return SearchResults(
            events=placeholder_events(),
            notice=NO_EVENTS_NOTICE,
            candidates_found=len(candidates),
            events_dropped_stale=dropped,
        )

    return SearchResults(
        events=events,
        candidates_found=len(candidates),
        events_dropped_stale=dropped,
    )
