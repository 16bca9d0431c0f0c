"""
Resilient JSON Extraction

Recovers event objects from provider replies that are supposed to be a JSON
array but often arrive wrapped in markdown fences, cut off mid-string, or
followed by commentary.

Stages, each tried only when the previous one produced nothing:
1. Strip code fences and parse.
2. Trim leading/trailing prose to the outermost brackets and parse.
3. Locate the array of objects with a bracket counter, repair unterminated
   ``"url"`` values and parse.
4. Salvage every ``{"title": ...}`` object on its own, dropping the ones that
   still fail.

The repairs only ever touch ``"url"`` values and bracket boundaries.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from .errors import ExtractionFailure
from .logging_utils import excerpt, get_logger, is_debug

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*|\s*```")
_ARRAY_START_RE = re.compile(r"\[\s*\{")
_GREEDY_ARRAY_RE = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)
_OBJECT_START_RE = re.compile(r'\{\s*"title"\s*:')
_URL_VALUE_RE = re.compile(r'"url"\s*:\s*"')
_VALUE_END_RE = re.compile(r"\s*(?:[,}\]]|$)")

# Preferred wrapper keys when a provider returns {"events": [...]}
_WRAPPER_KEYS = ("events", "results", "items", "data")


def _loads(text: str) -> Any:
    try:
        return json.loads(text, strict=False)
    except (ValueError, RecursionError):
        return None


def _is_object_list(value: Any) -> bool:
    return isinstance(value, list) and any(isinstance(item, dict) for item in value)


def _as_candidates(data: Any) -> Optional[list[dict[str, Any]]]:
    """Normalize a decoded JSON value into a list of raw objects."""
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        for key in _WRAPPER_KEYS:
            if _is_object_list(data.get(key)):
                return [item for item in data[key] if isinstance(item, dict)]
        for value in data.values():
            if _is_object_list(value):
                return [item for item in value if isinstance(item, dict)]
        if "title" in data:
            return [data]
    return None


def _parse_candidates(text: str) -> Optional[list[dict[str, Any]]]:
    if not text:
        return None
    return _as_candidates(_loads(text))


def _first_index(text: str, start: int, chars: str) -> int:
    positions = [pos for pos in (text.find(char, start) for char in chars) if pos != -1]
    return min(positions) if positions else len(text)


def _scan_balanced(text: str, start: int, open_char: str, close_char: str) -> Optional[int]:
    """Return the index just past the bracket closing ``text[start]``."""
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def trim_to_json_bounds(text: str) -> str:
    """Drop prose before the first ``[``/``{`` and after the last ``]``/``}``."""
    trimmed = text
    if not trimmed.startswith(("[", "{")):
        starts = [pos for pos in (trimmed.find("["), trimmed.find("{")) if pos != -1]
        if starts:
            trimmed = trimmed[min(starts):]
    if not trimmed.endswith(("]", "}")):
        end = max(trimmed.rfind("]"), trimmed.rfind("}"))
        if end != -1:
            trimmed = trimmed[: end + 1]
    return trimmed


def repair_unterminated_urls(text: str) -> str:
    """
    Close ``"url": "http...`` values that are missing their closing quote.

    A value is terminated when its next quote sits on the same line and is
    followed by ``,``, ``}``, ``]`` or the end of the text. Otherwise the
    quote is inserted at the next ``,``, ``}`` or line break.
    """
    pieces: list[str] = []
    position = 0
    for match in _URL_VALUE_RE.finditer(text):
        start = match.end()
        if start < position:
            continue
        quote = text.find('"', start, _first_index(text, start, "\r\n"))
        if quote != -1 and _VALUE_END_RE.match(text, quote + 1):
            continue
        stop = _first_index(text, start, ",}\r\n")
        pieces.append(text[position:start])
        pieces.append(text[start:stop].rstrip() + '"')
        position = stop
    if not pieces:
        return text
    pieces.append(text[position:])
    return "".join(pieces)


def find_array_candidates(text: str) -> list[str]:
    """Substrings shaped like a JSON array of objects, most specific first."""
    candidates: list[str] = []
    match = _ARRAY_START_RE.search(text)
    if match:
        end = _scan_balanced(text, match.start(), "[", "]")
        candidates.append(text[match.start():end] if end else text[match.start():])
    greedy = _GREEDY_ARRAY_RE.search(text)
    if greedy and greedy.group(0) not in candidates:
        candidates.append(greedy.group(0))
    return candidates


def split_object_candidates(text: str) -> list[str]:
    """
    Cut ``text`` into one substring per ``{"title": ...}`` object.

    Each candidate ends at its balancing ``}``, and ``{"title": ...}`` objects
    nested inside it are not split out. One that never closes runs to the
    start of the next candidate and is force-closed after URL repair.
    """
    starts = [match.start() for match in _OBJECT_START_RE.finditer(text)]
    candidates: list[str] = []
    consumed = 0
    for index, start in enumerate(starts):
        if start < consumed:
            continue
        bound = starts[index + 1] if index + 1 < len(starts) else len(text)
        end = _scan_balanced(text[:bound], start, "{", "}")
        if end is None and bound < len(text):
            # Next start may be a nested object; accept the wider span only if it decodes.
            end = _scan_balanced(text, start, "{", "}")
            if end is not None and not isinstance(_loads(repair_unterminated_urls(text[start:end])), dict):
                end = None
        if end is not None:
            candidates.append(repair_unterminated_urls(text[start:end]))
            consumed = end
            continue
        body = text[start:bound].rstrip().rstrip(",]").rstrip()
        candidates.append(repair_unterminated_urls(body) + "}")
    return candidates


def salvage_objects(text: str) -> list[dict[str, Any]]:
    """Parse each event object on its own and keep the ones that decode."""
    salvaged: list[dict[str, Any]] = []
    for candidate in split_object_candidates(text):
        data = _loads(candidate)
        if isinstance(data, dict):
            salvaged.append(data)
        else:
            logger.debug("Dropping unparseable event candidate: %.120s", candidate)
    return salvaged


def extract_events(text: Any) -> list[dict[str, Any]]:
    """
    Recover raw event objects from a provider reply.

    Never raises; returns an empty list when nothing can be recovered.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    cleaned = strip_code_fences(text)
    events = _parse_candidates(cleaned)
    if events is not None:
        logger.debug("Parsed %s events directly", len(events))
        return events

    trimmed = trim_to_json_bounds(cleaned)
    if trimmed != cleaned:
        events = _parse_candidates(trimmed)
        if events is not None:
            logger.debug("Parsed %s events after trimming surrounding text", len(events))
            return events

    for candidate in find_array_candidates(cleaned):
        events = _parse_candidates(repair_unterminated_urls(candidate))
        if events is not None:
            logger.debug("Parsed %s events from repaired array", len(events))
            return events

    events = salvage_objects(cleaned)
    if events:
        logger.info("Salvaged %s event objects from malformed JSON", len(events))
    else:
        logger.warning("Could not recover any event objects (%s chars of text)", len(text))
        if is_debug():
            logger.debug("Unrecoverable reply: %s", excerpt(text))
    return events


def require_candidates(text: Any) -> list[dict[str, Any]]:
    """
    Like ``extract_events`` but raises ``ExtractionFailure`` when the text
    held nothing recoverable. A well-formed empty array is not a failure.
    """
    events = extract_events(text)
    if events:
        return events
    if isinstance(text, str) and _parse_candidates(strip_code_fences(text)) == []:
        return events
    raise ExtractionFailure()
