"""
Client side of the event finder.

``EventsApiClient`` talks to ``POST /api/events``; ``SearchController`` owns
the search state and applies responses only when they belong to the most
recently issued search, so a slow, superseded response can never overwrite
newer results.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional

import httpx

from .errors import EventFinderError, QueryValidationError
from .filtering import apply_filters
from .logging_utils import get_logger
from .models import DateWindow, DisplayList, EventCategory, SearchQuery, SearchResults, SortOrder
from .pipeline import build_results, content_from_envelope
from .query import parse_search_request, parse_sort_order

logger = get_logger(__name__)

CLIENT_TIMEOUT_SECONDS = 60.0
DEFAULT_BASE_URL = "http://localhost:3000"
GENERIC_FETCH_ERROR = "An error occurred while fetching events. Please try again."
TIMEOUT_ERROR = "The search took too long. Please try again later."


class ApiError(EventFinderError):
    """A search request failed; ``public_message`` is what the user sees."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.public_message = message
        self.status_code = status_code or 500


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return GENERIC_FETCH_ERROR
    if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"]:
        return payload["error"]
    return "Failed to fetch events. Please try again."


class EventsApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = CLIENT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self.transport,
        )

    async def fetch_content(self, query: SearchQuery) -> str:
        """Run one search and return the provider's reply text."""
        try:
            async with self._client() as client:
                response = await client.post("/api/events", json=query.to_request_body())
        except httpx.TimeoutException as exc:
            raise ApiError(TIMEOUT_ERROR, 504) from exc
        except httpx.HTTPError as exc:
            logger.warning("Search request failed: %s", exc)
            raise ApiError(GENERIC_FETCH_ERROR) from exc

        if response.status_code >= 400:
            raise ApiError(_error_message(response), response.status_code)

        try:
            return content_from_envelope(response.json())
        except ValueError as exc:
            raise ApiError("Invalid response format from the API", response.status_code) from exc

    async def health(self) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.get("/api/health")
        response.raise_for_status()
        return response.json()


class SearchController:
    """
    Owns ``last_request_id`` and ``current_results``.

    Every search takes the next request id. A response, success or failure,
    is applied only while its id is still the latest one issued; otherwise it
    is dropped.
    """

    def __init__(
        self,
        client: EventsApiClient,
        sort_order: SortOrder = SortOrder.RECENT,
        clock: Callable[[], date] = date.today,
    ):
        self.client = client
        self.clock = clock
        self.category = EventCategory.ALL
        self.date_window = DateWindow.ALL
        self.sort_order = sort_order
        self.last_request_id = 0
        self.current_results: Optional[SearchResults] = None
        self.display = DisplayList()
        self.error_message: Optional[str] = None
        self.loading = False

    def is_current(self, request_id: int) -> bool:
        return request_id == self.last_request_id

    async def search(self, query: SearchQuery) -> bool:
        """
        Run a validated search. Returns True when its response was applied,
        False when a newer search superseded it.
        """
        self.last_request_id += 1
        request_id = self.last_request_id
        self.category = query.category
        self.date_window = query.date_window
        self.error_message = None
        self.loading = True

        try:
            content = await self.client.fetch_content(query)
        except EventFinderError as exc:
            return self._apply_failure(request_id, exc.public_message)
        return self._apply_success(request_id, content)

    async def search_from_inputs(
        self,
        location: Any,
        radius: Any,
        category: Any = "all",
        event_date: Any = "all",
        provider: Any = None,
        sort_order: Any = None,
    ) -> bool:
        """Validate raw form values, then search. Invalid input never leaves the client."""
        try:
            query = parse_search_request(
                {
                    "location": location,
                    "radius": radius,
                    "category": category,
                    "eventDate": event_date,
                    "apiChoice": provider,
                }
            )
            if sort_order is not None:
                self.sort_order = parse_sort_order(sort_order)
        except QueryValidationError as exc:
            self.error_message = exc.message
            return False
        return await self.search(query)

    def set_filters(
        self,
        category: Optional[EventCategory] = None,
        date_window: Optional[DateWindow] = None,
        sort_order: Optional[SortOrder] = None,
    ) -> DisplayList:
        """Change display filters and re-apply them to the current results."""
        if category is not None:
            self.category = category
        if date_window is not None:
            self.date_window = date_window
        if sort_order is not None:
            self.sort_order = sort_order
        self._refresh()
        return self.display

    def _apply_success(self, request_id: int, content: str) -> bool:
        if not self.is_current(request_id):
            logger.debug("Discarding stale response %s (latest is %s)", request_id, self.last_request_id)
            return False
        self.current_results = build_results(content, self.clock())
        self.loading = False
        self._refresh()
        return True

    def _apply_failure(self, request_id: int, message: str) -> bool:
        if not self.is_current(request_id):
            logger.debug("Discarding stale error %s (latest is %s)", request_id, self.last_request_id)
            return False
        self.loading = False
        self.error_message = message
        self.current_results = None
        self.display = DisplayList()
        return True

    def _refresh(self) -> None:
        if self.current_results is None:
            self.display = DisplayList()
            return
        self.display = apply_filters(
            self.current_results.events,
            category=self.category,
            date_window=self.date_window,
            sort_order=self.sort_order,
            today=self.clock(),
        )
