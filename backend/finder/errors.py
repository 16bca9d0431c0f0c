"""
Error taxonomy for the event finder.

Server-side errors carry the HTTP status they map to and a message that is
safe to show to the client. Internal detail (upstream status codes, response
bodies) stays on the exception for logging only.
"""

from __future__ import annotations

from typing import Optional


class EventFinderError(Exception):
    """Base class for all event finder errors."""

    status_code = 500
    public_message = "An error occurred while processing your request."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class QueryValidationError(EventFinderError):
    """A search request failed one of the input rules."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.public_message = message


class ProviderNotConfiguredError(EventFinderError):
    """The selected provider has no API key configured."""

    status_code = 500
    public_message = "The selected event service is not configured on the server."

    def __init__(self, provider: str):
        super().__init__(f"{provider} API key is missing")
        self.provider = provider


class UpstreamTimeoutError(EventFinderError):
    """The provider did not answer before the deadline."""

    status_code = 504
    public_message = "The event service took too long to respond. Please try again later."

    def __init__(self, provider: str, timeout_seconds: float):
        super().__init__(f"Request to {provider} timed out after {timeout_seconds:.0f}s")
        self.provider = provider
        self.timeout_seconds = timeout_seconds


class UpstreamProtocolError(EventFinderError):
    """The provider answered with an error status or an unusable payload."""

    status_code = 502

    def __init__(
        self,
        provider: str,
        detail: str,
        status: Optional[int] = None,
        body: str = "",
    ):
        super().__init__(f"{provider} request failed: {detail}")
        self.provider = provider
        self.status = status
        self.body = body
        self.public_message = f"Failed to fetch events from {provider.capitalize()}"


class ExtractionFailure(EventFinderError):
    """No event object could be recovered from the provider text."""

    public_message = "Could not parse events data. Please try again."
