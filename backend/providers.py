"""
Provider adapters for the upstream text-completion services.

Each adapter sends the search prompt to one provider and returns the reply
text in a ``ProviderReply``; the API wraps it in the canonical
``{"choices": [{"message": {"content": ...}}]}`` envelope no matter which
provider served the request. Every call uses its own short-lived HTTP client
that is closed when the call ends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError, OpenAI

from finder.errors import ProviderNotConfiguredError, UpstreamProtocolError, UpstreamTimeoutError
from finder.logging_utils import excerpt, get_logger
from finder.models import Provider
from finder.query_builder import Prompt
from settings import Settings

logger = get_logger(__name__)

PERPLEXITY_BASE_URL = "https://api.perplexity.ai"
GEMINI_ENDPOINT_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_DEBUG_BODY_CHARS = 500

GEMINI_GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.2,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 8192,
}

GEMINI_SAFETY_SETTINGS: list[dict[str, str]] = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


@dataclass(frozen=True)
class ProviderReply:
    content: str

    def to_envelope(self) -> dict[str, Any]:
        return {"choices": [{"message": {"content": self.content}}]}


class ProviderAdapter(ABC):
    """One upstream provider. Subclasses implement ``_complete``."""

    provider: Provider

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout_seconds: float,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    @property
    def name(self) -> str:
        return self.provider.value

    @classmethod
    @abstractmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None
    ) -> "ProviderAdapter":
        ...

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, prompt: Prompt) -> ProviderReply:
        if not self.is_configured():
            raise ProviderNotConfiguredError(self.name)
        content = self._complete(prompt)
        logger.info("%s returned %s chars", self.name, len(content))
        return ProviderReply(content=content)

    @abstractmethod
    def _complete(self, prompt: Prompt) -> str:
        ...


class PerplexityAdapter(ProviderAdapter):
    """Perplexity chat completions through its OpenAI-compatible API."""

    provider = Provider.PERPLEXITY

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        return cls(
            api_key=settings.perplexity_api_key,
            model=settings.perplexity_model,
            timeout_seconds=settings.perplexity_timeout_seconds,
            transport=transport,
        )

    def _complete(self, prompt: Prompt) -> str:
        http_client = httpx.Client(transport=self.transport) if self.transport else None
        try:
            with OpenAI(
                api_key=self.api_key,
                base_url=PERPLEXITY_BASE_URL,
                timeout=self.timeout_seconds,
                max_retries=0,
                http_client=http_client,
            ) as client:
                completion = client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": prompt.system},
                        {"role": "user", "content": prompt.user},
                    ],
                )
        except APITimeoutError as exc:
            raise UpstreamTimeoutError(self.name, self.timeout_seconds) from exc
        except APIStatusError as exc:
            body = excerpt(exc.response.text, DEFAULT_DEBUG_BODY_CHARS)
            logger.error("Perplexity API error %s: %s", exc.status_code, body)
            raise UpstreamProtocolError(
                self.name, f"status {exc.status_code}", status=exc.status_code, body=body
            ) from exc
        except APIConnectionError as exc:
            logger.error("Perplexity connection error: %s", exc)
            raise UpstreamProtocolError(self.name, "connection error") from exc
        except APIError as exc:
            logger.error("Perplexity returned an unusable response: %s", exc)
            raise UpstreamProtocolError(self.name, "unusable response") from exc
        finally:
            if http_client is not None:
                http_client.close()

        choices = getattr(completion, "choices", None)
        if not choices or not isinstance(choices[0].message.content, str):
            raise UpstreamProtocolError(self.name, "response has no message content")
        return choices[0].message.content


def _extract_text_from_payload(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise ValueError("Gemini response is not a JSON object")
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise ValueError("Gemini response does not contain candidates")

    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") if isinstance(first.get("content"), dict) else {}
    parts = content.get("parts")
    if not isinstance(parts, list):
        raise ValueError("Gemini response does not contain parts")

    text_parts = []
    for part in parts:
        if isinstance(part, dict) and isinstance(part.get("text"), str):
            text_parts.append(part["text"])

    text = "\n".join(text_parts).strip()
    if not text:
        raise ValueError("Gemini response does not contain text payload")
    return text


class GeminiAdapter(ProviderAdapter):
    """Gemini ``generateContent`` over its REST API."""

    provider = Provider.GEMINI

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout_seconds=settings.gemini_timeout_seconds,
            transport=transport,
        )

    def build_request_body(self, prompt: Prompt) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt.combined()}]}],
            "generationConfig": GEMINI_GENERATION_CONFIG,
            "safetySettings": GEMINI_SAFETY_SETTINGS,
        }

    def _complete(self, prompt: Prompt) -> str:
        endpoint = GEMINI_ENDPOINT_TEMPLATE.format(model=self.model)
        timeout = httpx.Timeout(self.timeout_seconds, connect=min(self.timeout_seconds, 10.0))

        try:
            with httpx.Client(transport=self.transport, timeout=timeout) as client:
                response = client.post(
                    endpoint,
                    headers={"x-goog-api-key": self.api_key or ""},
                    json=self.build_request_body(prompt),
                )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(self.name, self.timeout_seconds) from exc
        except httpx.HTTPError as exc:
            logger.error("Gemini connection error: %s", type(exc).__name__)
            raise UpstreamProtocolError(self.name, "connection error") from exc

        if response.status_code >= 400:
            body = excerpt(response.text, DEFAULT_DEBUG_BODY_CHARS)
            logger.error("Gemini API error %s: %s", response.status_code, body)
            raise UpstreamProtocolError(
                self.name, f"status {response.status_code}", status=response.status_code, body=body
            )

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            logger.error("Gemini returned unexpected content type %r", content_type)
            raise UpstreamProtocolError(
                self.name, f"unexpected content type {content_type!r}", status=response.status_code
            )

        try:
            return _extract_text_from_payload(response.json())
        except ValueError as exc:
            logger.error("Gemini payload error: %s", exc)
            raise UpstreamProtocolError(self.name, str(exc), status=response.status_code) from exc


ADAPTERS: dict[Provider, type[ProviderAdapter]] = {
    Provider.PERPLEXITY: PerplexityAdapter,
    Provider.GEMINI: GeminiAdapter,
}


def build_adapter(
    provider: Provider,
    settings: Settings,
    transport: Optional[httpx.BaseTransport] = None,
) -> ProviderAdapter:
    return ADAPTERS[provider].from_settings(settings, transport=transport)


def configured_providers(settings: Settings) -> dict[str, bool]:
    """Which providers have credentials, without exposing them."""
    return {provider.value: build_adapter(provider, settings).is_configured() for provider in ADAPTERS}
