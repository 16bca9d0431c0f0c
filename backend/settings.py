"""
Runtime configuration read from the process environment (and ``.env``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from finder.logging_utils import get_logger, mask_secret

load_dotenv()

logger = get_logger(__name__)

CLIENT_TIMEOUT_SECONDS = 60.0
DEFAULT_PERPLEXITY_TIMEOUT_SECONDS = 30.0
DEFAULT_GEMINI_TIMEOUT_SECONDS = 55.0
DEFAULT_PERPLEXITY_MODEL = "sonar-pro"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_PORT = 3000


def _read_positive_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
        return value if value > 0 else default
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default


def _read_port_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
        return value if 0 < value < 65536 else default
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default


def _server_timeout(name: str, default: float) -> float:
    # Always below the client's deadline.
    return min(_read_positive_float_env(name, default), CLIENT_TIMEOUT_SECONDS - 5.0)


def _split_origins(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    allowed_origins: list[str] = field(default_factory=list)
    perplexity_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    perplexity_model: str = DEFAULT_PERPLEXITY_MODEL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    perplexity_timeout_seconds: float = DEFAULT_PERPLEXITY_TIMEOUT_SECONDS
    gemini_timeout_seconds: float = DEFAULT_GEMINI_TIMEOUT_SECONDS

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def cors_origins(self) -> list[str]:
        """Origins allowed by CORS; everything outside production."""
        if not self.is_production:
            return ["*"]
        return self.allowed_origins or []

    def describe(self) -> str:
        """One-line summary safe for logs."""
        return (
            f"env={self.environment} port={self.port} "
            f"perplexity_key={mask_secret(self.perplexity_api_key)} "
            f"gemini_key={mask_secret(self.gemini_api_key)} "
            f"origins={','.join(self.cors_origins()) or '<none>'}"
        )


def load_settings() -> Settings:
    return Settings(
        environment=(os.getenv("APP_ENV") or "development").strip().lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_read_port_env("PORT", DEFAULT_PORT),
        allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS")),
        perplexity_api_key=os.getenv("PERPLEXITY_API_KEY") or None,
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        perplexity_model=os.getenv("PERPLEXITY_MODEL") or DEFAULT_PERPLEXITY_MODEL,
        gemini_model=os.getenv("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        perplexity_timeout_seconds=_server_timeout(
            "PERPLEXITY_TIMEOUT_SECONDS", DEFAULT_PERPLEXITY_TIMEOUT_SECONDS
        ),
        gemini_timeout_seconds=_server_timeout(
            "GEMINI_TIMEOUT_SECONDS", DEFAULT_GEMINI_TIMEOUT_SECONDS
        ),
    )
