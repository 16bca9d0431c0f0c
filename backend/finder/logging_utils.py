"""
Logging helpers shared by the API and the event finder pipeline.

``LOG_LEVEL`` wins; otherwise ``EVENTS_DEBUG=1`` or ``DEBUG=1`` switch to
DEBUG, which also enables logging of prompts and raw provider replies.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_EXCERPT_CHARS = 300


def _resolve_level() -> str:
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        return env_level.upper()
    if os.getenv("EVENTS_DEBUG", "0") == "1" or os.getenv("DEBUG", "0") == "1":
        return "DEBUG"
    return "INFO"


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_resolve_level(), format=LOG_FORMAT)
    return logging.getLogger(name)


def is_debug() -> bool:
    return _resolve_level() == "DEBUG"


def excerpt(text: Optional[str], limit: int = DEFAULT_EXCERPT_CHARS) -> str:
    """Single-line prefix of ``text`` for log messages."""
    if not text:
        return "<empty>"
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return f"{flat[:limit]}… (+{len(flat) - limit} chars)"


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Render a credential for log output without revealing it."""
    if not value:
        return "<unset>"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}…({len(value)} chars)"
