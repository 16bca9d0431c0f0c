"""
Nearby Events Backend API

Thin FastAPI proxy between the event finder client and the upstream LLM
providers. Validates the search, builds the prompt, calls the selected
provider and returns its reply in one canonical envelope.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from finder.errors import EventFinderError, QueryValidationError
from finder.logging_utils import excerpt, get_logger, is_debug
from finder.query import parse_search_request
from finder.query_builder import build_prompt, time_frame_for
from providers import build_adapter, configured_providers
from settings import Settings, load_settings

logger = get_logger("events.api")

SETTINGS = load_settings()

MAX_BODY_BYTES = 100 * 1024
CACHE_CONTROL = "public, max-age=900"
GENERIC_ERROR = "An error occurred while processing your request."

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
}

app = FastAPI(
    title="Nearby Events API",
    description="Location-based event discovery backed by LLM search providers",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.cors_origins(),
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


# ============ Dependencies ============


def get_settings() -> Settings:
    return SETTINGS


def get_transport() -> Optional[httpx.BaseTransport]:
    """Upstream transport override; None means real network access."""
    return None


# ============ Middleware & Error Handling ============


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        response = _error_response(413, "Request body too large.")
    else:
        response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


@app.exception_handler(EventFinderError)
async def event_finder_error_handler(request: Request, exc: EventFinderError) -> JSONResponse:
    if isinstance(exc, QueryValidationError):
        logger.info("Rejected search request: %s", exc.message)
    else:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.public_message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled server error on %s", request.url.path)
    return _error_response(500, "Something went wrong on the server")


# ============ Startup / Shutdown ============


@app.on_event("startup")
async def startup():
    logger.info("Server starting: %s", SETTINGS.describe())


@app.on_event("shutdown")
async def shutdown():
    logger.info("Shutdown signal received, shutting down gracefully")


# ============ Health Check ============


@app.get("/api/health")
async def health(settings: Settings = Depends(get_settings)):
    """Report liveness and which providers have credentials configured."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "apis": configured_providers(settings),
    }


# ============ Events Endpoint ============


async def _read_json_body(request: Request) -> Any:
    body = await request.body()
    if len(body) > MAX_BODY_BYTES:
        raise StarletteHTTPException(status_code=413, detail="Request body too large.")
    try:
        return await request.json()
    except ValueError:
        raise QueryValidationError("Invalid request body. Expected a JSON object.") from None


@app.post("/api/events")
async def search_events(
    request: Request,
    settings: Settings = Depends(get_settings),
    transport: Optional[httpx.BaseTransport] = Depends(get_transport),
):
    """
    Search for events near a location.

    Body: ``{location, radius, category, eventDate, apiChoice}``.
    Returns ``{choices: [{message: {content}}]}`` for either provider.
    """
    payload = await _read_json_body(request)
    query = parse_search_request(payload)

    if settings.is_development:
        logger.info(
            "location: %s radius: %s category: %s eventDate: %s (%s) provider: %s",
            query.location,
            query.radius_miles,
            query.category.value,
            query.date_window.value,
            time_frame_for(query.date_window),
            query.provider.value,
        )

    try:
        adapter = build_adapter(query.provider, settings, transport=transport)
        prompt = build_prompt(query)
        if is_debug():
            logger.debug("Query to %s: %s", adapter.name, excerpt(prompt.user, 1000))
        reply = await run_in_threadpool(adapter.complete, prompt)
    except EventFinderError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error while calling %s", query.provider.value)
        raise EventFinderError(GENERIC_ERROR) from exc

    return JSONResponse(content=reply.to_envelope(), headers={"Cache-Control": CACHE_CONTROL})


# ============ Main Entry Point ============


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=SETTINGS.host, port=SETTINGS.port)
