"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, CORS and request-id middleware, routes,
and the optional static asset mount.

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- CORSMiddleware sits inside it, so preflight responses still get X-Request-ID
- UnhandledExceptionMiddleware is innermost, so 500s get both header sets

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. CORSMiddleware (answers OPTIONS, injects Access-Control-* headers)
3. UnhandledExceptionMiddleware (unclassified errors become internal_error)
4. Route handler (guard, cache, provider call) or static assets
5. RequestIDMiddleware (logs, sets response header)

Shared resources (lifespan):
- httpx.AsyncClient is created at startup, stored in app.state
- The KV store backs both the answer cache and the Vertex AI token cache
- ProviderRouter wraps the shared client for connection pooling
- Owned resources are closed at shutdown
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from askgate.api.routes import create_api_router
from askgate.config import APP_VERSION, Settings, get_settings
from askgate.errors import GatewayError
from askgate.logging import configure_logging, get_logger
from askgate.middleware.cors import CORSMiddleware
from askgate.middleware.errors import UnhandledExceptionMiddleware
from askgate.middleware.request_id import RequestIDMiddleware
from askgate.responses import (
    gateway_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
)
from askgate.services.answer_cache import AnswerCache
from askgate.services.kv import KVStore, create_kv_store
from askgate.services.llm import ProviderRouter

# Configure structured logging at import time
configure_logging()

logger = get_logger(__name__)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared client for provider and OAuth calls."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.provider_timeout_s, connect=10.0),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle resources.

    Resources passed to create_app() are used as-is and left open; resources
    created here are closed on shutdown.
    """
    settings: Settings = app.state.settings

    http_client = app.state.http_client_override
    owns_client = http_client is None
    if owns_client:
        http_client = create_http_client(settings)

    kv_store = app.state.kv_store_override
    owns_store = kv_store is None
    if owns_store:
        kv_store = create_kv_store(settings)

    app.state.http_client = http_client
    app.state.kv_store = kv_store
    app.state.answer_cache = AnswerCache(kv_store)
    app.state.provider_router = ProviderRouter(http_client, settings, kv_store)

    logger.info(
        "provider_router_initialized",
        models=settings.available_models,
        gateway=settings.has_gateway,
        direct_provider_blocked=settings.direct_provider_blocked,
    )

    yield

    if owns_client:
        await http_client.aclose()
        logger.info("httpx_client_closed")
    if owns_store:
        await kv_store.close()


def create_app(
    settings: Settings | None = None,
    kv_store: KVStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment (for testing).
        kv_store: Store to use instead of the configured one (for testing).
        http_client: HTTP client to use instead of a fresh one (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="askgate",
        description="Single-endpoint question answering over several LLM providers",
        version=APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.kv_store_override = kv_store
    app.state.http_client_override = http_client

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(create_api_router())

    # Mounted last so API routes win; unmatched paths fall through to assets
    if settings.static_assets_dir:
        app.mount("/", StaticFiles(directory=settings.static_assets_dir, html=True), name="static")
        logger.info("static_assets_mounted")

    app.add_middleware(UnhandledExceptionMiddleware)
    app.add_middleware(CORSMiddleware, allowed_origins=settings.allowed_origin_list)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including guard failures.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
