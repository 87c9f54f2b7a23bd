"""Error body helpers and exception handlers.

Every JSON error uses one flat shape:
    { "error": "...", "code": "<kind>", "model": "...", "details": ... }

``model`` and ``details`` are omitted when absent. Bodies never contain
credentials, prompts, or stack traces.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from askgate.errors import ErrorKind, GatewayError
from askgate.logging import get_logger
from askgate.services.redact import safe_kv

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Not found"

QUERY_PATH = "/query"
UNSUPPORTED_METHOD_MESSAGE = "Only POST /query is supported"


def error_response(
    kind: ErrorKind,
    message: str,
    model: str | None = None,
    details: Any = None,
) -> dict[str, Any]:
    """Build an error body.

    Args:
        kind: The error kind.
        message: Human-readable error message.
        model: Logical model being served, if known.
        details: Optional JSON-serializable diagnostic payload.
    """
    body: dict[str, Any] = {"error": message, "code": kind.value}
    if model:
        body["model"] = model
    if details is not None:
        body["details"] = details
    return body


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Serialize a tagged failure with the status its kind maps to."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request.error",
        **safe_kv(error_kind=exc.kind.value, status_code=exc.status_code, error_model=exc.model),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.kind, exc.message, exc.model, exc.details),
    )


async def http_exception_handler(request: Request, exc: Any) -> Response:
    """Handle Starlette HTTPException (unmatched routes, static misses, 405)."""
    if exc.status_code == 404:
        return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)

    # Methods without an explicit /query route still get the plain 404
    if exc.status_code == 405 and request.url.path == QUERY_PATH:
        return PlainTextResponse(UNSUPPORTED_METHOD_MESSAGE, status_code=404)

    status_to_kind = {
        400: ErrorKind.INVALID_REQUEST,
        401: ErrorKind.AUTH_ERROR,
        405: ErrorKind.INVALID_REQUEST,
    }
    kind = status_to_kind.get(exc.status_code, ErrorKind.INTERNAL_ERROR)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(kind, message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500 internal_error for anything unclassified.

    Logs the exception server-side but never leaks details to client.
    """
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=500,
        content=error_response(ErrorKind.INTERNAL_ERROR, "Internal server error"),
    )
