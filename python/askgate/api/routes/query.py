"""Query endpoint.

POST /query is the only way to ask a question. The access guard runs
before the body is read; the body is then parsed, validated, and answered
through the cache-backed pipeline in askgate.services.query.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from askgate.api.deps import get_answer_cache, get_app_settings, get_provider_router
from askgate.auth.guard import ORIGIN_NOT_ALLOWED_MESSAGE, is_origin_allowed, verify_api_key
from askgate.config import Settings
from askgate.errors import InvalidRequestError
from askgate.logging import get_logger
from askgate.responses import QUERY_PATH, UNSUPPORTED_METHOD_MESSAGE
from askgate.services.answer_cache import AnswerCache
from askgate.services.llm import ProviderRouter
from askgate.services.query import parse_query_body, run_query

router = APIRouter()

logger = get_logger(__name__)


def declared_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    if value is None or not value.isdigit():
        return None
    return int(value)


@router.post(QUERY_PATH)
async def post_query(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    provider_router: ProviderRouter = Depends(get_provider_router),
    cache: AnswerCache = Depends(get_answer_cache),
) -> Response:
    """Answer a prompt with the requested model.

    Request body: {"prompt": str, "model"?: str, "modelVariant"?: str}

    Response: {"answer": str, "cached": bool, "model": str, "modelVariant"?: str}

    Errors:
    - 403 plain text: Origin outside ALLOWED_ORIGINS
    - 401 auth_error: API key required and missing or wrong
    - 400 invalid_request: oversized or malformed body, failed validation,
      or a model that is not configured
    - 501 policy_violation: gateway-first policy forbids the direct call
    - 502 provider_error: upstream failure
    """
    origin = request.headers.get("origin")
    if not is_origin_allowed(origin, settings.allowed_origin_list):
        logger.warning("guard.origin.rejected")
        return PlainTextResponse(ORIGIN_NOT_ALLOWED_MESSAGE, status_code=403)

    verify_api_key(request, settings)

    length = declared_length(request)
    if length is not None and length > settings.max_body_bytes:
        raise InvalidRequestError(
            f"Request body exceeds {settings.max_body_bytes} bytes",
            details={"max_body_bytes": settings.max_body_bytes},
        )

    raw = await request.body()
    query = parse_query_body(raw, max_body_bytes=settings.max_body_bytes)

    result = await run_query(query, router=provider_router, cache=cache)
    return JSONResponse(content=result.to_wire())


@router.api_route(QUERY_PATH, methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"])
async def query_method_not_supported() -> Response:
    return PlainTextResponse(UNSUPPORTED_METHOD_MESSAGE, status_code=404)
