"""Query pipeline for POST /query.

Order of operations (all sequential within one request):
1. Body size check and JSON parse (before any external call)
2. Schema validation
3. Model gating against currently available models
4. Cache lookup; a hit returns immediately with cached=True
5. Exactly one provider call on a miss
6. Cache write for non-blank answers

Concurrent identical misses may each call the provider and write the same
key; that duplicate work is accepted.
"""

import json
from typing import Any

from pydantic import ValidationError

from askgate.errors import InvalidRequestError
from askgate.logging import get_logger, set_model_context
from askgate.schemas.query import QueryRequest, QueryResponse
from askgate.services.answer_cache import AnswerCache, build_cache_key
from askgate.services.llm.router import ProviderRouter
from askgate.services.redact import safe_kv

logger = get_logger(__name__)


def parse_query_body(raw: bytes, *, max_body_bytes: int) -> QueryRequest:
    """Decode and validate a raw /query body.

    Raises:
        InvalidRequestError: Oversized body, malformed JSON, or invalid fields.
    """
    if len(raw) > max_body_bytes:
        raise InvalidRequestError(
            f"Request body exceeds {max_body_bytes} bytes",
            details={"max_body_bytes": max_body_bytes},
        )

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError("Invalid JSON body") from e

    if not isinstance(data, dict):
        raise InvalidRequestError("Invalid JSON body: expected an object")

    model = data.get("model") if isinstance(data.get("model"), str) else None

    if data.get("prompt") in (None, ""):
        raise InvalidRequestError('Missing "prompt" field', model=model)

    try:
        return QueryRequest.model_validate(data)
    except ValidationError as e:
        errors = _summarize_validation_errors(e)
        first = errors[0]
        raise InvalidRequestError(
            f"Invalid {first['field']}: {first['message']}",
            model=model,
            details={"errors": errors},
        ) from e


def _summarize_validation_errors(exc: ValidationError) -> list[dict[str, str]]:
    """Field locations and messages only; input values are never echoed."""
    alias_for = {"model_variant": "modelVariant"}
    summary = []
    for err in exc.errors(include_input=False, include_url=False):
        field = ".".join(str(part) for part in err["loc"]) or "body"
        summary.append({"field": alias_for.get(field, field), "message": err["msg"]})
    return summary


def ensure_model_available(query: QueryRequest, router: ProviderRouter) -> None:
    """Reject models whose configuration is absent.

    Raises:
        InvalidRequestError: Listing only the currently available models.
    """
    if router.is_model_available(query.model):
        return

    available = router.available_models
    choices = ", ".join(available) if available else "(none configured)"
    raise InvalidRequestError(
        f"Invalid model. Choose from: {choices}",
        model=query.model,
        details={"available_models": available},
    )


async def run_query(
    query: QueryRequest,
    *,
    router: ProviderRouter,
    cache: AnswerCache,
) -> QueryResponse:
    """Answer a validated query, reading through and writing after the cache."""
    set_model_context(query.model)
    ensure_model_available(query, router)

    key = build_cache_key(query.model, query.prompt, query.model_variant)
    log_fields: dict[str, Any] = {
        "model_variant": query.model_variant,
        "cache_key_hash": key,
    }

    cached = await cache.get(key)
    if cached is not None:
        logger.info("query.cache.hit", **safe_kv(**log_fields, answer_chars=len(cached)))
        return QueryResponse(
            answer=cached,
            cached=True,
            model=query.model,
            model_variant=query.model_variant,
        )

    logger.info("query.cache.miss", **safe_kv(**log_fields))
    answer = await router.call_ai(query.prompt, query.model, query.model_variant)

    stored = await cache.put(key, answer)
    logger.info("query.answered", **safe_kv(**log_fields, cached_write=stored))

    return QueryResponse(
        answer=answer,
        cached=False,
        model=query.model,
        model_variant=query.model_variant,
    )
