"""Access policy for POST /query.

Two independent checks, both evaluated before the request body is read:

1. Origin allowlist: when ALLOWED_ORIGINS is non-empty, a request carrying an
   Origin header outside the list is refused with a plain-text 403. Requests
   without an Origin header (curl, server-to-server) pass.
2. API key: when API_KEY is set, cross-origin callers must send a matching
   X-API-Key header. Same-origin requests (the bundled front-end) are exempt,
   but only on positive evidence from Origin or Referer.
"""

import hmac
from urllib.parse import urlsplit

from fastapi import Request

from askgate.config import Settings
from askgate.errors import AuthError
from askgate.logging import get_logger

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"
ORIGIN_NOT_ALLOWED_MESSAGE = "origin not allowed"


def normalize_origin(origin: str) -> str:
    return origin.strip().rstrip("/")


def is_origin_allowed(origin: str | None, allowed_origins: list[str]) -> bool:
    """Check a request Origin against the allowlist.

    Args:
        origin: Value of the Origin header, or None if absent.
        allowed_origins: Normalized allowlist; empty means no restriction.

    Returns:
        True if the request may proceed.
    """
    if not allowed_origins or origin is None:
        return True
    return normalize_origin(origin) in allowed_origins


def request_origin(request: Request) -> str:
    """The origin the request was addressed to (scheme://host[:port])."""
    return f"{request.url.scheme}://{request.url.netloc}"


def is_same_origin(request: Request) -> bool:
    """Whether Origin or Referer shows the call came from this deployment.

    An absent Origin and Referer is not evidence of same-origin.
    """
    own = request_origin(request)
    origin = request.headers.get("origin")
    if origin:
        origin = normalize_origin(origin)
        if origin == own:
            return True
        if urlsplit(origin).hostname == request.url.hostname:
            return True

    referer = request.headers.get("referer")
    if referer and referer.startswith(own):
        return True

    return False


def verify_api_key(request: Request, settings: Settings) -> None:
    """Enforce the shared API key for cross-origin callers.

    Raises:
        AuthError: If a key is configured and the request neither is
            same-origin nor carries a matching X-API-Key.
    """
    if not settings.api_key:
        return
    if is_same_origin(request):
        return

    provided = request.headers.get(API_KEY_HEADER)
    if provided is None:
        logger.warning("guard.api_key.missing")
        raise AuthError("Missing API key")

    if not hmac.compare_digest(provided.encode("utf-8"), settings.api_key.encode("utf-8")):
        logger.warning("guard.api_key.invalid")
        raise AuthError("Invalid API key")
