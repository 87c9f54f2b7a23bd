"""Pure ASGI CORS middleware.

- OPTIONS on any path is answered here as a preflight (204, headers only)
- Every other response gets Access-Control-Allow-Origin injected on the
  http.response.start message
- With an allowlist configured, the request Origin is echoed only when it is
  listed; without one, the value is "*"
- Refusing disallowed origins is the /query guard's job, not this layer's
"""

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-API-Key"
MAX_AGE_SECONDS = "86400"


def allow_origin_value(origin: str | None, allowed_origins: set[str]) -> str | None:
    """Access-Control-Allow-Origin for a request, or None to omit the header."""
    if not allowed_origins:
        return "*"
    if origin is not None and origin.rstrip("/") in allowed_origins:
        return origin
    return None


class CORSMiddleware:
    """Injects CORS headers without buffering the response."""

    def __init__(self, app: ASGIApp, allowed_origins: list[str]):
        self.app = app
        self.allowed_origins = set(allowed_origins)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        allow_origin = allow_origin_value(origin, self.allowed_origins)

        if scope["method"] == "OPTIONS":
            headers = {
                "access-control-allow-methods": ALLOW_METHODS,
                "access-control-allow-headers": ALLOW_HEADERS,
                "access-control-max-age": MAX_AGE_SECONDS,
            }
            if allow_origin is not None:
                headers["access-control-allow-origin"] = allow_origin
            if self.allowed_origins:
                headers["vary"] = "Origin"
            response = Response(status_code=204, headers=headers)
            await response(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                resp_headers = MutableHeaders(scope=message)
                if allow_origin is not None:
                    resp_headers["access-control-allow-origin"] = allow_origin
                    resp_headers["access-control-expose-headers"] = "X-Request-ID"
                if self.allowed_origins:
                    resp_headers.add_vary_header("Origin")
            await send(message)

        await self.app(scope, receive, send_with_cors)
