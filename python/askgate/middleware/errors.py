"""Pure ASGI middleware that turns unclassified exceptions into 500 responses.

Starlette routes the ``Exception`` handler to ServerErrorMiddleware, which
sits outside every user middleware, so its responses would miss the CORS
and X-Request-ID headers. This middleware is registered innermost and
answers with the same internal_error body from inside the stack.

Exceptions raised after the response has started are re-raised unchanged.
"""

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from askgate.responses import unhandled_exception_handler


class UnhandledExceptionMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking)
        except Exception as exc:
            if response_started:
                raise
            response = await unhandled_exception_handler(Request(scope), exc)
            await response(scope, receive, send)
