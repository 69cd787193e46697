from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Scope, Receive, Send

ALLOW_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"


class CORSMiddleware:
    """Permissive cross-origin policy applied to every response.

    Any origin is allowed. OPTIONS requests are answered as preflights
    without reaching the wrapped app.
    """

    def __init__(self, app: ASGIApp, allow_origin: str = "*", allow_methods: str = ALLOW_METHODS):
        self.app = app
        self.allow_origin = allow_origin
        self.allow_methods = allow_methods

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            await self._preflight(scope, receive, send)
            return

        async def send_with_cors(message: Message):
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["access-control-allow-origin"] = self.allow_origin
            await send(message)

        await self.app(scope, receive, send_with_cors)

    async def _preflight(self, scope: Scope, receive: Receive, send: Send):
        request_headers = Headers(scope=scope)
        headers = {
            "access-control-allow-origin": self.allow_origin,
            "access-control-allow-methods": self.allow_methods,
        }
        requested = request_headers.get("access-control-request-headers")
        if requested:
            headers["access-control-allow-headers"] = requested
            headers["vary"] = "Access-Control-Request-Headers"

        await Response(status_code=204, headers=headers)(scope, receive, send)
