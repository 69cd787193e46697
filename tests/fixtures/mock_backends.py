import httpx
from httpx import ASGITransport
from starlette.responses import JSONResponse
from starlette.requests import Request

DASHBOARD_URL = "http://localhost:3000"
METRICS_URL = "http://localhost:3001"


def echo_backend(source: str):
    """Backend that reports back everything it received."""
    async def app(scope, receive, send):
        request = Request(scope, receive)
        body = await request.body()
        await JSONResponse({
            "source": source,
            "method": request.method,
            "path": request.url.path,
            "raw_path": scope["raw_path"].split(b"?", 1)[0].decode(),
            "query": request.url.query,
            "headers": {k.decode(): v.decode() for k, v in scope["headers"]},
            "body": body.decode(),
        })(scope, receive, send)
    return app


class CountingBackend:
    def __init__(self, app):
        self.app = app
        self.calls = 0

    async def __call__(self, scope, receive, send):
        self.calls += 1
        await self.app(scope, receive, send)


def refused(request: httpx.Request):
    raise httpx.ConnectError("Connection refused", request=request)


def unreachable_transport() -> httpx.MockTransport:
    return httpx.MockTransport(refused)


def upstream_client(dashboard=None, metrics=None) -> httpx.AsyncClient:
    """Client whose upstream origins are served by in-process fakes.

    Passing None for an origin makes it unreachable.
    """
    def transport(app):
        return ASGITransport(app=app) if app is not None else unreachable_transport()

    return httpx.AsyncClient(mounts={
        DASHBOARD_URL: transport(dashboard),
        METRICS_URL: transport(metrics),
    })
