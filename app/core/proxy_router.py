import asyncio
import httpx
import logging
from starlette.types import Scope, Receive, Send
from starlette.responses import JSONResponse, PlainTextResponse, Response
from typing import Any, Callable, Optional
from urllib.parse import quote
from app.config.routes import build_route_table, build_status_document
from app.config.settings import ProxySettings
from .path_router import PathRouter
from .header_rewrite import HeaderRewriter, filter_response_headers
from .status import StatusHandler


logger = logging.getLogger(__name__)

NO_BODY_STATUSES = {204, 304}
# reserved and already-escaped characters pass through untouched
URL_SAFE = "!#$%&'()*+,/:;=?@[]~"


class UpstreamError(Exception):
    def __init__(self, service: str, cause: httpx.RequestError):
        super().__init__(f"{service} proxy error: {cause}")
        self.service = service
        self.cause = cause


class ProxyRouter:
    def __init__(
        self,
        settings: Optional[ProxySettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or ProxySettings()
        self.route_table = build_route_table(self.settings)
        self.path_router = PathRouter(self.route_table)
        self.status_handler = StatusHandler(build_status_document(self.settings))
        self.client = client or httpx.AsyncClient(timeout=self.settings.upstream_timeout)

        self.cleanup_callbacks: list[Callable] = []
        self.add_cleanup_callback(self.client.aclose)

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            await PlainTextResponse("Unsupported", status_code=400)(scope, receive, send)
            return

        await self._handle_http(scope, receive, send)

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send):
        path = scope["path"]
        method = scope["method"]
        query = quote(scope.get("query_string", b""), safe=URL_SAFE)
        logger.info(f"Incoming request: {method} {path}?{query}")

        if path == "/" and method in ("GET", "HEAD"):
            await self.status_handler(scope, receive, send)
            return

        backend_base, config = self.path_router.match(path)
        if not backend_base:
            logger.warning(f"No route match for {path}")
            await PlainTextResponse("Route not found", status_code=404)(scope, receive, send)
            return

        service = config["service"]
        header_rewriter = self._get_header_rewriter(config.get("header_policy"))
        target_url = self._construct_target_url(backend_base, scope, query)
        logger.info(f"Proxying request to: {target_url}")

        headers = header_rewriter.rewrite(scope.get("headers", []))
        body = await self._read_body(receive)

        try:
            status_code, raw_headers, content = await self._forward(
                service, method, target_url, headers, body
            )
        except UpstreamError as e:
            logger.error(str(e))
            await JSONResponse(
                {"error": f"{service} API unavailable"},
                status_code=500
            )(scope, receive, send)
            return

        logger.info(f"Response from backend: {target_url} ({status_code})")
        await self._send_response(scope, receive, send, status_code, raw_headers, content)

    def _get_header_rewriter(self, policy: Optional[dict[str, Any]]) -> HeaderRewriter:
        if not policy:
            return HeaderRewriter()
        mod = {k if k != "set" else "set_": v for k, v in policy.items()}
        return HeaderRewriter(**mod)

    def _construct_target_url(self, base: str, scope: Scope, query: str) -> str:
        raw_path = scope.get("raw_path")
        # some servers leave the query string on raw_path
        path = raw_path.split(b"?", 1)[0] if raw_path else scope["path"].encode()
        path = quote(path, safe=URL_SAFE)
        url = f"{base.rstrip('/')}{path}"
        return f"{url}?{query}" if query else url

    async def _read_body(self, receive: Receive) -> bytes:
        body = b""
        more_body = True
        while more_body:
            message = await receive()
            body += message.get("body", b"")
            more_body = message.get("more_body", False)
        return body

    async def _forward(
        self,
        service: str,
        method: str,
        url: str,
        headers: list[tuple[bytes, bytes]],
        body: bytes
    ) -> tuple[int, list[tuple[bytes, bytes]], bytes]:
        # a bare Request skips the client's default headers
        request = httpx.Request(method, url, headers=headers, content=body)
        try:
            response = await self.client.send(request, stream=True)
            try:
                # raw bytes keep the upstream content-encoding intact
                content = b"".join([chunk async for chunk in response.aiter_raw()])
            finally:
                await response.aclose()
        except httpx.RequestError as e:
            raise UpstreamError(service, e) from e

        return response.status_code, filter_response_headers(response.headers.raw), content

    async def _send_response(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        status_code: int,
        raw_headers: list[tuple[bytes, bytes]],
        content: bytes
    ):
        response = Response(content=content, status_code=status_code)
        has_length = any(k.lower() == b"content-length" for k, _ in raw_headers)
        if not has_length and status_code >= 200 and status_code not in NO_BODY_STATUSES:
            raw_headers.append((b"content-length", str(len(content)).encode()))
        response.raw_headers = raw_headers
        await response(scope, receive, send)

    def add_cleanup_callback(self, cb: Callable) -> None:
        self.cleanup_callbacks.append(cb)

    def _announce(self) -> None:
        host = self.settings.host
        if host in ("0.0.0.0", "::"):
            host = "localhost"
        base = f"http://{host}:{self.settings.port}"
        logger.info(f"CORS proxy server running on {base}")
        logger.info(f"Dashboard API: {base}/api/* -> {self.settings.dashboard_url}")
        logger.info(f"Metrics API: {base}/metrics -> {self.settings.metrics_url}")
        logger.info(f"Health check: {base}/health -> {self.settings.metrics_url}")

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self._announce()
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                for cb in self.cleanup_callbacks:
                    result = cb()
                    if asyncio.iscoroutine(result): await result
                logger.info("[proxy] Shutdown complete. All resources closed.")
                await send({"type": "lifespan.shutdown.complete"})
                return
