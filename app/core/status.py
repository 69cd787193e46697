from starlette.responses import JSONResponse
from starlette.types import Scope, Receive, Send


class StatusHandler:
    def __init__(self, document: dict[str, str]) -> None:
        self.document = document

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await JSONResponse(self.document)(scope, receive, send)
