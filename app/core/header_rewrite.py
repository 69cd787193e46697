import base64
from typing import Iterable, Optional

HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "proxy-connection",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}


def basic_auth_header(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return f"Basic {token}"


def filter_response_headers(headers: Iterable[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
    return [(k, v) for k, v in headers if k.decode("latin-1").lower() not in HOP_BY_HOP]


class HeaderRewriter:
    def __init__(
        self,
        remove: Optional[list[str]] = None,
        set_: Optional[dict[str, str]] = None,
        append: Optional[dict[str, str]] = None
    ) -> None:
        # host and content-length are recomputed by the client for the upstream request
        remove = HOP_BY_HOP | {"host", "content-length"} | set(h.lower() for h in (remove or []))
        self.remove = {h.encode() for h in remove}
        self.set = {k.lower().encode(): v.encode() for k, v in (set_ or {}).items()}
        self.append = {k.lower().encode(): v.encode() for k, v in (append or {}).items()}

    def rewrite(self, headers: list[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
        # values may hold non-ASCII octets
        rewritten = [(k.lower(), v) for k, v in headers]
        rewritten = [(k, v) for k, v in rewritten
                     if k not in self.remove and k not in self.set]
        for k, v in self.set.items():
            rewritten.append((k, v))

        present = {k for k, _ in rewritten}
        for k, v in self.append.items():
            if k not in present:
                rewritten.append((k, v))

        return rewritten
