from typing import Any, Optional


class PathRouter:
    def __init__(self, route_table: dict[str, Any]):
        self.route_table = route_table
        # longest prefix first; sorted() is stable so equal lengths keep table order
        self._prefixes = sorted(route_table, key=lambda p: len(p.rstrip("/")), reverse=True)

    def match(self, path: str) -> tuple[Optional[str], Optional[dict]]:
        for route_prefix in self._prefixes:
            if self._matches(route_prefix, path):
                config = self.route_table[route_prefix]
                return config["backend"], config
        return None, None

    @staticmethod
    def _matches(prefix: str, path: str) -> bool:
        # mount prefixes are case-insensitive
        prefix = prefix.rstrip("/").lower()
        path = path.lower()
        if not prefix:
            return True
        return path == prefix or path.startswith(prefix + "/")
