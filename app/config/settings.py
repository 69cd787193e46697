import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class ProxySettings:
    host: str = "0.0.0.0"
    port: int = 8086
    dashboard_url: str = "http://localhost:3000"
    metrics_url: str = "http://localhost:3001"
    dashboard_user: str = ""
    dashboard_password: str = "1234567899"
    upstream_timeout: Optional[float] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProxySettings":
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str, default):
            value = env.get(name)
            if value is None or value.strip() == "":
                return default
            return value.strip()

        port = get("PROXY_PORT", defaults.port)
        try:
            port = int(port)
        except ValueError:
            raise ValueError(f"PROXY_PORT must be an integer, got {port!r}")

        timeout = get("PROXY_UPSTREAM_TIMEOUT", None)
        if timeout is not None:
            try:
                timeout = float(timeout)
            except ValueError:
                raise ValueError(f"PROXY_UPSTREAM_TIMEOUT must be a number, got {timeout!r}")

        return cls(
            host=get("PROXY_HOST", defaults.host),
            port=port,
            dashboard_url=get("DASHBOARD_URL", defaults.dashboard_url).rstrip("/"),
            metrics_url=get("METRICS_URL", defaults.metrics_url).rstrip("/"),
            # an explicitly empty user or password is honoured
            dashboard_user=env.get("DASHBOARD_API_USER", defaults.dashboard_user),
            dashboard_password=env.get("DASHBOARD_API_PASSWORD", defaults.dashboard_password),
            upstream_timeout=timeout,
            log_level=get("PROXY_LOG_LEVEL", defaults.log_level).upper(),
        )
