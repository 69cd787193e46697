from typing import Any
from app.config.settings import ProxySettings
from app.core.header_rewrite import basic_auth_header


def build_route_table(settings: ProxySettings) -> dict[str, Any]:
    return {
        "/api": {
            "backend": settings.dashboard_url,
            "service": "Dashboard",
            "header_policy": {
                "set": {
                    "authorization": basic_auth_header(
                        settings.dashboard_user, settings.dashboard_password
                    )
                }
            }
        },
        "/metrics": {
            "backend": settings.metrics_url,
            "service": "Metrics",
        },
        "/health": {
            "backend": settings.metrics_url,
            "service": "Health",
        },
    }


def build_status_document(settings: ProxySettings) -> dict[str, str]:
    return {
        "status": "Proxy server running",
        "dashboard": f"{settings.dashboard_url} -> /api/*",
        "metrics": f"{settings.metrics_url} -> /metrics, /health",
    }
