from app.config.routes import build_route_table
from app.config.settings import ProxySettings
from app.core.path_router import PathRouter


def test_default_route_table():
    route_table = build_route_table(ProxySettings())

    assert list(route_table) == ["/api", "/metrics", "/health"]
    assert route_table["/api"]["backend"] == "http://localhost:3000"
    assert route_table["/api"]["service"] == "Dashboard"
    assert route_table["/api"]["header_policy"] == {
        "set": {"authorization": "Basic OjEyMzQ1Njc4OTk="}
    }
    assert route_table["/metrics"]["backend"] == "http://localhost:3001"
    assert route_table["/health"]["backend"] == "http://localhost:3001"
    assert "header_policy" not in route_table["/metrics"]
    assert "header_policy" not in route_table["/health"]


def test_credential_comes_from_settings():
    settings = ProxySettings(dashboard_user="svc", dashboard_password="s3cret")
    route_table = build_route_table(settings)

    # base64("svc:s3cret")
    assert route_table["/api"]["header_policy"]["set"]["authorization"] == "Basic c3ZjOnMzY3JldA=="


def test_prefix_match_is_segment_aware():
    router = PathRouter(build_route_table(ProxySettings()))

    assert router.match("/api")[0] == "http://localhost:3000"
    assert router.match("/api/")[0] == "http://localhost:3000"
    assert router.match("/api/users/1")[0] == "http://localhost:3000"
    assert router.match("/health")[1]["service"] == "Health"
    assert router.match("/metrics/cpu")[1]["service"] == "Metrics"

    assert router.match("/apix") == (None, None)
    assert router.match("/") == (None, None)
    assert router.match("/healthz") == (None, None)


def test_longest_prefix_wins():
    router = PathRouter({
        "/api": {"backend": "http://general"},
        "/api/admin": {"backend": "http://admin"},
    })

    assert router.match("/api/admin/users")[0] == "http://admin"
    assert router.match("/api/administrators")[0] == "http://general"
    assert router.match("/api/users")[0] == "http://general"


def test_prefix_match_ignores_case():
    router = PathRouter(build_route_table(ProxySettings()))

    assert router.match("/API/users")[1]["service"] == "Dashboard"
    assert router.match("/Metrics")[1]["service"] == "Metrics"
    assert router.match("/HEALTH/")[1]["service"] == "Health"
    assert router.match("/APIX") == (None, None)
