"""Tests for the HTTP surface: greeting, static files, CORS, rate limiting."""

import logging

from chathub.config import DEFAULT_ALLOWED_ORIGIN, settings
from chathub.main import _cors_origins, app
from fastapi.testclient import TestClient


def test_root_returns_greeting():
    client = TestClient(app)
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == settings.root_greeting
    assert resp.headers["content-type"].startswith("text/plain")


def test_static_index_served():
    client = TestClient(app)
    resp = client.get("/static/")
    assert resp.status_code == 200
    assert "/ChatHub" in resp.text


def test_health():
    client = TestClient(app)
    resp = client.get("/api/health")
    assert resp.json() == {"status": "ok"}


def test_stats_reports_configuration():
    client = TestClient(app)
    body = client.get("/api/stats").json()
    assert body["connections"] == 0
    assert body["rate_limit"]["permits"] == settings.rate_limit_permits
    assert body["rate_limit"]["window_s"] == settings.rate_limit_window_s


def test_http_rate_limit_returns_429():
    client = TestClient(app)
    statuses = [client.get("/").status_code for _ in range(settings.rate_limit_permits)]
    assert statuses == [200] * settings.rate_limit_permits
    resp = client.get("/")
    assert resp.status_code == 429
    assert resp.json() == {"error": "rate limit exceeded"}
    assert int(resp.headers["Retry-After"]) >= 1


def test_health_is_exempt_from_rate_limit():
    client = TestClient(app)
    for _ in range(settings.rate_limit_permits * 2):
        assert client.get("/api/health").status_code == 200


def test_security_headers_present():
    client = TestClient(app)
    resp = client.get("/")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_cors_allows_configured_origin_with_credentials():
    client = TestClient(app)
    resp = client.get("/api/health", headers={"Origin": DEFAULT_ALLOWED_ORIGIN})
    assert resp.headers["access-control-allow-origin"] == DEFAULT_ALLOWED_ORIGIN
    assert resp.headers["access-control-allow-credentials"] == "true"


def test_cors_rejects_other_origins():
    client = TestClient(app)
    resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in resp.headers


def test_cors_default_origin_when_unconfigured():
    assert _cors_origins([]) == [DEFAULT_ALLOWED_ORIGIN]
    assert _cors_origins(["https://a.example", ""]) == ["https://a.example"]


def test_runtime_logs_capture_and_reset():
    logging.getLogger("chathub.test").warning("runtime log probe")
    client = TestClient(app)
    body = client.get("/api/runtime-logs", params={"contains": "probe"}).json()
    assert body["count"] == 1
    assert body["logs"][0]["logger"] == "chathub.test"
    assert client.post("/api/runtime-logs/reset").json()["cleared"] >= 1


def test_source_key_falls_back_to_unknown():
    from types import SimpleNamespace

    from chathub.middleware import client_source_key

    assert client_source_key(None) == "unknown"
    assert client_source_key(SimpleNamespace(host="")) == "unknown"
    assert client_source_key(SimpleNamespace(host="1.2.3.4")) == "1.2.3.4"


def test_frontend_ships_inside_the_package():
    from pathlib import Path

    import chathub
    from chathub.main import WEB_DIR

    assert WEB_DIR.parent == Path(chathub.__file__).resolve().parent
    assert (WEB_DIR / "index.html").is_file()
