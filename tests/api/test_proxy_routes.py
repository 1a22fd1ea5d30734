"""
Test suite for proxied Debrid-Link routes.

The upstream is an httpx.MockTransport; requests go through the real
ProxyForwarder so header, path and error policies are exercised end to end.

System role: Verification of the pass-through HTTP API
"""

import gzip
import importlib.util

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from debrid_proxy.api.deps.dependencies import get_proxy_forwarder
from debrid_proxy.api.main import create_app
from debrid_proxy.api.routers.proxy import register_proxy_routes
from debrid_proxy.boundary.upstream import ENDPOINT_GROUPS, ProxyForwarder
from debrid_proxy.configs import Settings
from debrid_proxy.configs.upstream import UpstreamSettings

API_BASE = "https://upstream.test/api/v2"
OAUTH_BASE = "https://upstream.test/api"
BROTLI_DECODER_INSTALLED = any(
    importlib.util.find_spec(name) for name in ("brotli", "brotlicffi")
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        upstream=UpstreamSettings(
            api_base_url=API_BASE,
            oauth_base_url=OAUTH_BASE,
            api_timeout_ms=2000,
            api_token="env-token",
        )
    )


@pytest.fixture
def upstream_calls() -> list[httpx.Request]:
    return []


def make_proxy_client(settings: Settings, handler) -> TestClient:
    app = create_app(settings)
    forwarder = ProxyForwarder(
        httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        default_token=settings.upstream.api_token,
        default_timeout_ms=settings.upstream.api_timeout_ms,
    )
    app.dependency_overrides[get_proxy_forwarder] = lambda: forwarder
    return TestClient(app, raise_server_exceptions=False)


def test_get_should_forward_query_and_inject_env_token(settings, upstream_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json={"success": True, "value": {"pseudo": "me"}})

    client = make_proxy_client(settings, handler)
    response = client.get("/account/infos?a=1&a=2")

    assert response.status_code == 200
    assert response.json() == {"success": True, "value": {"pseudo": "me"}}
    sent = upstream_calls[0]
    assert str(sent.url) == f"{API_BASE}/account/infos?a=1&a=2"
    assert sent.headers["authorization"] == "Bearer env-token"


def test_client_authorization_should_win_over_env_token(settings, upstream_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json={})

    client = make_proxy_client(settings, handler)
    client.get("/seedbox/list", headers={"Authorization": "Bearer client-token"})

    assert upstream_calls[0].headers.get_list("authorization") == ["Bearer client-token"]


def test_path_params_should_be_url_encoded(settings, upstream_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json={})

    client = make_proxy_client(settings, handler)
    client.post("/seedbox/a%20b/zip")

    assert upstream_calls[0].url.raw_path == b"/api/v2/seedbox/a%20b/zip"


def test_upstream_error_status_should_be_relayed_verbatim(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={"success": False, "error": "notFound"},
            headers={"X-Upstream": "yes", "Connection": "close"},
        )

    client = make_proxy_client(settings, handler)
    response = client.delete("/downloader/abc/remove")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "notFound"}
    assert response.headers["x-upstream"] == "yes"


def test_upstream_should_only_be_offered_codings_the_proxy_decodes(settings, upstream_calls):
    payload = b'{"success": true, "value": []}'

    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(
            200,
            content=gzip.compress(payload),
            headers={"Content-Type": "application/json", "Content-Encoding": "gzip"},
        )

    client = make_proxy_client(settings, handler)
    response = client.get(
        "/downloader/list", headers={"Accept-Encoding": "gzip, deflate, br, zstd"}
    )

    assert upstream_calls[0].headers.get_list("accept-encoding") == ["gzip, deflate"]
    assert response.status_code == 200
    assert "content-encoding" not in response.headers
    assert response.content == payload


@pytest.mark.parametrize(
    "coding",
    [
        "compress",
        pytest.param(
            "br",
            marks=pytest.mark.skipif(
                BROTLI_DECODER_INSTALLED, reason="httpx decodes br when brotli is installed"
            ),
        ),
    ],
)
def test_undecoded_upstream_body_should_keep_its_content_encoding(settings, coding):
    raw_body = b"\x1f\x9d\x90compressed-bytes"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=raw_body,
            headers={"Content-Type": "text/plain", "Content-Encoding": coding},
        )

    client = make_proxy_client(settings, handler)
    response = client.get(
        "/files/root/list", headers={"Accept-Encoding": "gzip, deflate, br"}
    )

    assert response.status_code == 200
    assert response.headers["content-encoding"] == coding
    assert response.content == raw_body


def test_oauth_route_should_forward_form_body_without_env_token(settings, upstream_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json={"access_token": "t"})

    client = make_proxy_client(settings, handler)
    response = client.post(
        "/oauth/token",
        content=b"client_id=abc&grant_type=password",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert response.status_code == 200
    sent = upstream_calls[0]
    assert str(sent.url) == f"{OAUTH_BASE}/oauth/token"
    assert sent.content == b"client_id=abc&grant_type=password"
    assert sent.headers["content-type"] == "application/x-www-form-urlencoded"
    assert "authorization" not in sent.headers


def test_get_should_not_send_body(settings, upstream_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json={})

    client = make_proxy_client(settings, handler)
    client.request("GET", "/downloader/list", content=b'{"ignored": true}')

    assert upstream_calls[0].content == b""


def test_timeout_should_return_504(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_proxy_client(settings, handler)
    response = client.get("/account/infos")

    assert response.status_code == 504
    assert response.json()["error"] == "Upstream request timed out"


def test_transport_failure_should_return_502_with_summary(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_proxy_client(settings, handler)
    response = client.get("/account/infos")

    assert response.status_code == 502
    assert response.json()["error"] == "Get user infos failed: connection refused"


def test_register_proxy_routes_should_skip_groups_without_base_url():
    app = FastAPI()
    settings = Settings(upstream=UpstreamSettings(api_base_url="https://x.test", oauth_base_url=""))

    count = register_proxy_routes(app, settings)

    api_group = next(group for group in ENDPOINT_GROUPS if group.base == "api")
    assert count == len(api_group.endpoints)
    paths = {route.path for route in app.routes}
    assert "/oauth/token" not in paths
    assert "/seedbox/{idTorrent}/zip" in paths
