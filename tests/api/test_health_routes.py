"""
Test suite for health endpoints and app-level error handling.

System role: Verification of liveness, database probe and fallback routes
"""

from unittest.mock import AsyncMock, MagicMock, patch

from pymongo.errors import ServerSelectionTimeoutError

from debrid_proxy.core.exceptions import ConfigurationError


def test_health_should_report_ok_with_uptime(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["value"]["status"] == "ok"
    assert body["value"]["uptime"] >= 0
    assert body["value"]["timestamp"].endswith("Z")


def test_health_db_should_return_ok_when_ping_succeeds(client):
    db = MagicMock()
    db.name = "debrid"

    with patch("debrid_proxy.api.routers.health.get_database", return_value=db), patch(
        "debrid_proxy.api.routers.health.ping", new=AsyncMock()
    ) as ping:
        response = client.get("/health/db")

    assert response.status_code == 200
    assert response.json()["value"] == {"status": "ok", "database": "debrid"}
    ping.assert_awaited_once_with(db)


def test_health_db_should_return_503_when_database_unconfigured(client):
    with patch(
        "debrid_proxy.api.routers.health.get_database",
        side_effect=ConfigurationError("Mongo URI is not configured"),
    ):
        response = client.get("/health/db")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Database unavailable"
    assert "Mongo URI is not configured" in body["details"]["reason"]


def test_health_db_should_return_503_when_ping_fails(client):
    with patch("debrid_proxy.api.routers.health.get_database", return_value=MagicMock()), patch(
        "debrid_proxy.api.routers.health.ping",
        new=AsyncMock(side_effect=ServerSelectionTimeoutError("no servers")),
    ):
        response = client.get("/health/db")

    assert response.status_code == 503


def test_unknown_route_should_return_not_defined_envelope(client):
    response = client.get("/does/not/exist?x=1")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Endpoint /does/not/exist?x=1 is not defined",
        "details": None,
    }


def test_correlation_id_should_be_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_correlation_id_should_be_generated_when_missing(client):
    response = client.get("/health")

    assert response.headers.get("X-Correlation-ID")
