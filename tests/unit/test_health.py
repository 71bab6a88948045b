"""Tests for health check routes and the metrics endpoint."""

import pytest

from api.main import create_app
from newsletter.bootstrap import build_services

from tests.conftest import SyncTestClient


class TestHealthRoutes:
    def test_liveness(self, anonymous_client):
        response = anonymous_client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_readiness_reports_backends(self, anonymous_client, store):
        """Readiness names the store backend and the workflow in use."""
        response = anonymous_client.get("/api/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["store"] == store.backend
        assert data["workflow"] == "n8n"
        assert data["demo_mode"] is (store.backend == "memory")

    def test_readiness_fails_when_store_unreachable(self, app, services, monkeypatch):
        monkeypatch.setattr(services.store, "ping", lambda: False)

        response = SyncTestClient(app).get("/api/health/ready")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


class TestMetricsEndpoint:
    def test_metrics_exposed(self, anonymous_client):
        anonymous_client.get("/api/health")

        response = anonymous_client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "generation_transitions" in response.text

    def test_request_id_echoed(self, anonymous_client):
        response = anonymous_client.get("/api/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, anonymous_client):
        response = anonymous_client.get("/api/health")
        assert response.headers["X-Request-ID"]


@pytest.fixture
def simulated_app():
    return create_app(services=build_services(database_url=None, webhook_url=None))


class TestDemoMode:
    def test_offline_app_reports_demo_mode(self, simulated_app):
        data = SyncTestClient(simulated_app).get("/api/health/ready").json()

        assert data["store"] == "memory"
        assert data["workflow"] == "simulated"
        assert data["demo_mode"] is True
