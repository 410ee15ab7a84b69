"""
Name: Operational Endpoints Unit Tests

Responsibilities:
  - /healthz liveness, /readyz readiness, /metrics exposition
  - X-Request-Id propagation
  - CORS preflight for operational tooling
  - Exception handler mapping to RFC7807
"""

from unittest.mock import Mock, patch

import pytest
from compliance_engine.api import main as api_main
from compliance_engine.api.exception_handlers import register_exception_handlers
from compliance_engine.crosscutting.error_responses import PROBLEM_JSON_MEDIA_TYPE
from compliance_engine.crosscutting.exceptions import (
    ComplianceEngineError,
    DatabaseError,
    DispatchQueueError,
    EventFetchError,
)
from fastapi import FastAPI
from fastapi.testclient import TestClient

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    return TestClient(api_main.app)


class TestHealth:
    def test_healthz_ok(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["db"] == "connected"

    def test_healthz_stays_up_when_db_down(self, client):
        store = Mock()
        store.ping.side_effect = RuntimeError("db down")
        with patch.object(api_main, "get_event_store", return_value=store):
            response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["db"] == "disconnected"

    def test_readyz_ok(self, client):
        response = client.get("/readyz")
        assert response.status_code == 200
        assert response.json()["ok"] is True

    def test_readyz_503_when_db_down(self, client):
        store = Mock()
        store.ping.side_effect = RuntimeError("db down")
        with patch.object(api_main, "get_event_store", return_value=store):
            response = client.get("/readyz")

        assert response.status_code == 503
        assert response.json() == {
            "ok": False,
            "db": "disconnected",
            "request_id": response.headers["X-Request-Id"],
        }


class TestMetricsAndContext:
    def test_metrics_exposes_request_histogram(self, client):
        client.get("/healthz")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "compliance_http_request_seconds" in response.text

    def test_request_id_is_echoed(self, client):
        response = client.get("/healthz", headers={"X-Request-Id": "req-abc-123"})

        assert response.headers["X-Request-Id"] == "req-abc-123"
        assert response.json()["request_id"] == "req-abc-123"

    def test_request_id_generated_when_missing(self, client):
        response = client.get("/healthz")
        assert len(response.headers["X-Request-Id"]) == 36

    def test_cors_preflight(self, client):
        response = client.options(
            "/v1/compliance/dispatch",
            headers={
                "Origin": "https://ops.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]


class TestExceptionHandlers:
    @pytest.fixture
    def error_client(self):
        app = FastAPI()
        register_exception_handlers(app)

        errors = {
            "fetch": EventFetchError("Failed to fetch events"),
            "db": DatabaseError("pool exhausted"),
            "queue": DispatchQueueError("redis down"),
            "base": ComplianceEngineError("unexpected state"),
            "boom": RuntimeError("kaboom"),
        }

        @app.get("/raise/{kind}")
        def _raise(kind: str):
            raise errors[kind]

        return TestClient(app, raise_server_exceptions=False)

    @pytest.mark.parametrize(
        "kind,status,code",
        [
            ("fetch", 503, "EVENT_FETCH_ERROR"),
            ("db", 503, "DATABASE_ERROR"),
            ("queue", 503, "SERVICE_UNAVAILABLE"),
            ("base", 500, "INTERNAL_ERROR"),
        ],
    )
    def test_typed_errors(self, error_client, kind, status, code):
        response = error_client.get(f"/raise/{kind}")

        assert response.status_code == status
        assert response.headers["content-type"].startswith(PROBLEM_JSON_MEDIA_TYPE)
        body = response.json()
        assert body["code"] == code
        assert "error_id" in body["errors"][0]

    def test_unhandled_error_is_500(self, error_client):
        response = error_client.get("/raise/boom")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
