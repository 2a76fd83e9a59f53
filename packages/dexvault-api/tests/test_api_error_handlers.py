"""Tests for exception handlers, logging middleware, metrics and health."""
from __future__ import annotations

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from dexvault_api.middleware.exceptions import create_error_response, register_exception_handlers
from dexvault_api.middleware.logging import (
    CorrelationIdFilter,
    JSONFormatter,
    request_id_var,
)
from dexvault_core.exceptions import (
    InvalidRequestError,
    NotPermittedError,
    PermissionDeniedError,
    WalletExistsError,
)


class Body(BaseModel):
    amount: int


def _app(show_details: bool) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app, show_details=show_details)

    @app.get("/invalid")
    async def invalid():
        raise InvalidRequestError.wrap(NotPermittedError(), state="Authenticated")

    @app.get("/denied")
    async def denied():
        raise PermissionDeniedError("no CreateWallet")

    @app.get("/exists")
    async def exists():
        raise WalletExistsError("main")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    @app.post("/validate")
    async def validate(body: Body):
        return body

    return app


class TestExceptionHandlers:
    def test_invalid_request_with_details(self):
        response = TestClient(_app(True)).get("/invalid", headers={"X-Request-ID": "req_1"})
        assert response.status_code == 400
        assert response.json() == {"status": "Invalid request.", "code": 400, "error": "Not permitted."}
        assert response.headers["X-Request-ID"] == "req_1"

    def test_invalid_request_without_details(self):
        response = TestClient(_app(False)).get("/invalid")
        assert response.json() == {"status": "Invalid request.", "code": 400}

    def test_permission_denied_never_has_detail(self):
        response = TestClient(_app(True)).get("/denied")
        assert response.status_code == 403
        assert response.json() == {"status": "Permission denied.", "code": 403}

    def test_internal_errors_fold_into_invalid_request(self):
        response = TestClient(_app(True)).get("/exists")
        assert response.status_code == 400
        assert response.json()["status"] == "Invalid request."
        assert "main" in response.json()["error"]

    def test_unhandled_is_generic_500(self):
        response = TestClient(_app(True), raise_server_exceptions=False).get("/boom")
        assert response.status_code == 500
        assert "secret internals" not in response.text

    def test_validation_error_is_400(self):
        response = TestClient(_app(False)).post("/validate", json={"amount": "many"})
        assert response.status_code == 400
        assert response.json() == {"status": "Invalid request.", "code": 400}

    def test_unknown_route(self):
        assert TestClient(_app(True)).get("/nope").status_code == 404

    def test_create_error_response(self):
        response = create_error_response(400, "req_x", error="bad")
        assert response.status_code == 400
        assert json.loads(response.body) == {"status": "Invalid request.", "code": 400, "error": "bad"}


class TestLogging:
    def test_token_never_logged(self, client, make_token, sample_payloads, caplog):
        caplog.set_level(logging.DEBUG)
        token = make_token("alice", dict(sample_payloads["create_order"], Wallet="main"))

        response = client.post(
            "/api/v1/order/create",
            headers={"Authorization": f"Bearer {token}", "Cookie": f"jwt={token}"},
        )

        assert response.status_code == 200
        started = [r for r in caplog.records if getattr(r, "event", None) == "request_start"]
        assert started and started[0].has_token is True
        for record in caplog.records:
            assert token not in record.getMessage()
            assert all(token not in str(value) for value in vars(record).values())

    def test_json_formatter_includes_correlation_id(self):
        token = request_id_var.set("req_abc")
        try:
            record = logging.LogRecord("dexvault.api", logging.INFO, __file__, 1, "hello", None, None)
            record.user = "alice"
            CorrelationIdFilter().filter(record)
            data = json.loads(JSONFormatter().format(record))
        finally:
            request_id_var.reset(token)

        assert data["message"] == "hello"
        assert data["correlation_id"] == "req_abc"
        assert data["user"] == "alice"


class TestServiceRoutes:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics_require_token(self, client):
        assert client.get("/api/v1/metrics").status_code == 403

    def test_metrics_with_token(self, client, bearer, sample_payloads):
        client.post("/api/v1/order/create", headers=bearer("alice", dict(sample_payloads["create_order"], Wallet="main")))
        response = client.get("/api/v1/metrics", headers=bearer("alice"))
        assert response.status_code == 200
        assert "dexvault_dispatch_total" in response.text

    def test_public_metrics(self, app_factory):
        response = TestClient(app_factory(public_metrics=True)).get("/api/v1/metrics")
        assert response.status_code == 200
