"""
Tests for middleware modules
"""

import json
import logging

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from taskboard.middleware.logging import (
    RequestIdFilter,
    StructuredFormatter,
    StructuredLoggingMiddleware,
    get_client_ip,
    get_request_id,
)
from taskboard.middleware.tenant import TenantHandleMiddleware, _extract_handle_from_host


class TestHandleExtraction:
    @pytest.mark.parametrize(
        "host,expected",
        [
            ("acme.localhost", "acme"),
            ("ACME.localhost:8000", "acme"),
            ("localhost", None),
            ("localhost:8000", None),
            ("a.b.localhost", None),
            ("acme.example.com", None),
            ("", None),
        ],
    )
    def test_extract_handle_from_host(self, host, expected):
        assert _extract_handle_from_host(host, "localhost") == expected


def _tenant_app() -> FastAPI:
    app = FastAPI()

    @app.get("/handle")
    async def handle(request: Request):
        return {"handle": request.state.tenant_handle}

    app.add_middleware(TenantHandleMiddleware)
    return app


class TestTenantHandleMiddleware:
    def test_header_wins_over_subdomain(self):
        client = TestClient(_tenant_app(), base_url="http://globex.localhost")
        response = client.get("/handle", headers={"X-Tenant-Slug": " Acme "})
        assert response.json() == {"handle": "acme"}

    def test_subdomain_used_without_header(self):
        client = TestClient(_tenant_app(), base_url="http://globex.localhost")
        assert client.get("/handle").json() == {"handle": "globex"}

    def test_no_handle(self):
        client = TestClient(_tenant_app(), base_url="http://localhost")
        assert client.get("/handle").json() == {"handle": None}


def _logging_app() -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"request_id": get_request_id()}

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    app.add_middleware(StructuredLoggingMiddleware, logger_name="test.access")
    return app


class TestStructuredLoggingMiddleware:
    def test_generates_request_id(self):
        response = TestClient(_logging_app()).get("/ping")
        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json() == {"request_id": request_id}

    def test_echoes_client_request_id(self):
        response = TestClient(_logging_app()).get("/ping", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json() == {"request_id": "req-123"}

    def test_request_id_reset_after_request(self):
        TestClient(_logging_app()).get("/ping", headers={"X-Request-ID": "req-456"})
        assert get_request_id() == ""

    def test_access_log_written(self, caplog):
        with caplog.at_level(logging.INFO, logger="test.access"):
            TestClient(_logging_app()).get("/ping")
        records = [record for record in caplog.records if record.name == "test.access"]
        assert len(records) == 1
        assert records[0].status_code == 200
        assert records[0].path == "/ping"

    def test_health_checks_not_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="test.access"):
            TestClient(_logging_app()).get("/api/health")
        assert not [record for record in caplog.records if record.name == "test.access"]


class TestFormatting:
    def test_structured_formatter_emits_json_with_extras(self):
        record = logging.LogRecord("taskboard", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.request_id = "req-1"
        record.tenant_id = "tenant-1"

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["request_id"] == "req-1"
        assert payload["tenant_id"] == "tenant-1"
        assert "user_id" not in payload

    def test_request_id_filter_stamps_records(self):
        record = logging.LogRecord("taskboard", logging.INFO, __file__, 1, "msg", (), None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == ""


class TestClientIp:
    def _request(self, headers: dict) -> Request:
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [(key.lower().encode(), value.encode()) for key, value in headers.items()],
            "client": ("10.0.0.9", 1234),
        }
        return Request(scope)

    def test_forwarded_for_first_hop(self):
        assert get_client_ip(self._request({"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})) == "198.51.100.1"

    def test_real_ip(self):
        assert get_client_ip(self._request({"X-Real-IP": "198.51.100.2"})) == "198.51.100.2"

    def test_socket_address(self):
        assert get_client_ip(self._request({})) == "10.0.0.9"
