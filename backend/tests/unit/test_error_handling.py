"""
Tests for the error handling middleware and the scan error taxonomy.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from book_scanner.exceptions import (
    ConfigurationError,
    DecodeError,
    EmptyResponse,
    MalformedJson,
    NoTextDetected,
    RateLimited,
    ScanError,
    ServiceError,
    TransportError,
)
from book_scanner.main import app as main_app
from book_scanner.middleware import create_error_response, setup_error_handling


def build_app(debug: bool) -> FastAPI:
    """Minimal app whose routes raise."""
    app = FastAPI()
    setup_error_handling(app, debug=debug)

    @app.get("/scan-error")
    async def scan_error():
        raise NoTextDetected("No Hebrew text detected.", details={"lines": 0})

    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret internals")

    return app


class TestErrorHandlingMiddleware:
    """Tests for ErrorHandlingMiddleware."""

    def test_scan_error_rendered(self):
        """Test that ScanError subclasses keep their status and code."""
        response = TestClient(build_app(debug=False)).get("/scan-error")

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "no_text_detected"
        assert data["message"] == "No Hebrew text detected."
        assert data["details"] is None
        assert len(data["error_id"]) == 8
        assert response.headers["X-Error-Id"] == data["error_id"]

    def test_details_in_debug(self):
        """Test that details are exposed only in debug mode."""
        response = TestClient(build_app(debug=True)).get("/scan-error")

        assert response.json()["details"] == {"lines": 0}

    def test_unexpected_error_sanitized(self):
        """Test that unexpected exceptions do not leak internals."""
        response = TestClient(build_app(debug=False)).get("/crash")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_server_error"
        assert "secret" not in response.text

    def test_unconfigured_pipeline(self):
        """Test that a missing pipeline is reported as a configuration error."""
        main_app.dependency_overrides.clear()

        response = TestClient(main_app).get("/api/scan/current")

        assert response.status_code == 500
        assert response.json()["error"] == "configuration_error"

    def test_create_error_response(self):
        """Test the standalone response builder."""
        response = create_error_response("rate_limited", "Slow down", status_code=429)

        assert response.status_code == 429


class TestScanErrors:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "exc_class,status_code,error_code",
        [
            (DecodeError, 422, "decode_error"),
            (NoTextDetected, 422, "no_text_detected"),
            (TransportError, 502, "transport_error"),
            (ServiceError, 502, "service_error"),
            (EmptyResponse, 502, "empty_response"),
            (MalformedJson, 502, "malformed_json"),
            (RateLimited, 429, "rate_limited"),
            (ConfigurationError, 500, "configuration_error"),
        ],
    )
    def test_codes(self, exc_class, status_code, error_code):
        """Test that each error carries its HTTP status and code."""
        error = exc_class("message")

        assert isinstance(error, ScanError)
        assert error.status_code == status_code
        assert error.error_code == error_code

    def test_to_dict(self):
        """Test the serializable form."""
        error = ServiceError("OCR processing failed", details={"error": "quota"})

        assert error.to_dict() == {
            "error": "service_error",
            "message": "OCR processing failed",
            "details": {"error": "quota"},
        }

    def test_overrides(self):
        """Test per-instance status and code overrides."""
        error = ScanError("custom", status_code=418, error_code="teapot")

        assert (error.status_code, error.error_code) == (418, "teapot")
