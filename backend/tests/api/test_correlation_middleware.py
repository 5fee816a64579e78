"""Tests for correlation ID middleware.

Verifies:
- X-Request-ID header in responses
- Custom correlation ID echoing
- Debug ID in error responses without secret leakage
- Different correlation IDs for different requests
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from sidepilot.main import app

pytestmark = pytest.mark.integration


def test_response_includes_correlation_id_header():
    """Every API response should include X-Request-ID header with valid UUID."""
    client = TestClient(app)

    response = client.get("/api/health")

    assert response.status_code == 200
    assert "x-request-id" in response.headers
    try:
        uuid.UUID(response.headers["x-request-id"])
    except ValueError:
        raise AssertionError(f"X-Request-ID header value '{response.headers['x-request-id']}' is not a valid UUID")


def test_custom_correlation_id_echoed():
    """Client-provided X-Request-ID should be echoed back in response."""
    client = TestClient(app)

    response = client.get("/api/health", headers={"X-Request-ID": "custom-id-123"})

    assert response.headers["x-request-id"] == "custom-id-123"


def test_error_response_includes_debug_id():
    """Error responses should include debug_id without leaking internals."""
    client = TestClient(app)

    response = client.get("/api/projects")

    assert response.status_code == 401
    body = response.json()
    assert "debug_id" in body
    uuid.UUID(body["debug_id"])
    assert body["message"] == "No session token provided"
    assert "Traceback" not in response.text


def test_unknown_route_uses_error_envelope():
    client = TestClient(app)

    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert "debug_id" in response.json()


def test_different_requests_get_different_ids():
    client = TestClient(app)

    first = client.get("/api/health").headers["x-request-id"]
    second = client.get("/api/health").headers["x-request-id"]

    assert first != second
