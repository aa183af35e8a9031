"""
Tests for the application-wide error handlers.
"""

from fastapi.testclient import TestClient

from main import app
from security import resolve_session


def test_unexpected_failure_is_json_500_and_logged(client, caplog):
    def broken_resolver():
        raise RuntimeError("resolver exploded")

    app.dependency_overrides[resolve_session] = broken_resolver
    safe_client = TestClient(app, raise_server_exceptions=False)

    with caplog.at_level("ERROR", logger="errors"):
        response = safe_client.get("/movements")

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}
    assert "Unhandled error on GET /movements" in caplog.text
    assert "resolver exploded" in caplog.text


def test_validation_errors_are_400_with_error_body(client):
    response = client.post("/auth/register", json={"name": "Ana"})
    assert response.status_code == 400
    assert set(response.json()) == {"error"}
