"""
End-to-end tests against a deployed API.

Set API_BASE_URL to the stage URL (for example
https://abc123.execute-api.us-east-1.amazonaws.com/dev) to run them; they
are skipped otherwise.
"""

import httpx
import pytest


@pytest.mark.e2e
class TestHelloAPI:
    """End-to-end tests for the hello function."""

    def test_get_hello(self, integration_client: httpx.Client):
        """Test the greeting endpoint."""
        response = integration_client.get("/hello")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"

        result = response.json()
        assert result["data"]["message"] == "Hello from Lambda with observability!"
        assert result["requestId"]
        assert response.headers["x-request-id"] == result["requestId"]

    def test_post_text_body_rejected(self, integration_client: httpx.Client):
        """Test that non-JSON bodies are rejected."""
        response = integration_client.post("/hello", content="hello", headers={"Content-Type": "text/plain"})

        assert response.status_code == 400
        assert "Content-Type must be application/json" in response.json()["message"]


@pytest.mark.e2e
class TestUsersAPI:
    """End-to-end tests for the users function."""

    def test_list_users(self, integration_client: httpx.Client):
        """Test listing users."""
        response = integration_client.get("/users")

        assert response.status_code == 200
        result = response.json()["data"]
        assert result["count"] == len(result["users"])

    def test_unknown_user(self, integration_client: httpx.Client):
        """Test that unknown ids return 404."""
        response = integration_client.get("/users/does-not-exist")

        assert response.status_code == 404
        assert "does-not-exist" in response.json()["message"]

    def test_cors_headers(self, integration_client: httpx.Client):
        """Test that CORS headers are present."""
        response = integration_client.get("/users")

        assert response.headers["access-control-allow-origin"] == "*"
