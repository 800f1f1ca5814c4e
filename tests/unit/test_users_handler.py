"""
Unit tests for the users function.
"""

import json

import pytest

from lambda_kit.dal.memory_handler import InMemoryUserRepository
from lambda_kit.handlers import users_handler
from lambda_kit.models.user import User


@pytest.fixture(autouse=True)
def sample_repository(monkeypatch):
    """Give each test a fresh in-memory store."""
    repository = InMemoryUserRepository()
    monkeypatch.setattr(users_handler, "repository", repository)
    return repository


class TestUsersHandler:
    """Test cases for the users function."""

    def test_list_users(self, make_event, lambda_context):
        """Test listing the sample users."""
        response = users_handler.lambda_handler(make_event("GET", "/users"), lambda_context)
        data = json.loads(response["body"])["data"]

        assert response["statusCode"] == 200
        assert data["count"] == 3
        assert [u["name"] for u in data["users"]] == ["John Doe", "Jane Smith", "Alice Johnson"]
        assert data["users"][0]["createdAt"] == "2024-01-15T10:30:00Z"
        assert data["requestId"] == "test-request-id-123"

    def test_get_user(self, make_event, lambda_context):
        """Test fetching a single user."""
        event = make_event("GET", "/users/2", path_parameters={"id": "2"})

        response = users_handler.lambda_handler(event, lambda_context)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["data"]["email"] == "jane@example.com"

    def test_unknown_user_is_not_found(self, make_event, lambda_context):
        """Test that a missing user yields 404 naming the id."""
        event = make_event("GET", "/users/999", path_parameters={"id": "999"})

        response = users_handler.lambda_handler(event, lambda_context)
        message = json.loads(response["body"])["message"]

        assert response["statusCode"] == 404
        assert "not found" in message
        assert "999" in message

    def test_patch_is_rejected(self, make_event, lambda_context):
        """Test that only GET is accepted."""
        response = users_handler.lambda_handler(make_event("PATCH", "/users"), lambda_context)

        assert response["statusCode"] == 400
        assert "only GET method is allowed" in json.loads(response["body"])["message"]

    def test_custom_repository(self, monkeypatch, make_event, lambda_context):
        """Test that the handler reads from the configured store."""
        monkeypatch.setattr(users_handler, "repository", InMemoryUserRepository([
            User(id="7", name="Grace", email="grace@example.com", created_at="2024-02-01T00:00:00Z"),
        ]))

        data = json.loads(users_handler.lambda_handler(make_event("GET", "/users"), lambda_context)["body"])["data"]

        assert data["count"] == 1
        assert data["users"][0]["id"] == "7"

    def test_v2_handler(self, make_event_v2, lambda_context):
        """Test the HTTP API entry point."""
        response = users_handler.lambda_handler_v2(make_event_v2("GET", "/users"), lambda_context)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["data"]["count"] == 3
