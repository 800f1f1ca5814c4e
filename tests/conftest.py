"""
Pytest configuration and shared fixtures for the Lambda observability template.

Environment variables are set at import time so modules that load settings
on import (the example functions) see the test configuration.
"""

import base64
import io
import os
import uuid
from datetime import timedelta
from typing import Any, Dict
from unittest.mock import Mock

import boto3
import pytest
from aws_xray_sdk import global_sdk_config
from aws_xray_sdk.core import AWSXRayRecorder
from moto import mock_aws

os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "SERVICE_NAME": "test-service",
    "SERVICE_VERSION": "test-1.0.0",
    "ENVIRONMENT": "test",
    "LOG_LEVEL": "debug",
    "LOG_FORMAT": "json",
    "ENABLE_TRACING": "false",
    "ENABLE_METRICS": "false",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
    "POWERTOOLS_METRICS_NAMESPACE": "TestLambdaTemplate",
})
os.environ.pop("AWS_LAMBDA_FUNCTION_NAME", None)
os.environ.pop("USERS_TABLE_NAME", None)

from lambda_kit.config import load  # noqa: E402
from lambda_kit.models.request import RequestContext  # noqa: E402
from lambda_kit.observability.logger import ServiceLogger  # noqa: E402

USERS_TABLE_NAME = "test-users-table"


@pytest.fixture
def settings():
    """Settings built from the test environment."""
    return load()


@pytest.fixture
def fast_settings():
    """Settings with a short response timeout for timeout scenarios."""
    return load({
        "SERVICE_NAME": "test-service",
        "SERVICE_VERSION": "test-1.0.0",
        "ENVIRONMENT": "test",
        "ENABLE_TRACING": "false",
        "ENABLE_METRICS": "false",
        "REQUEST_TIMEOUT": "1s",
        "RESPONSE_TIMEOUT": "100ms",
    })


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def service_logger(log_stream):
    """Logger writing to an in-memory stream.

    Powertools shares the underlying stdlib logger per service name, so each
    test gets its own name to keep its output isolated.
    """
    return ServiceLogger(
        service=f"test-service-{uuid.uuid4().hex[:8]}",
        version="test-1.0.0",
        environment="test",
        level="debug",
        stream=log_stream,
    )


@pytest.fixture
def request_context() -> RequestContext:
    return RequestContext(request_id="test-request-id-123", function_name="test-lambda-function")


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-lambda-function"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-lambda-function"
    context.memory_limit_in_mb = 512
    context.get_remaining_time_in_millis.return_value = 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-lambda-function"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    return context


def _make_lambda_context(request_id: str) -> Mock:
    context = Mock()
    context.function_name = "test-lambda-function"
    context.function_version = "1"
    context.get_remaining_time_in_millis.return_value = 30000
    context.aws_request_id = request_id
    return context


def _make_v1_event(
    method: str = "GET",
    path: str = "/hello",
    headers: Dict[str, str] = None,
    body: str = None,
    path_parameters: Dict[str, str] = None,
    base64_body: bool = False,
) -> Dict[str, Any]:
    """Build an API Gateway REST API proxy event."""
    if body is not None and base64_body:
        body = base64.b64encode(body.encode("utf-8")).decode("ascii")
    return {
        "resource": path,
        "path": path,
        "httpMethod": method,
        "headers": headers if headers is not None else {"User-Agent": "test-agent/1.0"},
        "queryStringParameters": None,
        "pathParameters": path_parameters,
        "body": body,
        "isBase64Encoded": base64_body,
        "requestContext": {
            "requestId": "gateway-request-id",
            "stage": "test",
            "httpMethod": method,
            "path": path,
            "identity": {
                "sourceIp": "127.0.0.1",
                "userAgent": "test-agent/1.0",
            },
        },
    }


def _make_v2_event(method: str = "GET", path: str = "/hello", headers: Dict[str, str] = None, body: str = None) -> Dict[str, Any]:
    """Build an API Gateway HTTP API (payload v2) event."""
    return {
        "version": "2.0",
        "routeKey": f"{method} {path}",
        "rawPath": path,
        "rawQueryString": "",
        "headers": headers if headers is not None else {"user-agent": "test-agent/1.0"},
        "body": body,
        "isBase64Encoded": False,
        "requestContext": {
            "requestId": "gateway-request-id",
            "http": {
                "method": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "sourceIp": "127.0.0.1",
                "userAgent": "test-agent/1.0",
            },
        },
    }


@pytest.fixture
def api_gateway_event() -> Dict[str, Any]:
    return _make_v1_event()


@pytest.fixture
def users_table():
    """Create a mock DynamoDB users table for testing."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(
            TableName=USERS_TABLE_NAME,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
        yield table


@pytest.fixture
def short_timeout() -> timedelta:
    return timedelta(milliseconds=100)


@pytest.fixture
def xray_recorder(monkeypatch):
    """Real X-Ray recorder that samples everything and hands finished traces to a mock emitter."""
    monkeypatch.delenv("AWS_XRAY_SDK_ENABLED", raising=False)
    was_enabled = global_sdk_config.sdk_enabled()
    global_sdk_config.set_sdk_enabled(True)

    recorder = AWSXRayRecorder()
    recorder.configure(sampling=False, context_missing="LOG_ERROR", emitter=Mock())
    yield recorder

    global_sdk_config.set_sdk_enabled(was_enabled)


@pytest.fixture
def integration_client():
    """HTTP client for end-to-end testing against a deployed API."""
    import httpx

    base_url = os.environ.get("API_BASE_URL")
    if not base_url:
        pytest.skip("API_BASE_URL is not set")

    with httpx.Client(base_url=base_url, timeout=30.0) as client:
        yield client


# Pytest configuration
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "e2e" in path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture
def make_event():
    """Factory for REST API events."""
    return _make_v1_event


@pytest.fixture
def make_event_v2():
    """Factory for HTTP API events."""
    return _make_v2_event


@pytest.fixture
def make_context():
    """Factory for Lambda contexts with a given request id."""
    return _make_lambda_context
