"""
Unit tests for the structured logger.
"""

import io
import json
import uuid

import pytest

from lambda_kit.config import load
from lambda_kit.models.request import RequestContext
from lambda_kit.observability.logger import LOG_LEVELS, ServiceLogger
from lambda_kit.observability.tracer import TraceSegment


def read_records(stream: io.StringIO):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestServiceLogger:
    """Test cases for ServiceLogger output."""

    def test_records_carry_service_metadata(self, service_logger, log_stream):
        """Test that every record has service, version and environment."""
        service_logger.info("hello")

        record = read_records(log_stream)[0]
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["service"] == service_logger.service
        assert record["version"] == "test-1.0.0"
        assert record["environment"] == "test"
        assert "timestamp" in record

    def test_extra_fields_are_merged(self, service_logger, log_stream):
        """Test per-call fields."""
        service_logger.warning("careful", extra={"attempt": 2})

        record = read_records(log_stream)[0]
        assert record["level"] == "WARNING"
        assert record["attempt"] == 2

    def test_level_filtering(self, log_stream):
        """Test that records below the configured level are dropped."""
        logger = ServiceLogger(
            service=f"level-test-{uuid.uuid4().hex[:8]}",
            version="1",
            environment="test",
            level="error",
            stream=log_stream,
        )

        logger.info("dropped")
        logger.error("kept")

        assert [r["message"] for r in read_records(log_stream)] == ["kept"]

    def test_same_service_reuses_first_configuration(self):
        """Test that a second logger for a service writes through the first one's handler."""
        service = f"shared-test-{uuid.uuid4().hex[:8]}"
        first_stream, second_stream = io.StringIO(), io.StringIO()
        ServiceLogger(service=service, version="1", environment="test", stream=first_stream)
        second = ServiceLogger(service=service, version="1", environment="test", level="debug", stream=second_stream)

        second.debug("below the first level")
        second.info("routed")

        assert [r["message"] for r in read_records(first_stream)] == ["routed"]
        assert second_stream.getvalue() == ""

    def test_shared_sink(self, service_logger, log_stream):
        """Test that an explicit sink is used as is."""
        shared = ServiceLogger(service="ignored", version="2", environment="test", sink=service_logger.sink)

        shared.info("through the sink")

        record = read_records(log_stream)[0]
        assert record["service"] == service_logger.service
        assert record["version"] == "2"

    def test_level_names_map_to_stdlib(self):
        """Test the configuration level name mapping."""
        assert LOG_LEVELS["warn"] == "WARNING"
        assert LOG_LEVELS["fatal"] == "CRITICAL"
        assert LOG_LEVELS["panic"] == "CRITICAL"

    def test_console_format_indents_records(self, log_stream):
        """Test that console format pretty-prints records."""
        logger = ServiceLogger(
            service=f"console-test-{uuid.uuid4().hex[:8]}",
            version="1",
            environment="test",
            log_format="console",
            stream=log_stream,
        )

        logger.info("pretty")

        output = log_stream.getvalue()
        assert '\n  "message": "pretty"' in output

    def test_from_settings_adds_function_fields(self, log_stream):
        """Test that Lambda identity from settings is attached."""
        settings = load({
            "SERVICE_NAME": f"settings-test-{uuid.uuid4().hex[:8]}",
            "AWS_LAMBDA_FUNCTION_NAME": "hello-fn",
            "AWS_LAMBDA_FUNCTION_VERSION": "7",
            "AWS_REGION": "eu-west-1",
        })
        logger = ServiceLogger.from_settings(settings, stream=log_stream)

        assert logger.fields["function_name"] == "hello-fn"
        assert logger.fields["function_version"] == "7"
        assert logger.fields["region"] == "eu-west-1"


class TestDecoration:
    """Test cases for derived loggers."""

    def test_with_fields_returns_new_logger(self, service_logger, log_stream):
        """Test that decoration does not mutate the parent."""
        child = service_logger.with_fields({"component": "db"})

        assert child is not service_logger
        assert "component" not in service_logger.fields
        assert child.sink is service_logger.sink

        child.info("from child")
        service_logger.info("from parent")

        child_record, parent_record = read_records(log_stream)
        assert child_record["component"] == "db"
        assert "component" not in parent_record

    def test_with_request_id(self, service_logger, log_stream):
        """Test request id decoration."""
        service_logger.with_request_id("req-1").info("tagged")

        assert read_records(log_stream)[0]["request_id"] == "req-1"

    def test_with_error(self, service_logger, log_stream):
        """Test error decoration records the message and type name."""
        service_logger.with_error(KeyError("missing")).error("failed")

        record = read_records(log_stream)[0]
        assert record["error"] == "'missing'"
        assert record["error_type"] == "KeyError"

    def test_with_error_none_is_identity(self, service_logger):
        """Test that decorating with no error returns the same logger."""
        assert service_logger.with_error(None) is service_logger

    def test_with_context_adds_trace_ids(self, service_logger, log_stream):
        """Test trace correlation from a request context."""
        entity = type("Entity", (), {"trace_id": "1-abc-def", "id": "seg-1"})()
        ctx = RequestContext(request_id="req-2", segment=TraceSegment(name="svc", entity=entity))

        service_logger.with_context(ctx).info("correlated")

        record = read_records(log_stream)[0]
        assert record["request_id"] == "req-2"
        assert record["trace_id"] == "1-abc-def"
        assert record["segment_id"] == "seg-1"


class TestLifecycle:
    """Test cases for request lifecycle helpers."""

    def test_log_http_request(self, service_logger, log_stream, request_context):
        """Test the HTTP completion record."""
        service_logger.log_http_request(request_context, "GET", "/hello", 200, 12)

        record = read_records(log_stream)[0]
        assert record["message"] == "HTTP request completed"
        assert record["http_method"] == "GET"
        assert record["http_path"] == "/hello"
        assert record["http_status"] == 200
        assert record["duration_ms"] == 12
        assert record["request_id"] == "test-request-id-123"

    def test_log_lambda_start_and_end(self, service_logger, log_stream, request_context):
        """Test invocation start and end records."""
        service_logger.log_lambda_start(request_context, "fn", "1", 30000)
        service_logger.log_lambda_end(request_context, 15)

        start, end = read_records(log_stream)
        assert start["message"] == "Lambda function invocation started"
        assert start["remaining_time_ms"] == 30000
        assert end["message"] == "Lambda function invocation completed"
        assert end["duration_ms"] == 15

    def test_log_lambda_error(self, service_logger, log_stream, request_context):
        """Test the error record includes the exception type name."""
        service_logger.log_lambda_error(request_context, ValueError("bad"), "Handler execution failed")

        record = read_records(log_stream)[0]
        assert record["level"] == "ERROR"
        assert record["message"] == "Handler execution failed"
        assert record["error_type"] == "ValueError"

    def test_fatal_exits(self, service_logger, log_stream):
        """Test that fatal logs at critical level and exits."""
        with pytest.raises(SystemExit) as exc_info:
            service_logger.fatal("cannot continue")

        assert exc_info.value.code == 1
        assert read_records(log_stream)[0]["level"] == "CRITICAL"
