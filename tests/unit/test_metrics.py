"""
Unit tests for the metrics wrapper.
"""

from unittest.mock import Mock

from aws_lambda_powertools.metrics import MetricUnit

from lambda_kit.config import load
from lambda_kit.observability.metrics import ServiceMetrics


class TestServiceMetrics:
    """Test cases for ServiceMetrics."""

    def test_count_and_flush(self):
        """Test that counters are recorded and flushed."""
        client = Mock()
        metrics = ServiceMetrics(namespace="Test", service="svc", metrics=client)

        metrics.count("RequestCount")
        metrics.count("Http200", 2)
        metrics.flush()

        client.add_metric.assert_any_call(name="RequestCount", unit=MetricUnit.Count, value=1)
        client.add_metric.assert_any_call(name="Http200", unit=MetricUnit.Count, value=2)
        client.flush_metrics.assert_called_once_with(raise_on_empty_metrics=False)

    def test_disabled_metrics_are_noop(self):
        """Test that a disabled client never touches the backend."""
        client = Mock()
        metrics = ServiceMetrics(namespace="Test", service="svc", enabled=False, metrics=client)

        metrics.count("RequestCount")
        metrics.flush()

        client.add_metric.assert_not_called()
        client.flush_metrics.assert_not_called()

    def test_from_settings_respects_toggle(self):
        """Test construction from settings."""
        metrics = ServiceMetrics.from_settings(load({"ENABLE_METRICS": "false"}))

        assert metrics.enabled is False
