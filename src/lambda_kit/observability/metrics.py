"""
CloudWatch embedded metrics built on the AWS Lambda Powertools Metrics client.
"""

from typing import TYPE_CHECKING, Optional

from aws_lambda_powertools.metrics import Metrics, MetricUnit

if TYPE_CHECKING:
    from lambda_kit.config import Settings


class ServiceMetrics:
    """Counter metrics that become no-ops when metrics are disabled."""

    def __init__(self, namespace: str, service: str, enabled: bool = True, metrics: Optional[Metrics] = None) -> None:
        self.enabled = enabled
        self._metrics = None
        if enabled:
            self._metrics = metrics if metrics is not None else Metrics(namespace=namespace, service=service)

    @classmethod
    def from_settings(cls, settings: 'Settings') -> 'ServiceMetrics':
        return cls(
            namespace=settings.METRICS_NAMESPACE,
            service=settings.SERVICE_NAME,
            enabled=settings.ENABLE_METRICS,
        )

    def count(self, name: str, value: int = 1) -> None:
        if self._metrics is not None:
            self._metrics.add_metric(name=name, unit=MetricUnit.Count, value=value)

    def flush(self) -> None:
        """Publish collected metrics as an EMF record."""
        if self._metrics is not None:
            self._metrics.flush_metrics(raise_on_empty_metrics=False)
