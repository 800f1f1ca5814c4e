"""
Structured logging, distributed tracing and metrics utilities.

Instances are created from ``Settings`` and injected into the pipeline;
there is no process-wide logger or tracer.
"""

from lambda_kit.observability.logger import LOG_LEVELS, ServiceLogger
from lambda_kit.observability.metrics import ServiceMetrics
from lambda_kit.observability.tracer import (
    ServiceTracer,
    TraceSegment,
    TracingConfig,
    create_correlation_id,
    get_segment_id,
    get_trace_id,
)

__all__ = [
    'LOG_LEVELS',
    'ServiceLogger',
    'ServiceMetrics',
    'ServiceTracer',
    'TraceSegment',
    'TracingConfig',
    'create_correlation_id',
    'get_segment_id',
    'get_trace_id',
]
