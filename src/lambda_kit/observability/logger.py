"""
Structured logging built on the AWS Lambda Powertools Logger.

``ServiceLogger`` owns a Powertools logger (the sink) plus an immutable set
of fields merged into every record. Decoration methods return new instances
that share the sink, so loggers derived for different requests can be used
concurrently without touching each other's fields.
"""

import functools
import json
from typing import IO, TYPE_CHECKING, Any, Dict, Mapping, Optional

from aws_lambda_powertools.logging import Logger

if TYPE_CHECKING:
    from lambda_kit.config import Settings
    from lambda_kit.models.request import RequestContext

# Powertools understands stdlib level names only
LOG_LEVELS = {
    'debug': 'DEBUG',
    'info': 'INFO',
    'warn': 'WARNING',
    'error': 'ERROR',
    'fatal': 'CRITICAL',
    'panic': 'CRITICAL',
}


class ServiceLogger:
    """
    Structured logger carrying service metadata on every record.

    Powertools keeps one stdlib logger per service name and configures it
    only the first time. A second ``ServiceLogger`` for the same service
    therefore writes through the first one's handler: its own ``level``,
    ``log_format`` and ``stream`` are ignored. Pass ``sink=`` to share a
    logger explicitly, or use distinct service names for independent output.
    """

    def __init__(
        self,
        service: str,
        version: str,
        environment: str,
        level: str = 'info',
        log_format: str = 'json',
        fields: Optional[Mapping[str, Any]] = None,
        stream: Optional[IO[str]] = None,
        sink: Optional[Logger] = None,
    ) -> None:
        """
        Initialize the logger.

        Args:
            service: Service name, emitted as ``service``
            version: Service version, emitted as ``version``
            environment: Deployment environment, emitted as ``environment``
            level: Configuration level name (debug, info, warn, error, fatal, panic)
            log_format: ``json`` for compact records, ``console`` for indented ones
            fields: Extra fields attached to every record
            stream: Output stream, stdout when omitted
            sink: Existing Powertools logger to share instead of creating one
        """
        self.service = service
        self.version = version
        self.environment = environment
        self._fields: Dict[str, Any] = {'version': version, 'environment': environment}
        self._fields.update(fields or {})

        if sink is None:
            options: Dict[str, Any] = {}
            if log_format == 'console':
                options['json_serializer'] = functools.partial(json.dumps, indent=2, default=str)
            sink = Logger(
                service=service,
                level=LOG_LEVELS.get(level, 'INFO'),
                stream=stream,
                use_rfc3339=True,
                **options,
            )
        self._sink = sink

    @classmethod
    def from_settings(cls, settings: 'Settings', stream: Optional[IO[str]] = None) -> 'ServiceLogger':
        """Create a logger from application settings."""
        fields: Dict[str, Any] = {}
        if settings.AWS_LAMBDA_FUNCTION_NAME:
            fields['function_name'] = settings.AWS_LAMBDA_FUNCTION_NAME
        if settings.AWS_LAMBDA_FUNCTION_VERSION:
            fields['function_version'] = settings.AWS_LAMBDA_FUNCTION_VERSION
        if settings.AWS_REGION:
            fields['region'] = settings.AWS_REGION

        return cls(
            service=settings.SERVICE_NAME,
            version=settings.SERVICE_VERSION,
            environment=settings.ENVIRONMENT,
            level=settings.LOG_LEVEL,
            log_format=settings.LOG_FORMAT,
            fields=fields,
            stream=stream,
        )

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    @property
    def sink(self) -> Logger:
        return self._sink

    def _derive(self, fields: Mapping[str, Any]) -> 'ServiceLogger':
        derived = object.__new__(ServiceLogger)
        derived.service = self.service
        derived.version = self.version
        derived.environment = self.environment
        derived._fields = {**self._fields, **fields}
        derived._sink = self._sink
        return derived

    # Decoration

    def with_fields(self, fields: Mapping[str, Any]) -> 'ServiceLogger':
        return self._derive(fields)

    def with_request_id(self, request_id: str) -> 'ServiceLogger':
        return self._derive({'request_id': request_id})

    def with_error(self, error: Optional[BaseException]) -> 'ServiceLogger':
        if error is None:
            return self
        return self._derive({'error': str(error), 'error_type': type(error).__name__})

    def with_context(self, ctx: Optional['RequestContext']) -> 'ServiceLogger':
        """Attach request id and trace identifiers from a request context."""
        if ctx is None:
            return self

        fields: Dict[str, Any] = {}
        if ctx.segment is not None:
            fields['trace_id'] = ctx.segment.trace_id
            fields['segment_id'] = ctx.segment.id
        if ctx.request_id:
            fields['request_id'] = ctx.request_id

        return self._derive(fields) if fields else self

    # Leveled logging

    def _extra(self, extra: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        if not extra:
            return dict(self._fields)
        return {**self._fields, **extra}

    def debug(self, msg: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._sink.debug(msg, extra=self._extra(extra), stacklevel=3)

    def info(self, msg: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._sink.info(msg, extra=self._extra(extra), stacklevel=3)

    def warning(self, msg: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._sink.warning(msg, extra=self._extra(extra), stacklevel=3)

    warn = warning

    def error(self, msg: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._sink.error(msg, extra=self._extra(extra), stacklevel=3)

    def exception(self, msg: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._sink.exception(msg, extra=self._extra(extra), stacklevel=3)

    def fatal(self, msg: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        """Log at critical level, flush, and terminate the process."""
        self._sink.critical(msg, extra=self._extra(extra), stacklevel=3)
        self.close()
        raise SystemExit(1)

    # Request lifecycle

    def log_http_request(
        self,
        ctx: Optional['RequestContext'],
        method: str,
        path: str,
        status_code: int,
        duration_ms: int,
    ) -> None:
        self.with_context(ctx).info('HTTP request completed', extra={
            'http_method': method,
            'http_path': path,
            'http_status': status_code,
            'duration_ms': duration_ms,
        })

    def log_lambda_start(
        self,
        ctx: Optional['RequestContext'],
        function_name: str,
        function_version: str,
        remaining_time_ms: int,
    ) -> None:
        self.with_context(ctx).info('Lambda function invocation started', extra={
            'function_name': function_name,
            'function_version': function_version,
            'remaining_time_ms': remaining_time_ms,
        })

    def log_lambda_end(self, ctx: Optional['RequestContext'], duration_ms: int) -> None:
        self.with_context(ctx).info('Lambda function invocation completed', extra={
            'duration_ms': duration_ms,
        })

    def log_lambda_error(self, ctx: Optional['RequestContext'], error: BaseException, msg: str) -> None:
        self.with_context(ctx).with_error(error).error(msg)

    def close(self) -> None:
        """Flush buffered records to the sink's handlers."""
        for handler in self._sink.handlers:
            handler.flush()
