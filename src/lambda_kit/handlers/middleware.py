"""
Composable request middlewares.

A middleware takes the next handler in the chain and returns a handler
with one cross-cutting behaviour added. Handlers receive the request
context explicitly and either return a result or raise.
"""

import json
import threading
import time
from concurrent.futures import Future, wait
from datetime import timedelta
from typing import Any, Callable, Iterable, Optional

from lambda_kit.config.durations import format_duration
from lambda_kit.handlers.errors import RequestTimeoutError, ValidationError
from lambda_kit.models.request import HttpRequest, RequestContext
from lambda_kit.observability.logger import ServiceLogger
from lambda_kit.observability.tracer import ServiceTracer

HandlerFunc = Callable[[RequestContext, HttpRequest], Any]
Middleware = Callable[[HandlerFunc], HandlerFunc]

ALLOWED_METHODS = frozenset({'GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS'})
BODY_METHODS = frozenset({'POST', 'PUT', 'PATCH'})
JSON_CONTENT_TYPE = 'application/json'


def compose(handler: HandlerFunc, middlewares: Iterable[Middleware]) -> HandlerFunc:
    """Wrap ``handler`` so the first middleware listed runs outermost."""
    for middleware in reversed(list(middlewares)):
        handler = middleware(handler)
    return handler


def validation_middleware() -> Middleware:
    """Reject unknown HTTP methods and non-JSON bodies."""

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: RequestContext, request: HttpRequest) -> Any:
            if request.method not in ALLOWED_METHODS:
                raise ValidationError(
                    f'HTTP method {request.method} is not allowed',
                    field='httpMethod',
                    value=request.method,
                )

            if request.method in BODY_METHODS and request.body:
                content_type = request.header('Content-Type')
                if content_type != JSON_CONTENT_TYPE:
                    raise ValidationError(
                        'Content-Type must be application/json for requests with body',
                        field='content-type',
                        value=content_type,
                    )

            return next_handler(ctx, request)

        return handler

    return middleware


def json_parsing_middleware() -> Middleware:
    """Parse a non-empty body once and attach it to the context."""

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: RequestContext, request: HttpRequest) -> Any:
            if request.body:
                try:
                    parsed = json.loads(request.body)
                except (ValueError, RecursionError) as exc:
                    raise ValidationError('Invalid JSON in request body', field='body', cause=exc) from exc
                ctx = ctx.with_parsed_body(parsed)

            return next_handler(ctx, request)

        return handler

    return middleware


def logging_middleware(logger: ServiceLogger) -> Middleware:

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: RequestContext, request: HttpRequest) -> Any:
            logger.with_context(ctx).info('Processing request', extra={
                'method': request.method,
                'path': request.path,
                'query': request.query_parameters,
                'headers': request.headers,
                'user_agent': request.user_agent,
                'source_ip': request.source_ip,
            })
            return next_handler(ctx, request)

        return handler

    return middleware


def tracing_middleware(tracer: ServiceTracer) -> Middleware:

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: RequestContext, request: HttpRequest) -> Any:
            metadata = {
                'headers': request.headers,
                'query_parameters': request.query_parameters,
                'path_parameters': request.path_parameters,
            }
            if request.body:
                metadata['body_size'] = len(request.body)
            tracer.add_metadata(ctx, 'request', metadata)
            return next_handler(ctx, request)

        return handler

    return middleware


def timeout_middleware(timeout: timedelta, tracer: Optional[ServiceTracer] = None) -> Middleware:
    """
    Race the handler against ``timeout``.

    The handler runs on a daemon thread. When the deadline passes first the
    caller gets a ``RequestTimeoutError`` right away and the context's
    cancellation event is set; the handler thread is not killed, so handlers
    with side effects must poll ``ctx.cancelled`` and stop on their own.
    """
    seconds = timeout.total_seconds()

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: RequestContext, request: HttpRequest) -> Any:
            ctx = ctx.with_deadline(time.monotonic() + seconds)
            future: Future = Future()

            def run() -> None:
                if not future.set_running_or_notify_cancel():
                    return
                try:
                    if tracer is not None:
                        tracer.attach(ctx)
                    result = next_handler(ctx, request)
                except BaseException as exc:  # SystemExit from fatal still settles the future
                    future.set_exception(exc)
                else:
                    future.set_result(result)

            worker = threading.Thread(target=run, name=f'handler-{ctx.request_id}', daemon=True)
            worker.start()

            done, _ = wait([future], timeout=seconds)
            if future in done:
                return future.result()

            ctx.cancel()
            if tracer is not None:
                tracer.add_annotation(ctx, 'timeout', True)
            raise RequestTimeoutError(f'Request timeout after {format_duration(timeout)}', timeout=timeout)

        return handler

    return middleware
