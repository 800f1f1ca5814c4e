"""
Request pipeline turning API Gateway events into HTTP responses.

``ApiHandler`` opens the invocation segment, runs the composed middleware
chain and business handler, then renders the outcome. Every failure raised
by the chain becomes a well-formed error response; nothing propagates to the
Lambda runtime.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from aws_lambda_powertools.utilities.typing import LambdaContext

from lambda_kit.config import Settings
from lambda_kit.handlers.errors import BaseServiceError, ValidationError, get_status_code
from lambda_kit.handlers.middleware import (
    HandlerFunc,
    Middleware,
    compose,
    json_parsing_middleware,
    logging_middleware,
    timeout_middleware,
    tracing_middleware,
    validation_middleware,
)
from lambda_kit.http.response import Response, ResponseBuilder
from lambda_kit.models.request import HttpRequest, RequestContext
from lambda_kit.observability.logger import ServiceLogger
from lambda_kit.observability.metrics import ServiceMetrics
from lambda_kit.observability.tracer import ServiceTracer, create_correlation_id

LambdaHandler = Callable[[Dict[str, Any], LambdaContext], Dict[str, Any]]
RequestParser = Callable[[Dict[str, Any]], HttpRequest]


def render_error(builder: ResponseBuilder, error: BaseException) -> Response:
    """Render an error through the status table; untyped errors never leak their text."""
    if isinstance(error, BaseServiceError):
        return builder.error(get_status_code(error), error.message, error.cause)
    return builder.internal_server_error('Internal server error')


class ApiHandler:
    """Wraps business handlers with logging, tracing, metrics and error rendering."""

    def __init__(
        self,
        settings: Settings,
        logger: ServiceLogger,
        tracer: ServiceTracer,
        metrics: Optional[ServiceMetrics] = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.tracer = tracer
        self.metrics = metrics or ServiceMetrics(
            namespace=settings.METRICS_NAMESPACE,
            service=settings.SERVICE_NAME,
            enabled=False,
        )

    # Bound middleware factories

    def validation(self) -> Middleware:
        return validation_middleware()

    def json_parsing(self) -> Middleware:
        return json_parsing_middleware()

    def logging(self) -> Middleware:
        return logging_middleware(self.logger)

    def tracing(self) -> Middleware:
        return tracing_middleware(self.tracer)

    def timeout(self) -> Middleware:
        """Timeout middleware bounded by the configured response timeout."""
        return timeout_middleware(self.settings.RESPONSE_TIMEOUT, self.tracer)

    def default_middlewares(self) -> List[Middleware]:
        return [self.validation(), self.json_parsing(), self.logging(), self.tracing(), self.timeout()]

    # Entry points

    def wrap(self, handler: HandlerFunc, *middlewares: Middleware) -> LambdaHandler:
        """Return a Lambda handler for REST API (payload v1) events."""
        chain = compose(handler, middlewares)

        def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
            return self.handle(chain, event, context, HttpRequest.from_v1).to_dict()

        return lambda_handler

    def wrap_v2(self, handler: HandlerFunc, *middlewares: Middleware) -> LambdaHandler:
        """Return a Lambda handler for HTTP API (payload v2) events."""
        chain = compose(handler, middlewares)

        def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
            return self.handle(chain, event, context, HttpRequest.from_v2).to_v2()

        return lambda_handler

    def handle(
        self,
        chain: HandlerFunc,
        event: Dict[str, Any],
        lambda_context: Optional[LambdaContext],
        parse: RequestParser = HttpRequest.from_v1,
    ) -> Response:
        """
        Run one invocation through ``chain`` and render the result.

        An event that ``parse`` rejects still produces a response: the
        failure is raised from inside the chain, so it is logged, traced
        and rendered like any other error.
        """
        start = time.perf_counter()
        try:
            request = parse_request(parse, event)
        except Exception as exc:
            request = HttpRequest(method='', path='', raw_event=event)
            chain = _raise(exc)

        ctx = RequestContext.from_lambda_context(lambda_context)
        if not ctx.request_id:
            ctx = ctx.with_request_id(request.request_id or create_correlation_id(ctx))

        ctx, segment = self.tracer.start_segment(ctx, self.settings.SERVICE_NAME)
        self.tracer.add_annotation(ctx, 'http_method', request.method)
        self.tracer.add_annotation(ctx, 'http_path', request.path)
        self.tracer.add_annotation(ctx, 'request_id', ctx.request_id)

        self.logger.log_lambda_start(ctx, ctx.function_name, ctx.function_version, ctx.remaining_time_ms)
        self.metrics.count('RequestCount')

        builder = (
            ResponseBuilder()
            .with_request_id(ctx.request_id)
            .with_path(request.path)
            .with_cors()
            .with_cache_control(self.settings.CACHE_MAX_AGE)
        )

        try:
            result = chain(ctx, request)
        except Exception as exc:
            response = self._on_error(ctx, request, builder, exc, start)
        else:
            response = self._on_success(ctx, request, builder, result, start)
        finally:
            self.tracer.close(segment)
            self.metrics.flush()

        return response

    def _on_success(
        self,
        ctx: RequestContext,
        request: HttpRequest,
        builder: ResponseBuilder,
        result: Any,
        start: float,
    ) -> Response:
        response = result if isinstance(result, Response) else builder.ok(result)
        duration_ms = _elapsed_ms(start)

        self.tracer.add_annotation(ctx, 'http_status', response.status_code)
        self.tracer.add_annotation(ctx, 'duration_ms', duration_ms)
        self.tracer.add_annotation(ctx, 'success', response.status_code < 400)
        self.tracer.add_metadata(ctx, 'response', {'size_bytes': len(response.body)})

        self.logger.log_http_request(ctx, request.method, request.path, response.status_code, duration_ms)
        self.logger.log_lambda_end(ctx, duration_ms)

        self.metrics.count('SuccessCount' if response.status_code < 400 else 'ErrorCount')
        self.metrics.count(f'Http{response.status_code}')
        return response

    def _on_error(
        self,
        ctx: RequestContext,
        request: HttpRequest,
        builder: ResponseBuilder,
        error: BaseException,
        start: float,
    ) -> Response:
        self.logger.log_lambda_error(ctx, error, 'Handler execution failed')
        self.tracer.add_error(ctx, error)
        self.tracer.add_annotation(ctx, 'error', True)

        response = render_error(builder, error)
        duration_ms = _elapsed_ms(start)

        self.logger.log_http_request(ctx, request.method, request.path, response.status_code, duration_ms)
        self.tracer.add_annotation(ctx, 'http_status', response.status_code)
        self.tracer.add_annotation(ctx, 'duration_ms', duration_ms)

        self.metrics.count('ErrorCount')
        self.metrics.count(f'Http{response.status_code}')
        return response


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def parse_request(parse: RequestParser, event: Dict[str, Any]) -> HttpRequest:
    """
    Normalise ``event`` with ``parse``, turning malformed events into client errors.

    Raises:
        ValidationError: If the event lacks a field API Gateway always sends,
            or its base64 body is malformed or not UTF-8
    """
    try:
        return parse(event)
    except KeyError as exc:
        name = str(exc.args[0]) if exc.args else ''
        raise ValidationError(f'API Gateway event is missing {name}', field=name, cause=exc) from exc
    except ValueError as exc:
        raise ValidationError('Invalid base64-encoded request body', field='body', cause=exc) from exc


def _raise(error: Exception) -> HandlerFunc:

    def handler(ctx: RequestContext, request: HttpRequest) -> Any:
        raise error

    return handler
