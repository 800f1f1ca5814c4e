"""
Hello function: a minimal endpoint exercising the full middleware stack.
"""

from typing import Any, Dict

from lambda_kit.config import must_load
from lambda_kit.handlers.pipeline import ApiHandler
from lambda_kit.http.response import utc_timestamp
from lambda_kit.models.output import HelloOutput
from lambda_kit.models.request import HttpRequest, RequestContext
from lambda_kit.observability.logger import ServiceLogger
from lambda_kit.observability.metrics import ServiceMetrics
from lambda_kit.observability.tracer import ServiceTracer

HELLO_MESSAGE = 'Hello from Lambda with observability!'

settings = must_load()
logger = ServiceLogger.from_settings(settings)
tracer = ServiceTracer.from_settings(settings)
metrics = ServiceMetrics.from_settings(settings)
api = ApiHandler(settings, logger, tracer, metrics)


def process_hello_request(ctx: RequestContext, request: HttpRequest) -> Dict[str, Any]:
    """Build the greeting payload for the requested path."""
    tracer.add_annotation(ctx, 'path', request.path)
    logger.with_context(ctx).info('Processing hello request', extra={
        'path': request.path,
        'http_method': request.method,
        'user_agent': request.user_agent,
    })

    output = HelloOutput(
        message=HELLO_MESSAGE,
        path=request.path,
        timestamp=utc_timestamp(),
        environment=settings.ENVIRONMENT,
        request_id=ctx.request_id,
        version=settings.SERVICE_VERSION,
    )
    return output.model_dump(mode='json', by_alias=True)


lambda_handler = api.wrap(process_hello_request, *api.default_middlewares())
lambda_handler_v2 = api.wrap_v2(process_hello_request, *api.default_middlewares())
