"""
Users function: lists users or fetches one by ``id`` path parameter.
"""

from typing import Any, Dict

from lambda_kit.config import must_load
from lambda_kit.dal import UserRepository, get_user_repository
from lambda_kit.handlers.errors import NotFoundError, ValidationError
from lambda_kit.handlers.middleware import HandlerFunc, Middleware
from lambda_kit.handlers.pipeline import ApiHandler
from lambda_kit.http.response import utc_timestamp
from lambda_kit.models.output import UsersOutput
from lambda_kit.models.request import HttpRequest, RequestContext
from lambda_kit.observability.logger import ServiceLogger
from lambda_kit.observability.metrics import ServiceMetrics
from lambda_kit.observability.tracer import ServiceTracer

settings = must_load()
logger = ServiceLogger.from_settings(settings)
tracer = ServiceTracer.from_settings(settings)
metrics = ServiceMetrics.from_settings(settings)
api = ApiHandler(settings, logger, tracer, metrics)
repository: UserRepository = get_user_repository(settings.USERS_TABLE_NAME, logger)


def get_only_middleware() -> Middleware:
    """Reject every method but GET."""

    def middleware(next_handler: HandlerFunc) -> HandlerFunc:
        def handler(ctx: RequestContext, request: HttpRequest) -> Any:
            if request.method != 'GET':
                raise ValidationError('only GET method is allowed', field='httpMethod', value=request.method)
            return next_handler(ctx, request)

        return handler

    return middleware


def list_users(ctx: RequestContext) -> Dict[str, Any]:
    users = repository.list_users()
    tracer.add_annotation(ctx, 'user_count', len(users))
    logger.with_context(ctx).info('Users retrieved from database', extra={'user_count': len(users)})

    output = UsersOutput(
        users=users,
        count=len(users),
        timestamp=utc_timestamp(),
        request_id=ctx.request_id,
        version=settings.SERVICE_VERSION,
    )
    return output.model_dump(mode='json', by_alias=True)


def get_user(ctx: RequestContext, user_id: str) -> Dict[str, Any]:
    """
    Fetch a single user.

    Raises:
        NotFoundError: If no user has ``user_id``
    """
    tracer.add_user_id(ctx, user_id)
    user = repository.get_user(user_id)
    if user is None:
        raise NotFoundError(f"user with ID '{user_id}' not found", resource='user', resource_id=user_id)
    return user.model_dump(mode='json', by_alias=True)


def process_users_request(ctx: RequestContext, request: HttpRequest) -> Dict[str, Any]:
    user_id = request.path_parameters.get('id')
    if user_id:
        return get_user(ctx, user_id)
    return list_users(ctx)


lambda_handler = api.wrap(
    process_users_request,
    get_only_middleware(),
    api.logging(),
    api.tracing(),
    api.timeout(),
)
lambda_handler_v2 = api.wrap_v2(
    process_users_request,
    get_only_middleware(),
    api.logging(),
    api.tracing(),
    api.timeout(),
)
