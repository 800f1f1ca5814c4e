"""
Request pipeline, middlewares and typed errors.

The example function modules (``hello_handler``, ``users_handler``) load
settings at import time and are not imported here.
"""

from lambda_kit.handlers.errors import (
    STATUS_BY_KIND,
    BaseServiceError,
    BusinessLogicError,
    ConflictError,
    ErrorKind,
    ExternalServiceError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    RequestTimeoutError,
    UnauthorizedError,
    ValidationError,
    find_error,
    get_status_code,
    is_business_logic_error,
    is_conflict_error,
    is_external_service_error,
    is_forbidden_error,
    is_internal_error,
    is_not_found_error,
    is_retryable_error,
    is_timeout_error,
    is_unauthorized_error,
    is_validation_error,
)
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
from lambda_kit.handlers.pipeline import ApiHandler, render_error

__all__ = [
    'ApiHandler',
    'BaseServiceError',
    'BusinessLogicError',
    'ConflictError',
    'ErrorKind',
    'ExternalServiceError',
    'ForbiddenError',
    'HandlerFunc',
    'InternalError',
    'Middleware',
    'NotFoundError',
    'RequestTimeoutError',
    'STATUS_BY_KIND',
    'UnauthorizedError',
    'ValidationError',
    'compose',
    'find_error',
    'get_status_code',
    'is_business_logic_error',
    'is_conflict_error',
    'is_external_service_error',
    'is_forbidden_error',
    'is_internal_error',
    'is_not_found_error',
    'is_retryable_error',
    'is_timeout_error',
    'is_unauthorized_error',
    'is_validation_error',
    'json_parsing_middleware',
    'logging_middleware',
    'render_error',
    'timeout_middleware',
    'tracing_middleware',
    'validation_middleware',
]
