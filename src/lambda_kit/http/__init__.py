"""
HTTP response utilities for Lambda functions.
"""

from lambda_kit.http.response import (
    CORS_HEADERS,
    Response,
    ResponseBuilder,
    create_error_response,
    create_success_response,
    get_default_headers,
    get_status_text,
    parse_content_length,
    set_cache_control,
    validate_status_code,
)

__all__ = [
    'CORS_HEADERS',
    'Response',
    'ResponseBuilder',
    'create_error_response',
    'create_success_response',
    'get_default_headers',
    'get_status_text',
    'parse_content_length',
    'set_cache_control',
    'validate_status_code',
]
