"""
HTTP response utilities for Lambda functions.

``ResponseBuilder`` collects presentation concerns (request id, path, CORS,
cache control, extra headers) and produces immutable ``Response`` objects
with uniformly shaped JSON bodies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic_core import PydanticSerializationError, to_json

from lambda_kit.models.output import ErrorResponse, SuccessResponse

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET,PUT,DELETE',
}

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'X-XSS-Protection': '1; mode=block',
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
}

STATUS_TEXTS = {
    200: 'OK',
    201: 'Created',
    204: 'No Content',
    400: 'Bad Request',
    401: 'Unauthorized',
    403: 'Forbidden',
    404: 'Not Found',
    405: 'Method Not Allowed',
    408: 'Request Timeout',
    409: 'Conflict',
    422: 'Unprocessable Entity',
    429: 'Too Many Requests',
    500: 'Internal Server Error',
    502: 'Bad Gateway',
    503: 'Service Unavailable',
}

SERIALIZATION_FAILED = 'response serialization failed'


@dataclass(frozen=True)
class Response:
    """HTTP response for API Gateway."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """API Gateway REST API (payload v1) proxy response."""
        return {
            'statusCode': self.status_code,
            'headers': dict(self.headers),
            'body': self.body,
            'isBase64Encoded': False,
        }

    def to_v2(self) -> Dict[str, Any]:
        """API Gateway HTTP API (payload v2) response."""
        return {
            'statusCode': self.status_code,
            'headers': dict(self.headers),
            'body': self.body,
            'isBase64Encoded': False,
        }


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class ResponseBuilder:
    """Builds responses with consistent structure."""

    def __init__(self) -> None:
        self._request_id = ''
        self._path = ''
        self._headers: Dict[str, str] = {}

    def with_request_id(self, request_id: str) -> 'ResponseBuilder':
        self._request_id = request_id
        return self

    def with_path(self, path: str) -> 'ResponseBuilder':
        self._path = path
        return self

    def with_header(self, key: str, value: str) -> 'ResponseBuilder':
        self._headers[key] = value
        return self

    def with_headers(self, headers: Mapping[str, str]) -> 'ResponseBuilder':
        self._headers.update(headers)
        return self

    def with_cors(self) -> 'ResponseBuilder':
        return self.with_headers(CORS_HEADERS)

    def with_cache_control(self, max_age: int) -> 'ResponseBuilder':
        self._headers['Cache-Control'] = f'max-age={max_age}'
        return self

    def with_security_headers(self) -> 'ResponseBuilder':
        return self.with_headers(SECURITY_HEADERS)

    # Success family

    def ok(self, data: Any) -> Response:
        return self._build(200, data)

    def created(self, data: Any) -> Response:
        return self._build(201, data)

    def no_content(self) -> Response:
        return self._build(204, None)

    def custom(self, status_code: int, data: Any) -> Response:
        return self._build(status_code, data)

    # Error family

    def bad_request(self, message: str, cause: Optional[BaseException] = None) -> Response:
        return self.error(400, message, cause)

    def unauthorized(self, message: str) -> Response:
        return self.error(401, message)

    def forbidden(self, message: str) -> Response:
        return self.error(403, message)

    def not_found(self, message: str) -> Response:
        return self.error(404, message)

    def method_not_allowed(self, message: str) -> Response:
        return self.error(405, message)

    def request_timeout(self, message: str) -> Response:
        return self.error(408, message)

    def conflict(self, message: str, cause: Optional[BaseException] = None) -> Response:
        return self.error(409, message, cause)

    def unprocessable_entity(self, message: str, cause: Optional[BaseException] = None) -> Response:
        return self.error(422, message, cause)

    def too_many_requests(self, message: str) -> Response:
        return self.error(429, message)

    def internal_server_error(self, message: str, cause: Optional[BaseException] = None) -> Response:
        return self.error(500, message, cause)

    def service_unavailable(self, message: str) -> Response:
        return self.error(503, message)

    def error(self, status_code: int, message: str, cause: Optional[BaseException] = None) -> Response:
        """Build an error response; ``error`` is only populated when a cause is attached."""
        envelope = ErrorResponse(
            message=message,
            error=str(cause) if cause is not None else None,
            request_id=self._request_id or None,
            timestamp=utc_timestamp(),
            path=self._path or None,
        )
        body = envelope.model_dump_json(by_alias=True, exclude_none=True)
        return Response(status_code=status_code, headers=self._default_headers(), body=body)

    def _build(self, status_code: int, data: Any) -> Response:
        if data is None:
            return Response(status_code=status_code, headers=self._default_headers())

        try:
            if 200 <= status_code < 300:
                envelope = SuccessResponse(
                    data=data,
                    request_id=self._request_id or None,
                    timestamp=utc_timestamp(),
                )
                # requestId is omitted when unknown; data is always present
                omit = {'request_id'} if envelope.request_id is None else None
                body = envelope.model_dump_json(by_alias=True, exclude=omit)
            else:
                body = to_json(data, by_alias=True).decode('utf-8')
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            return self.internal_server_error('Internal server error', _SerializationError(exc))

        return Response(status_code=status_code, headers=self._default_headers(), body=body)

    def _default_headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self._request_id:
            headers['X-Request-ID'] = self._request_id
        headers.update(self._headers)
        return headers


class _SerializationError(Exception):

    def __init__(self, cause: BaseException) -> None:
        super().__init__(SERIALIZATION_FAILED)
        self.__cause__ = cause


def get_default_headers(request_id: str) -> Dict[str, str]:
    """Standard headers for Lambda responses."""
    return {
        'Content-Type': 'application/json',
        **CORS_HEADERS,
        'X-Request-ID': request_id,
        'Cache-Control': 'max-age=300',
    }


def create_success_response(status_code: int, data: Any, request_id: str) -> Response:
    return (
        ResponseBuilder()
        .with_request_id(request_id)
        .with_cors()
        .with_cache_control(300)
        .custom(status_code, data)
    )


def create_error_response(
    status_code: int,
    message: str,
    cause: Optional[BaseException],
    request_id: str,
    path: str,
) -> Response:
    return (
        ResponseBuilder()
        .with_request_id(request_id)
        .with_path(path)
        .with_cors()
        .error(status_code, message, cause)
    )


def validate_status_code(status_code: int) -> bool:
    return 100 <= status_code < 600


def get_status_text(status_code: int) -> str:
    return STATUS_TEXTS.get(status_code, 'Unknown Status')


def set_cache_control(headers: Dict[str, str], is_public: bool, max_age: int) -> None:
    visibility = 'public' if is_public else 'private'
    headers['Cache-Control'] = f'{visibility}, max-age={max_age}'


def parse_content_length(headers: Mapping[str, str]) -> int:
    try:
        return int(headers.get('Content-Length', 0))
    except (TypeError, ValueError):
        return 0
