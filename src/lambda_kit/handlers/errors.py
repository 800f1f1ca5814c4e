"""
Typed errors raised by business handlers and rendered by the pipeline.

Every error kind maps to exactly one HTTP status through ``STATUS_BY_KIND``.
Handlers raise these errors without knowing about HTTP; ``get_status_code``
is the single classification point and is total over any exception or
``None``.
"""

from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from lambda_kit.config.durations import format_duration

E = TypeVar('E', bound=BaseException)


class ErrorKind(str, Enum):
    """Closed set of error kinds."""

    VALIDATION = 'VALIDATION'
    NOT_FOUND = 'NOT_FOUND'
    CONFLICT = 'CONFLICT'
    UNAUTHORIZED = 'UNAUTHORIZED'
    FORBIDDEN = 'FORBIDDEN'
    TIMEOUT = 'TIMEOUT'
    INTERNAL = 'INTERNAL'
    BUSINESS_LOGIC = 'BUSINESS_LOGIC'
    EXTERNAL_SERVICE = 'EXTERNAL_SERVICE'


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.INTERNAL: 500,
    ErrorKind.BUSINESS_LOGIC: 500,
    # Replaced by the error's own status code when it is a valid one
    ErrorKind.EXTERNAL_SERVICE: 500,
}


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
        super().__init__(self.render())

    def render(self) -> str:
        return self.message

    def __str__(self) -> str:
        return self.render()

    def unwrap(self) -> Optional[BaseException]:
        return self.cause

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(BaseServiceError):
    """Raised when a request fails validation."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str = '', value: Any = None, cause: Optional[BaseException] = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message, cause)

    def render(self) -> str:
        if self.field:
            return f"validation error for field '{self.field}': {self.message}"
        return f'validation error: {self.message}'


class NotFoundError(BaseServiceError):
    """Raised when a requested resource does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, resource: str = '', resource_id: str = '') -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message)

    def render(self) -> str:
        if self.resource and self.resource_id:
            return f"{self.resource} not found: {self.message} with ID '{self.resource_id}'"
        if self.resource:
            return f'{self.resource} not found: {self.message}'
        return f'not found: {self.message}'


class ConflictError(BaseServiceError):
    """Raised when a request conflicts with the current state of a resource."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, resource: str = '', cause: Optional[BaseException] = None) -> None:
        self.resource = resource
        super().__init__(message, cause)

    def render(self) -> str:
        if self.resource:
            return f'conflict with {self.resource}: {self.message}'
        return f'conflict: {self.message}'


class UnauthorizedError(BaseServiceError):
    """Raised when the caller is not authenticated."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str, reason: str = '') -> None:
        self.reason = reason
        super().__init__(message)

    def render(self) -> str:
        if self.reason:
            return f'unauthorized: {self.message} ({self.reason})'
        return f'unauthorized: {self.message}'


class ForbiddenError(BaseServiceError):
    """Raised when the caller may not perform an operation."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str, resource: str = '', operation: str = '') -> None:
        self.resource = resource
        self.operation = operation
        super().__init__(message)

    def render(self) -> str:
        if self.resource and self.operation:
            return f'forbidden: cannot {self.operation} {self.resource} - {self.message}'
        if self.resource:
            return f'forbidden: access to {self.resource} denied - {self.message}'
        return f'forbidden: {self.message}'


class RequestTimeoutError(BaseServiceError):
    """Raised when a handler does not finish before its deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, timeout: Optional[timedelta] = None) -> None:
        self.timeout = timeout or timedelta(0)
        super().__init__(message)

    def render(self) -> str:
        if self.timeout > timedelta(0):
            return f'timeout: {self.message} (after {format_duration(self.timeout)})'
        return f'timeout: {self.message}'


class InternalError(BaseServiceError):
    """Raised for unexpected internal failures."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, operation: str = '', cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        super().__init__(message, cause)

    def render(self) -> str:
        if self.operation:
            return f'internal error during {self.operation}: {self.message}'
        return f'internal error: {self.message}'


class BusinessLogicError(BaseServiceError):
    """Raised when a business rule is violated."""

    kind = ErrorKind.BUSINESS_LOGIC

    def __init__(self, message: str, code: str = '', details: Optional[Dict[str, Any]] = None) -> None:
        self.code = code
        self.details: Dict[str, Any] = dict(details or {})
        super().__init__(message)

    def render(self) -> str:
        if self.code:
            return f'business logic error [{self.code}]: {self.message}'
        return f'business logic error: {self.message}'

    def with_detail(self, key: str, value: Any) -> 'BusinessLogicError':
        self.details[key] = value
        return self


class ExternalServiceError(BaseServiceError):
    """Raised when a downstream service call fails."""

    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int = 0,
        retryable: bool = False,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.service = service
        self.upstream_status = status_code
        self.retryable = retryable
        super().__init__(message, cause)

    def render(self) -> str:
        if self.service and self.upstream_status > 0:
            return f'external service error [{self.service}:{self.upstream_status}]: {self.message}'
        if self.service:
            return f'external service error [{self.service}]: {self.message}'
        return f'external service error: {self.message}'

    @property
    def status_code(self) -> int:
        if 100 <= self.upstream_status < 600:
            return self.upstream_status
        return STATUS_BY_KIND[self.kind]

    def is_retryable(self) -> bool:
        return self.retryable


def get_status_code(error: Optional[BaseException]) -> int:
    """HTTP status for an error; 200 for ``None``, 500 for anything untyped."""
    if error is None:
        return 200
    if isinstance(error, BaseServiceError):
        return error.status_code
    return 500


def find_error(error: Optional[BaseException], error_type: Type[E]) -> Optional[E]:
    """Return the first error of ``error_type`` in the cause chain, including ``error`` itself."""
    seen = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, error_type):
            return error
        seen.add(id(error))
        error = error.__cause__
    return None


def is_validation_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, ValidationError)


def is_not_found_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, NotFoundError)


def is_conflict_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, ConflictError)


def is_unauthorized_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, UnauthorizedError)


def is_forbidden_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, ForbiddenError)


def is_timeout_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, RequestTimeoutError)


def is_internal_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, InternalError)


def is_business_logic_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, BusinessLogicError)


def is_external_service_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, ExternalServiceError)


def is_retryable_error(error: Optional[BaseException]) -> bool:
    if isinstance(error, ExternalServiceError):
        return error.is_retryable()
    return isinstance(error, RequestTimeoutError)
