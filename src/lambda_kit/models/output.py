"""
Output models for API responses using Pydantic.

``SuccessResponse`` and ``ErrorResponse`` are the envelopes every response
body is wrapped in; the remaining models are the payloads of the example
functions.
"""

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lambda_kit.models.user import User


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(_CamelModel):
    """Envelope for 2xx bodies: ``{data, requestId, timestamp}``."""

    data: Annotated[Any, Field(
        description='Handler result'
    )]

    request_id: Annotated[Optional[str], Field(
        description='Lambda request identifier'
    )] = None

    timestamp: Annotated[str, Field(
        description='RFC 3339 UTC timestamp',
        examples=['2024-01-15T10:30:00Z']
    )]


class ErrorResponse(_CamelModel):
    """Envelope for error bodies: ``{message, error?, requestId?, timestamp, path?}``."""

    message: Annotated[str, Field(
        description='Human readable error message',
        examples=['Resource not found']
    )]

    error: Annotated[Optional[str], Field(
        description='Message of the wrapped cause, only when one was attached'
    )] = None

    request_id: Annotated[Optional[str], Field(
        description='Lambda request identifier'
    )] = None

    timestamp: Annotated[str, Field(
        description='RFC 3339 UTC timestamp'
    )]

    path: Annotated[Optional[str], Field(
        description='Request path'
    )] = None


class HelloOutput(_CamelModel):
    """Payload of GET /hello."""

    message: Annotated[str, Field(
        examples=['Hello from Lambda with observability!']
    )]

    path: str
    timestamp: str
    environment: str
    request_id: str
    version: str


class UsersOutput(_CamelModel):
    """Payload of GET /users."""

    users: List[User]
    count: Annotated[int, Field(ge=0)]
    timestamp: str
    request_id: str
    version: str
