"""
Request-scoped models shared by the pipeline, middlewares and handlers.

``HttpRequest`` normalises the two API Gateway event generations (REST API
payload v1 and HTTP API payload v2) into one shape, reading them through the
Powertools event data classes. ``RequestContext`` carries per-invocation data
explicitly through every stage instead of hiding it in ambient state.
"""

import threading
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, Optional

from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEvent, APIGatewayProxyEventV2
from aws_lambda_powertools.utilities.data_classes.common import CaseInsensitiveDict

if TYPE_CHECKING:
    from lambda_kit.observability.tracer import TraceSegment


@dataclass(frozen=True)
class HttpRequest:
    """HTTP request extracted from an API Gateway event."""

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    query_parameters: Dict[str, str] = field(default_factory=dict)
    path_parameters: Dict[str, str] = field(default_factory=dict)
    body: str = ''
    source_ip: str = ''
    user_agent: str = ''
    request_id: str = ''
    raw_event: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_v1(cls, event: Dict[str, Any]) -> 'HttpRequest':
        """
        Build a request from an API Gateway REST API (payload v1) event.

        Raises:
            KeyError: If a field API Gateway always sends is missing
            ValueError: If a base64 body is malformed or not UTF-8
        """
        proxy = APIGatewayProxyEvent(event)
        identity = proxy.request_context.identity
        return cls(
            method=proxy.http_method,
            path=proxy.path,
            headers=dict(proxy.get('headers') or {}),
            query_parameters=dict(proxy.query_string_parameters),
            path_parameters=dict(proxy.path_parameters),
            body=proxy.decoded_body or '',
            source_ip=identity.get('sourceIp') or '',
            user_agent=proxy.headers.get('User-Agent') or identity.user_agent or '',
            request_id=proxy.request_context.request_id,
            raw_event=event,
        )

    @classmethod
    def from_v2(cls, event: Dict[str, Any]) -> 'HttpRequest':
        """Build a request from an API Gateway HTTP API (payload v2) event; raises like ``from_v1``."""
        proxy = APIGatewayProxyEventV2(event)
        http = proxy.request_context.http
        return cls(
            method=http.method,
            path=proxy.get('rawPath') or http.path,
            headers=dict(proxy.get('headers') or {}),
            query_parameters=dict(proxy.query_string_parameters),
            path_parameters=dict(proxy.path_parameters),
            body=proxy.decoded_body or '',
            source_ip=http.get('sourceIp') or '',
            user_agent=http.get('userAgent') or '',
            request_id=proxy.request_context.request_id,
            raw_event=event,
        )

    def header(self, name: str) -> str:
        """Look a header up by exact name first, then case-insensitively."""
        return self.headers.get(name) or CaseInsensitiveDict(self.headers).get(name) or ''


@dataclass(frozen=True)
class RequestContext:
    """
    Per-invocation carrier threaded through the middleware chain.

    Contexts are immutable; stages derive enriched copies with the ``with_*``
    methods. Derived copies share the cancellation event, so cancelling any
    of them is visible to all.
    """

    request_id: str = ''
    function_name: str = ''
    function_version: str = ''
    remaining_time_ms: int = 0
    started_at: float = field(default_factory=time.monotonic)
    deadline: Optional[float] = None
    segment: Optional['TraceSegment'] = None
    parsed_body: Any = None
    cancellation: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    @classmethod
    def from_lambda_context(cls, lambda_context: Any) -> 'RequestContext':
        """Extract the invocation identifier and time budget from the Lambda context."""
        if lambda_context is None:
            return cls()

        remaining_time_ms = int(lambda_context.get_remaining_time_in_millis())
        started_at = time.monotonic()
        return cls(
            request_id=lambda_context.aws_request_id or '',
            function_name=lambda_context.function_name or '',
            function_version=lambda_context.function_version or '',
            remaining_time_ms=remaining_time_ms,
            started_at=started_at,
            deadline=started_at + remaining_time_ms / 1000,
        )

    def with_request_id(self, request_id: str) -> 'RequestContext':
        return replace(self, request_id=request_id)

    def with_segment(self, segment: Optional['TraceSegment']) -> 'RequestContext':
        return replace(self, segment=segment)

    def with_parsed_body(self, parsed_body: Any) -> 'RequestContext':
        return replace(self, parsed_body=parsed_body)

    def with_deadline(self, deadline: float) -> 'RequestContext':
        if self.deadline is not None and self.deadline < deadline:
            return self
        return replace(self, deadline=deadline)

    @property
    def has_parsed_body(self) -> bool:
        return self.parsed_body is not None

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def remaining_seconds(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self) -> None:
        self.cancellation.set()

    @property
    def cancelled(self) -> bool:
        return self.cancellation.is_set()
