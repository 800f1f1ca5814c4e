"""
Distributed tracing built on the AWS Lambda Powertools Tracer (AWS X-Ray).

Segment handles are carried on the ``RequestContext`` and every operation
targets the handle of the context it is given, so concurrent invocations
never annotate each other's segments. When tracing is disabled no provider
is created and every operation is a no-op returning ``None`` handles.
"""

import os
import time
import traceback
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Tuple, TypeVar

from aws_lambda_powertools.tracing import Tracer
from aws_xray_sdk.core.models.dummy_entities import DummySubsegment
from aws_xray_sdk.core.models.subsegment import Subsegment

from lambda_kit.models.request import RequestContext

if TYPE_CHECKING:
    from lambda_kit.config import Settings

T = TypeVar('T')


@dataclass(frozen=True)
class TracingConfig:
    """Configuration for tracing."""

    enabled: bool
    service_name: str
    version: str


@dataclass
class TraceSegment:
    """Handle for an open segment or subsegment."""

    name: str
    entity: Any
    is_subsegment: bool = False
    parent: Optional['TraceSegment'] = None
    closed: bool = False

    @property
    def trace_id(self) -> str:
        return getattr(self.entity, 'trace_id', '') or ''

    @property
    def id(self) -> str:
        return getattr(self.entity, 'id', '') or ''


class ServiceTracer:
    """X-Ray tracer scoped by explicit request contexts."""

    def __init__(self, config: TracingConfig, provider: Any = None) -> None:
        """
        Initialize the tracer.

        Args:
            config: Tracing configuration
            provider: X-Ray recorder to use; built from a Powertools Tracer when omitted
        """
        self.config = config
        self._provider = None
        if config.enabled:
            self._provider = provider if provider is not None else Tracer(service=config.service_name).provider

    @classmethod
    def from_settings(cls, settings: 'Settings', provider: Any = None) -> 'ServiceTracer':
        return cls(
            TracingConfig(
                enabled=settings.ENABLE_TRACING,
                service_name=settings.SERVICE_NAME,
                version=settings.SERVICE_VERSION,
            ),
            provider=provider,
        )

    @property
    def is_enabled(self) -> bool:
        return self.config.enabled

    def start_segment(self, ctx: RequestContext, name: str) -> Tuple[RequestContext, Optional[TraceSegment]]:
        """Open a root segment, or a subsegment of the platform segment inside Lambda."""
        if not self.config.enabled:
            return ctx, None

        if os.environ.get('AWS_LAMBDA_FUNCTION_NAME'):
            facade = self._provider.current_segment()
            if facade is None:
                return ctx, None
            segment = TraceSegment(name=name, entity=_begin_child(facade, name), is_subsegment=True)
        else:
            segment = TraceSegment(name=name, entity=self._provider.begin_segment(name))

        ctx = ctx.with_segment(segment)
        self.add_annotation(ctx, 'service', self.config.service_name)
        self.add_annotation(ctx, 'version', self.config.version)
        if ctx.request_id:
            self.add_annotation(ctx, 'aws_request_id', ctx.request_id)

        return ctx, segment

    def start_subsegment(self, ctx: RequestContext, name: str) -> Tuple[RequestContext, Optional[TraceSegment]]:
        """Open a child of the segment carried by ``ctx``; without an open one there is nothing to attach to."""
        if not self.config.enabled or ctx.segment is None or ctx.segment.closed:
            return ctx, None

        segment = TraceSegment(
            name=name,
            entity=_begin_child(ctx.segment.entity, name),
            is_subsegment=True,
            parent=ctx.segment,
        )
        return ctx.with_segment(segment), segment

    def attach(self, ctx: RequestContext) -> None:
        """
        Make the segment carried by ``ctx`` the recorder's current entity on this thread.

        Worker threads call this first so that clients patched by the X-Ray
        SDK record their calls under the request's segment.
        """
        entity = self._entity(ctx)
        if entity is not None:
            self._provider.context.set_trace_entity(entity)

    def _entity(self, ctx: Optional[RequestContext]) -> Any:
        if not self.config.enabled or ctx is None or ctx.segment is None or ctx.segment.closed:
            return None
        return ctx.segment.entity

    def add_annotation(self, ctx: RequestContext, key: str, value: Any) -> None:
        entity = self._entity(ctx)
        if entity is not None:
            entity.put_annotation(key, value)

    def add_metadata(self, ctx: RequestContext, namespace: str, value: Any) -> None:
        entity = self._entity(ctx)
        if entity is not None:
            entity.put_metadata(namespace, value)

    def add_error(self, ctx: RequestContext, error: Optional[BaseException]) -> None:
        entity = self._entity(ctx)
        if entity is not None and error is not None:
            entity.add_exception(error, traceback.extract_stack())

    def set_http_request(self, ctx: RequestContext, method: str, url: str) -> None:
        entity = self._entity(ctx)
        if entity is not None:
            entity.put_http_meta('method', method)
            entity.put_http_meta('url', url)

    def set_http_response(self, ctx: RequestContext, status_code: int, content_length: int) -> None:
        entity = self._entity(ctx)
        if entity is not None:
            entity.put_http_meta('status', status_code)
            entity.put_http_meta('content_length', content_length)

    def add_user_id(self, ctx: RequestContext, user_id: str) -> None:
        if user_id:
            self.add_annotation(ctx, 'user_id', user_id)

    def close(self, segment: Optional[TraceSegment], error: Optional[BaseException] = None) -> None:
        """
        Close exactly the entity behind ``segment``.

        ``None`` handles and already closed segments are ignored. Closing a
        parent before its children is allowed; the trace is sent once the
        last of them closes.
        """
        if segment is None or segment.closed or self._provider is None:
            return

        if error is not None:
            segment.entity.add_exception(error, traceback.extract_stack())

        segment.closed = True
        if segment.is_subsegment:
            segment.entity.close()
            self._flush(segment.entity.parent_segment)
        else:
            self._provider.context.set_trace_entity(segment.entity)
            self._provider.end_segment()

    def _flush(self, root: Any) -> None:
        if root.ready_to_send():
            self._send(root)
        elif self._provider.streaming.is_eligible(root):
            self._provider.streaming.stream(root, self._send)

    def _send(self, entity: Any) -> None:
        if entity.sampled:
            self._provider.emitter.send_entity(entity)

    @contextmanager
    def subsegment(self, ctx: RequestContext, name: str) -> Iterator[RequestContext]:
        """Open a subsegment for the duration of a ``with`` block."""
        sub_ctx, segment = self.start_subsegment(ctx, name)
        try:
            yield sub_ctx
        except Exception as exc:
            self.add_error(sub_ctx, exc)
            raise
        finally:
            self.close(segment)

    def with_timer(self, ctx: RequestContext, name: str, fn: Optional[Callable[[RequestContext], T]]) -> T:
        """
        Run ``fn`` inside a subsegment and record its duration.

        The subsegment is closed on every exit path. Exceptions raised by
        ``fn`` are attached to the subsegment and re-raised.

        Raises:
            ValueError: If no operation is supplied
        """
        if fn is None:
            raise ValueError('operation cannot be None')

        start = time.perf_counter()
        sub_ctx, segment = self.start_subsegment(ctx, name)
        try:
            return fn(sub_ctx)
        except Exception as exc:
            self.add_error(sub_ctx, exc)
            raise
        finally:
            self.add_annotation(sub_ctx, 'duration_ms', int((time.perf_counter() - start) * 1000))
            self.close(segment)

    def trace_function(self, name: str, fn: Callable[[RequestContext], T]) -> Callable[[RequestContext], T]:
        """Wrap ``fn`` so every call runs in its own subsegment."""

        def traced(ctx: RequestContext) -> T:
            with self.subsegment(ctx, name) as sub_ctx:
                return fn(sub_ctx)

        return traced


def get_trace_id(ctx: RequestContext) -> str:
    return ctx.segment.trace_id if ctx.segment is not None else ''


def get_segment_id(ctx: RequestContext) -> str:
    return ctx.segment.id if ctx.segment is not None else ''


def create_correlation_id(ctx: RequestContext) -> str:
    """Use the Lambda request id, then the trace id, then a generated id."""
    if ctx.request_id:
        return ctx.request_id

    trace_id = get_trace_id(ctx)
    if trace_id:
        return trace_id

    return f'req_{time.time_ns()}'


def _begin_child(parent: Any, name: str) -> Any:
    """Create a subsegment attached to ``parent`` itself, whatever the recorder's current entity is."""
    root = parent.parent_segment if getattr(parent, 'type', None) == 'subsegment' else parent
    if parent.sampled:
        child = Subsegment(name, 'local', root)
    else:
        child = DummySubsegment(root, name)
    parent.add_subsegment(child)
    return child
