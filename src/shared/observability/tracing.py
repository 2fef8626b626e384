"""Request-scoped span trees.

A span is a named, timed unit of work with a status. Each request owns one
root span; service operations open child spans under it. Spans are plain
objects passed down the call chain (or read from the request-scoped context
variable set by the middleware); nothing here is shared across requests.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any
from uuid import uuid4

from shared.errors import NotFoundError, ServiceError

# W3C Trace Context / correlation headers
TRACEPARENT_HEADER = "traceparent"
REQUEST_ID_HEADER = "x-request-id"

_current_span: ContextVar[Span | None] = ContextVar("current_span", default=None)


class SpanStatus(str, Enum):
    """Span completion status."""

    OK = "ok"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    UNAUTHENTICATED = "unauthenticated"
    UNAVAILABLE = "unavailable"
    INTERNAL_ERROR = "internal_error"


def span_status_from_http(status_code: int) -> SpanStatus:
    """Map an HTTP status code to a span status."""
    if 200 <= status_code < 400:
        return SpanStatus.OK
    if status_code == 401:
        return SpanStatus.UNAUTHENTICATED
    if status_code == 403:
        return SpanStatus.PERMISSION_DENIED
    if status_code == 404:
        return SpanStatus.NOT_FOUND
    if 400 <= status_code < 500:
        return SpanStatus.INVALID_ARGUMENT
    if status_code >= 500:
        return SpanStatus.INTERNAL_ERROR
    return SpanStatus.UNKNOWN


def span_status_from_exception(exc: BaseException) -> SpanStatus:
    """Map an exception raised inside a span to a span status."""
    if isinstance(exc, NotFoundError):
        return SpanStatus.NOT_FOUND
    if isinstance(exc, ServiceError):
        if exc.status_code == 409:
            return SpanStatus.ALREADY_EXISTS
        if exc.status_code == 503:
            return SpanStatus.UNAVAILABLE
        return span_status_from_http(exc.status_code)
    return SpanStatus.INTERNAL_ERROR


def generate_trace_id() -> str:
    """Generate a new trace ID (32 hex chars)."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a new span ID (16 hex chars)."""
    return uuid4().hex[:16]


def parse_traceparent(traceparent: str) -> str | None:
    """Extract the trace ID from a W3C traceparent header.

    Format: {version}-{trace_id}-{parent_id}-{flags}
    Example: 00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01
    """
    parts = traceparent.strip().split("-")
    if len(parts) != 4:
        return None
    version, trace_id, parent_id, _flags = parts
    if version != "00" or len(trace_id) != 32 or len(parent_id) != 16:
        return None
    try:
        int(trace_id, 16)
    except ValueError:
        return None
    return trace_id


class Span:
    """A node in a request's span tree."""

    def __init__(
        self,
        name: str,
        trace_id: str,
        parent: Span | None = None,
        op: str | None = None,
        description: str | None = None,
    ):
        self.name = name
        self.trace_id = trace_id
        self.span_id = generate_span_id()
        self.parent = parent
        self.op = op
        self.description = description
        self.start_time = time.time()
        self.end_time: float | None = None
        self.status: SpanStatus | None = None
        self.attributes: dict[str, Any] = {}
        self.children: list[Span] = []

    @property
    def parent_span_id(self) -> str | None:
        return self.parent.span_id if self.parent else None

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    @property
    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return round((self.end_time - self.start_time) * 1000, 2)

    def set_attribute(self, key: str, value: Any) -> None:
        """Set span attribute."""
        self.attributes[key] = value

    def to_traceparent(self) -> str:
        """Convert to W3C traceparent header value."""
        return f"00-{self.trace_id}-{self.span_id}-01"

    def to_dict(self) -> dict[str, Any]:
        """Serialize the span and its children for the log sink."""
        return {
            "name": self.name,
            "op": self.op,
            "description": self.description,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_ms": self.duration_ms,
            "status": self.status.value if self.status else None,
            "attributes": dict(self.attributes),
            "children": [child.to_dict() for child in self.children],
        }


class SpanManager:
    """Creates and finishes spans.

    Holds no per-request state; every span it returns belongs to the
    caller's request.
    """

    def start_span(
        self,
        parent: Span | None,
        name: str,
        op: str | None = None,
        description: str | None = None,
        trace_id: str | None = None,
        **attributes: Any,
    ) -> Span:
        """Start a child span under ``parent``, or a new root span."""
        if parent is not None:
            span = Span(name, parent.trace_id, parent=parent, op=op, description=description)
            parent.children.append(span)
        else:
            span = Span(name, trace_id or generate_trace_id(), op=op, description=description)
        for key, value in attributes.items():
            span.set_attribute(key, value)
        return span

    def finish_span(self, span: Span | None, status: SpanStatus = SpanStatus.OK) -> None:
        """Finish a span.

        No-op for None or an already finished span. Children still open
        are closed as cancelled first, so no child ends after its parent.
        """
        if span is None or span.is_finished:
            return
        for child in span.children:
            self.finish_span(child, SpanStatus.CANCELLED)

        end_time = time.time()
        child_ends = [child.end_time for child in span.children if child.end_time is not None]
        if child_ends:
            end_time = max(end_time, *child_ends)
        span.end_time = end_time
        span.status = status

    @contextmanager
    def span(
        self,
        parent: Span | None,
        name: str,
        description: str | None = None,
        **attributes: Any,
    ) -> Iterator[Span]:
        """Run a block inside a child span.

        The span finishes ok on success, or with a status derived from the
        exception, which is re-raised.
        """
        span = self.start_span(parent, name, op=name, description=description, **attributes)
        try:
            yield span
        except BaseException as exc:
            self.finish_span(span, span_status_from_exception(exc))
            raise
        self.finish_span(span, SpanStatus.OK)


def get_current_span() -> Span | None:
    """Get the root span of the request being handled, if any."""
    return _current_span.get()


def set_current_span(span: Span | None) -> None:
    """Set the request-scoped current span."""
    _current_span.set(span)
