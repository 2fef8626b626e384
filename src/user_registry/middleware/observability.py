"""Request observability middleware.

For every request:
- opens the root span of the request's span tree, named after the route
  pattern (``GET /v1/users/{user_id}``) rather than the raw path
- buffers a bounded request body for the access log while keeping it
  readable downstream
- writes exactly one redacted access log record
- reports error responses, and captures unhandled exceptions before
  re-raising them to the top-level exception handler
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from shared.observability import (
    REQUEST_ID_HEADER,
    TRACEPARENT_HEADER,
    ErrorReporter,
    RedactionPolicy,
    RequestContextManager,
    Span,
    SpanManager,
    SpanStatus,
    generate_trace_id,
    get_logger,
    parse_traceparent,
    report_level_from_http,
    set_current_span,
    span_status_from_http,
)

DEFAULT_MAX_BUFFERED_BODY_BYTES = 64 * 1024


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Traces, logs and reports every request."""

    def __init__(
        self,
        app: ASGIApp,
        redaction: RedactionPolicy | None = None,
        span_manager: SpanManager | None = None,
        reporter: ErrorReporter | None = None,
        access_logger: Any = None,
        max_buffered_body_bytes: int = DEFAULT_MAX_BUFFERED_BODY_BYTES,
    ):
        super().__init__(app)
        self.redaction = redaction or RedactionPolicy()
        self.spans = span_manager or SpanManager()
        self.reporter = reporter or ErrorReporter()
        self.access_logger = access_logger or get_logger("user_registry.access")
        self.max_buffered_body_bytes = max_buffered_body_bytes

    async def dispatch(self, request: Request, call_next):
        """Process request through tracing and access logging."""
        start = time.perf_counter()
        trace_id = self._extract_trace_id(request)
        route = request.url.path

        root = self.spans.start_span(
            None,
            f"{request.method} {route}",
            op="http.server",
            description=f"{request.method} {route}",
            trace_id=trace_id,
        )
        root.set_attribute("http.method", request.method)
        root.set_attribute("http.path", request.url.path)
        root.set_attribute("request_id", trace_id)
        request.state.span = root
        request.state.request_id = trace_id
        set_current_span(root)

        body = await self._buffer_body(request)

        async with RequestContextManager(
            request_id=trace_id, trace_id=trace_id, span_id=root.span_id
        ):
            try:
                response = await call_next(request)
            except Exception as exc:
                route, path_params = self._name_root_span(request, root)
                self.reporter.capture_exception(
                    exc,
                    context={
                        "request_id": trace_id,
                        "method": request.method,
                        "path": request.url.path,
                        "route": route,
                    },
                )
                self.spans.finish_span(root, SpanStatus.INTERNAL_ERROR)
                record = self._build_record(
                    request, route, path_params, body, root, 500, start, None
                )
                record["error"] = str(exc) or type(exc).__name__
                self.access_logger.error("HTTP Request Error", **record)
                raise
            finally:
                set_current_span(None)

            route, path_params = self._name_root_span(request, root)
            status_code = response.status_code
            root.set_attribute("http.status_code", status_code)
            self.spans.finish_span(root, span_status_from_http(status_code))

            response_size = response.headers.get("content-length")
            record = self._build_record(
                request,
                route,
                path_params,
                body,
                root,
                status_code,
                start,
                int(response_size) if response_size else None,
            )

            if status_code >= 400:
                if status_code >= 500:
                    self.access_logger.error("HTTP Request Error", **record)
                else:
                    self.access_logger.warning("HTTP Request Error", **record)
                self.reporter.capture_message(
                    "HTTP Server Error" if status_code >= 500 else "HTTP Error",
                    level=report_level_from_http(status_code),
                    context={
                        "request_id": trace_id,
                        "method": request.method,
                        "path": request.url.path,
                        "route": route,
                        "status_code": status_code,
                    },
                )
            else:
                self.access_logger.info("HTTP Request", **record)

        response.headers[REQUEST_ID_HEADER] = trace_id
        response.headers[TRACEPARENT_HEADER] = root.to_traceparent()
        return response

    def _extract_trace_id(self, request: Request) -> str:
        """Take the correlation id from traceparent or x-request-id, else generate one."""
        traceparent = request.headers.get(TRACEPARENT_HEADER)
        if traceparent:
            trace_id = parse_traceparent(traceparent)
            if trace_id:
                return trace_id

        request_id = request.headers.get(REQUEST_ID_HEADER)
        if request_id and len(request_id) <= 128:
            return request_id

        return generate_trace_id()

    def _name_root_span(self, request: Request, root: Span) -> tuple[str, dict[str, str]]:
        """Rename the root span after the route the router selected."""
        route, path_params = self._resolve_route(request)
        root.name = f"{request.method} {route}"
        root.description = root.name
        root.set_attribute("http.route", route)
        return route, path_params

    @staticmethod
    def _resolve_route(request: Request) -> tuple[str, dict[str, str]]:
        """Find the full route pattern and path parameters of a routed request.

        The matched route only knows its pattern relative to the router it was
        included in, so the include prefix is recovered from the concrete path.
        Unrouted requests keep the raw path.
        """
        path = request.url.path
        matched = request.scope.get("route")
        path_format = getattr(matched, "path_format", None)
        if not path_format:
            return path, {}

        path_params = {k: str(v) for k, v in request.scope.get("path_params", {}).items()}
        try:
            concrete = path_format.format(**path_params)
        except (KeyError, IndexError, ValueError):
            return path, {}
        if not path.endswith(concrete):
            return path, {}
        return path[: len(path) - len(concrete)] + path_format, path_params

    async def _buffer_body(self, request: Request) -> bytes | None:
        """Read the body if it is declared and small enough.

        Starlette replays a body read here to the downstream app.
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return None
        try:
            length = int(content_length)
        except ValueError:
            return None
        if length <= 0 or length > self.max_buffered_body_bytes:
            return None
        return await request.body()

    def _build_record(
        self,
        request: Request,
        route: str,
        path_params: dict[str, str],
        body: bytes | None,
        root: Span,
        status_code: int,
        start: float,
        response_size: int | None,
    ) -> dict[str, Any]:
        content_length = request.headers.get("content-length")
        record: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "method": request.method,
            "path": request.url.path,
            "route": route,
            "query_params": self.redaction.redact_params(dict(request.query_params)),
            "status_code": status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            "client_ip": self._client_ip(request),
            "user_agent": request.headers.get("user-agent", ""),
            "content_type": request.headers.get("content-type", ""),
            "content_length": int(content_length) if content_length and content_length.isdigit() else 0,
            "headers": self.redaction.redact_headers(dict(request.headers)),
            "response_size": response_size,
            "request_id": root.attributes.get("request_id"),
            "trace_id": root.trace_id,
            "spans": root.to_dict(),
        }
        redacted_body = self.redaction.redact_body(body)
        if redacted_body is not None:
            record["request_body"] = redacted_body
        if path_params:
            record["url_params"] = self.redaction.redact_params(path_params)
        return record

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else ""
