"""Observability module for structured logging, tracing, redaction and error reporting."""

from .logging import (
    RequestContextManager,
    get_logger,
    request_id_var,
    setup_logging,
    span_id_var,
    trace_id_var,
)
from .redaction import (
    REDACTED,
    SENSITIVE_BODY,
    TRUNCATED_MARKER,
    RedactionPolicy,
)
from .reporting import ErrorReporter, ReportLevel, report_level_from_http
from .tracing import (
    REQUEST_ID_HEADER,
    TRACEPARENT_HEADER,
    Span,
    SpanManager,
    SpanStatus,
    generate_span_id,
    generate_trace_id,
    get_current_span,
    parse_traceparent,
    set_current_span,
    span_status_from_exception,
    span_status_from_http,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Context
    "RequestContextManager",
    "request_id_var",
    "trace_id_var",
    "span_id_var",
    # Redaction
    "RedactionPolicy",
    "REDACTED",
    "SENSITIVE_BODY",
    "TRUNCATED_MARKER",
    # Reporting
    "ErrorReporter",
    "ReportLevel",
    "report_level_from_http",
    # Tracing
    "Span",
    "SpanManager",
    "SpanStatus",
    "generate_span_id",
    "generate_trace_id",
    "get_current_span",
    "set_current_span",
    "parse_traceparent",
    "span_status_from_exception",
    "span_status_from_http",
    "TRACEPARENT_HEADER",
    "REQUEST_ID_HEADER",
]
