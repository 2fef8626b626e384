"""Error reporting.

The reporter is the one place an unrecovered failure or an error response
is reported. Reports go through the same structured logging channel as
everything else, under their own logger name so they can be routed to
alerting.
"""

from __future__ import annotations

import traceback
from enum import Enum
from typing import Any
from uuid import uuid4

from .logging import get_logger


class ReportLevel(str, Enum):
    """Severity of a report."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


def report_level_from_http(status_code: int) -> ReportLevel:
    """Map an HTTP status code to a report severity."""
    if status_code >= 500:
        return ReportLevel.ERROR
    if status_code >= 400:
        return ReportLevel.WARNING
    return ReportLevel.INFO


class ErrorReporter:
    """Captures exceptions and messages with request context."""

    def __init__(self, logger: Any = None):
        self.logger = logger or get_logger("user_registry.errors")

    def capture_exception(
        self,
        exc: BaseException,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Report an exception. Returns the report ID."""
        report = {
            "report_id": uuid4().hex,
            "level": ReportLevel.ERROR.value,
            "error_type": type(exc).__name__,
            "error": str(exc),
            "stacktrace": "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
            "context": dict(context or {}),
        }
        self._emit("Error captured", report)
        return report["report_id"]

    def capture_message(
        self,
        message: str,
        level: ReportLevel = ReportLevel.INFO,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Report a message at the given severity. Returns the report ID."""
        report = {
            "report_id": uuid4().hex,
            "level": ReportLevel(level).value,
            "context": dict(context or {}),
        }
        self._emit(message, report)
        return report["report_id"]

    def _emit(self, event: str, report: dict[str, Any]) -> None:
        level = report["level"]
        if level == ReportLevel.FATAL.value:
            level = "critical"
        getattr(self.logger, level)(event, **report)
