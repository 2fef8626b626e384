"""Redaction of sensitive request data before it reaches the log sink.

Names are matched case-insensitively by substring against a fixed list.
Headers and parameters are redacted value by value. Bodies are never
partially redacted: a body whose text mentions any sensitive name is
replaced as a whole, so any body mentioning "key" is dropped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

REDACTED = "[REDACTED]"
SENSITIVE_BODY = "[CONTAINS SENSITIVE DATA]"
TRUNCATED_MARKER = "... [TRUNCATED]"

DEFAULT_SENSITIVE_NAMES: tuple[str, ...] = (
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
    "password",
    "token",
    "secret",
    "key",
    "auth",
    "credential",
)

DEFAULT_MAX_BODY_CHARS = 1000


class RedactionPolicy:
    """Classifies header, parameter and body content as sensitive."""

    def __init__(
        self,
        sensitive_names: Iterable[str] = DEFAULT_SENSITIVE_NAMES,
        max_body_chars: int = DEFAULT_MAX_BODY_CHARS,
    ):
        self.sensitive_names = tuple(name.lower() for name in sensitive_names)
        self.max_body_chars = max_body_chars

    def is_sensitive(self, name: str) -> bool:
        """Check whether a header or field name is sensitive."""
        lowered = name.lower()
        return any(sensitive in lowered for sensitive in self.sensitive_names)

    def contains_sensitive_data(self, text: str) -> bool:
        """Scan serialized text for any sensitive name."""
        return self.is_sensitive(text)

    def redact_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Replace values of sensitive headers with the redaction marker."""
        return {
            name: REDACTED if self.is_sensitive(name) else value
            for name, value in headers.items()
        }

    def redact_params(self, params: Mapping[str, str]) -> dict[str, str]:
        """Redact query or path parameters by name."""
        return self.redact_headers(params)

    def redact_body(self, body: bytes | str | None) -> str | None:
        """Return the loggable form of a request body.

        Returns None for an absent or empty body. Sensitive detection runs
        on the whole body, then the result is truncated to the budget.
        """
        if not body:
            return None
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body

        if text == SENSITIVE_BODY:
            return text
        if self.contains_sensitive_data(text):
            return SENSITIVE_BODY
        return self.truncate(text)

    def truncate(self, text: str) -> str:
        """Cut text to the body budget with a visible marker."""
        if len(text) <= self.max_body_chars:
            return text
        return text[: self.max_body_chars] + TRUNCATED_MARKER
