"""Error taxonomy & redaction.

Two failure kinds reach callers of the issue store:

- ``ValidationError``: caller input failed a precondition; always raised
  before any remote call.
- ``FetchError``: the tracker request failed or returned non-success; keeps
  the upstream status text for diagnostics.

``classify_error`` maps any exception onto the HTTP-ish status the relay
reports, with sensitive substrings redacted from the message.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

# Simple token patterns; can be expanded (e.g., GitHub App keys)
_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"gh[ousr]_[A-Za-z0-9]{20,}"),  # OAuth / server / refresh tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?i)bearer\s+[A-Za-z0-9_\-\.]{8,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500


class ValidationError(ValueError):
    """Caller-supplied input failed a precondition."""

    status = HTTP_BAD_REQUEST


class FetchError(RuntimeError):
    """A tracker request failed or returned a non-success response."""

    def __init__(self, message: str, *, status: int | None = None, status_text: str = ""):
        super().__init__(message)
        self.status = status
        self.status_text = status_text

    @property
    def not_found(self) -> bool:
        return self.status == HTTP_NOT_FOUND


@dataclass
class ErrorInfo:
    category: str
    message: str
    status: int
    original_type: str


def redact(text: str) -> str:
    """Redact sensitive tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception to a category and a 4xx/5xx status.

    - ``ValidationError`` -> 'validation', 400
    - ``FetchError`` -> 'fetch' (or 'fetch.not_found'), 500
    - anything else -> 'generic', 500
    """
    msg = redact(str(exc))
    name = exc.__class__.__name__
    if isinstance(exc, ValidationError):
        return ErrorInfo("validation", msg, HTTP_BAD_REQUEST, name)
    if isinstance(exc, FetchError):
        category = "fetch.not_found" if exc.not_found else "fetch"
        return ErrorInfo(category, msg, HTTP_SERVER_ERROR, name)
    return ErrorInfo("generic", msg, HTTP_SERVER_ERROR, name)


__all__ = [
    "ValidationError",
    "FetchError",
    "ErrorInfo",
    "classify_error",
    "redact",
]
