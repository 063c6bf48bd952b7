"""Error taxonomy & redaction helpers.

Every failure the board can surface is one of the exception types below.
Controllers and the CLI catch them at the boundary where the store (or the
identity service) is invoked and turn them into display-ready text with
:func:`display_message`; nothing propagates further.

Public API:
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
- display_message(exc, fallback) -> str
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"AIza[0-9A-Za-z_\-]{30,}"),  # Google API keys
    re.compile(r"(?i)bearer\s+[A-Za-z0-9_\-\.=]{16,}"),
    re.compile(r"eyJ[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]+"),  # JWTs
]

_REDACTION_PLACEHOLDER = "<redacted>"


class IssueBoardError(RuntimeError):
    """Base class for every error raised by issueboard."""


class ValidationError(IssueBoardError):
    """Raised when user input cannot be turned into a valid issue."""


class TransitionRejected(IssueBoardError):
    """Raised when the status guard refuses a transition.

    Always raised before the store is contacted.
    """

    def __init__(self, reason: str, *, current: Any = None, requested: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.current = current
        self.requested = requested


class StoreError(IssueBoardError):
    """Raised when the hosted issue store rejects or fails a request."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
        category: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text
        self.category = category


class AuthError(IssueBoardError):
    """Raised for identity-service failures or a missing session."""


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact API keys and tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def _classify_store_error(exc: StoreError, msg: str) -> ErrorInfo:
    name = exc.__class__.__name__
    details = {"status": exc.status} if exc.status is not None else None
    if exc.category:
        transient = exc.category == "network"
        return ErrorInfo(exc.category, redact(msg), name, transient=transient, details=details)
    if exc.status in (401, 403):
        return ErrorInfo("store.permission", redact(msg), name, details=details)
    if exc.status == 404:
        return ErrorInfo("store.not_found", redact(msg), name, details=details)
    if exc.status is not None and exc.status >= 500:
        return ErrorInfo("network", redact(msg), name, transient=True, details=details)
    return ErrorInfo("generic", redact(msg), name, details=details)


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    Typed issueboard errors map to their own categories; anything else falls
    back to keyword sniffing ('network' for timeouts and resets, else
    'generic').
    """
    msg = str(exc) if exc else ""
    name = exc.__class__.__name__

    if isinstance(exc, TransitionRejected):
        return ErrorInfo("transition", msg, name)
    if isinstance(exc, ValidationError):
        return ErrorInfo("validation", redact(msg), name)
    if isinstance(exc, AuthError):
        return ErrorInfo("auth", redact(msg), name)
    if isinstance(exc, StoreError):
        return _classify_store_error(exc, msg)

    low = msg.lower()
    if any(k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), name, transient=True)
    return ErrorInfo("generic", redact(msg), name)


def display_message(exc: BaseException, fallback: str) -> str:
    """Return the text shown to the user for ``exc``.

    Uses the (redacted) exception message and falls back to ``fallback`` when
    the exception carries no message.
    """
    info = classify_error(exc)
    return info.message or fallback


__all__ = [
    "AuthError",
    "ErrorInfo",
    "IssueBoardError",
    "StoreError",
    "TransitionRejected",
    "ValidationError",
    "classify_error",
    "display_message",
    "redact",
]
