"""Status transition guard.

Encodes exactly one workflow rule: an issue has to pass through
"In Progress" before it can be closed. Every other move, including a no-op
to the same status, is allowed.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import Status

FORBIDDEN_TRANSITIONS: dict[tuple[Status, Status], str] = {
    (Status.OPEN, Status.DONE): "Cannot move issue directly from Open to Done",
}


@dataclass(frozen=True)
class TransitionResult:
    allowed: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> TransitionResult:
        return cls(True)

    @classmethod
    def rejected(cls, reason: str) -> TransitionResult:
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


def attempt_transition(current: Status | str, requested: Status | str) -> TransitionResult:
    reason = FORBIDDEN_TRANSITIONS.get((Status.parse(current), Status.parse(requested)))
    if reason is not None:
        return TransitionResult.rejected(reason)
    return TransitionResult.ok()


__all__ = ["FORBIDDEN_TRANSITIONS", "TransitionResult", "attempt_transition"]
