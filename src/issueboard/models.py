from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import ValidationError


def _loose_key(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: str | Priority) -> Priority:
        """Accept the wire value, the member name or a loose spelling."""
        if isinstance(value, cls):
            return value
        key = _loose_key(str(value))
        for member in cls:
            if key in (_loose_key(member.value), _loose_key(member.name)):
                return member
        raise ValueError(f"Unknown priority: {value!r}")


class Status(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    DONE = "Done"

    @classmethod
    def parse(cls, value: str | Status) -> Status:
        """Accept 'In Progress', 'IN_PROGRESS', 'in-progress', 'inprogress'..."""
        if isinstance(value, cls):
            return value
        key = _loose_key(str(value))
        for member in cls:
            if key in (_loose_key(member.value), _loose_key(member.name)):
                return member
        raise ValueError(f"Unknown status: {value!r}")


@dataclass(frozen=True)
class CurrentUser:
    """The signed-in actor, passed explicitly into every store operation."""

    uid: str
    email: str
    id_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None

    @property
    def identity(self) -> str:
        """Value recorded as ``createdBy``."""
        return self.email or self.uid

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "idToken": self.id_token,
            "refreshToken": self.refresh_token,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CurrentUser:
        expires = raw.get("expiresAt")
        return cls(
            uid=str(raw.get("uid") or ""),
            email=str(raw.get("email") or ""),
            id_token=str(raw.get("idToken") or ""),
            refresh_token=raw.get("refreshToken") or None,
            expires_at=datetime.fromisoformat(expires) if isinstance(expires, str) else None,
        )


@dataclass
class IssueDraft:
    """Form data for a new issue (everything the user types in)."""

    title: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.OPEN
    assigned_to: str = ""

    def validate(self) -> None:
        if not self.title.strip():
            raise ValidationError("Title is required")
        if not self.description.strip():
            raise ValidationError("Description is required")

    def to_fields(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "assignedTo": self.assigned_to,
        }


_ISSUE_KEYS = frozenset(
    {"id", "title", "description", "priority", "status", "assignedTo", "createdBy", "createdTime"}
)


@dataclass(frozen=True)
class Issue:
    """A tracked unit of work as returned by the store."""

    id: str
    title: str
    description: str
    priority: Priority
    status: Status
    created_by: str
    created_time: datetime
    assigned_to: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def assignee_label(self) -> str:
        return self.assigned_to or "Unassigned"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "assignedTo": self.assigned_to,
            "createdBy": self.created_by,
            "createdTime": self.created_time.isoformat(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Issue:
        created = raw.get("createdTime")
        if isinstance(created, datetime):
            created_time = created
        elif isinstance(created, str) and created:
            created_time = parse_timestamp(created)
        else:
            created_time = datetime.fromtimestamp(0, tz=timezone.utc)
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            priority=Priority.parse(raw.get("priority") or Priority.MEDIUM.value),
            status=Status.parse(raw.get("status") or Status.OPEN.value),
            assigned_to=str(raw.get("assignedTo") or ""),
            created_by=str(raw.get("createdBy") or ""),
            created_time=created_time,
            extra={k: v for k, v in raw.items() if k not in _ISSUE_KEYS and not k.startswith("_")},
        )


def parse_timestamp(value: str) -> datetime:
    """Parse RFC 3339 timestamps, including the 'Z' suffix and nanoseconds."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat handles at most microseconds
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        rest = ""
        for i, ch in enumerate(tail):
            if not ch.isdigit():
                rest = tail[i:]
                break
            digits += ch
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "CurrentUser",
    "Issue",
    "IssueDraft",
    "Priority",
    "Status",
    "parse_timestamp",
]
