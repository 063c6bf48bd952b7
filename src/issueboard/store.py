"""Issue store boundary.

``IssueStore`` is the narrow capability interface the rest of the package
talks to. Two implementations exist:

- :class:`issueboard.firestore_rest.FirestoreIssueStore` for the hosted
  document database.
- :class:`LocalIssueStore` below, an in-memory store that can optionally
  persist to a JSON file. It backs mock mode (``ISSUEBOARD_MOCK=1``) and the
  test-suite, and honours the same contract: ids and creation times are
  assigned by the store, listings are newest first, filters are equality
  filters that may be combined.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import string
import tempfile
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from .errors import StoreError
from .models import CurrentUser, Issue, IssueDraft, Priority, Status

logger = logging.getLogger(__name__)

AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20


def generate_auto_id() -> str:
    """Random 20 character document id, same shape the hosted SDKs use."""
    return "".join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


class IssueStore(Protocol):
    def create_issue(self, draft: IssueDraft, created_by: str, *, user: CurrentUser | None = None) -> str:
        """Persist a new issue and return its id."""
        ...

    def list_issues(
        self,
        status: Status | None = None,
        priority: Priority | None = None,
        *,
        user: CurrentUser | None = None,
    ) -> list[Issue]:
        """Return issues newest first, optionally filtered by equality."""
        ...

    def set_status(self, issue_id: str, status: Status, *, user: CurrentUser | None = None) -> None:
        """Overwrite the status field of one issue."""
        ...


class LocalIssueStore:
    """In-process issue store, optionally mirrored to a JSON file."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.path = path
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        if path is not None:
            self._records = _load_records(path)

    def _persist(self) -> None:
        if self.path is None:
            return
        payload = json.dumps({"issues": self._records}, indent=2) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            raise StoreError(f"Could not write local issue file {self.path}: {exc}") from exc

    def create_issue(self, draft: IssueDraft, created_by: str, *, user: CurrentUser | None = None) -> str:
        issue_id = generate_auto_id()
        record: dict[str, Any] = {
            "id": issue_id,
            **draft.to_fields(),
            "createdBy": created_by,
            "createdTime": self._clock().isoformat(),
        }
        with self._lock:
            record["_seq"] = len(self._records)
            self._records.append(record)
            self._persist()
        return issue_id

    def list_issues(
        self,
        status: Status | None = None,
        priority: Priority | None = None,
        *,
        user: CurrentUser | None = None,
    ) -> list[Issue]:
        with self._lock:
            records = [dict(r) for r in self._records]
        matches = [
            r
            for r in records
            if (status is None or r.get("status") == status.value)
            and (priority is None or r.get("priority") == priority.value)
        ]
        matches.sort(key=lambda r: (r.get("createdTime") or "", r.get("_seq", 0)), reverse=True)
        try:
            return [Issue.from_dict(r) for r in matches]
        except (KeyError, ValueError) as exc:
            raise StoreError(f"Malformed issue document in local store: {exc}") from exc

    def set_status(self, issue_id: str, status: Status, *, user: CurrentUser | None = None) -> None:
        with self._lock:
            for record in self._records:
                if record.get("id") == issue_id:
                    record["status"] = status.value
                    self._persist()
                    return
        raise StoreError(f"No issue with id {issue_id}", status=404)


def _load_records(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise StoreError(f"Local issue file {path} is not valid JSON: {exc}") from exc
    issues = raw.get("issues") if isinstance(raw, dict) else None
    if not isinstance(issues, list):
        logger.warning("Local issue file %s has no 'issues' list; starting empty", path)
        return []
    return [dict(entry) for entry in issues if isinstance(entry, dict) and "id" in entry]


__all__ = ["IssueStore", "LocalIssueStore", "generate_auto_id"]
