"""Headless board state: the new-issue form and the issue list.

These controllers own what a front end would display (current draft,
duplicate warnings, blocking errors, per-issue status errors) and decide
when to talk to :class:`~issueboard.service.IssueService`. They run on an
asyncio loop; blocking store calls go to the loop's default executor.

Error policy:
- create / list failures set a blocking ``error`` message;
- status update failures set ``status_error`` scoped to ``error_issue_id``
  and clear themselves after ``status_error_clear_seconds``;
- duplicate-check failures are invisible (the service fails open).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, TypeVar

from .debounce import Debouncer
from .errors import IssueBoardError, ValidationError, display_message
from .logging import get_logger
from .models import CurrentUser, Issue, IssueDraft, Priority, Status
from .service import IssueService
from .similarity import should_check

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_STATUS_ERROR_CLEAR_SECONDS = 5.0


async def _in_executor(func: Callable[..., T], *args: Any) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args))


def _requested_status(value: Status | str) -> Status:
    try:
        return Status.parse(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class CreateIssueForm:
    """State for the 'create issue' form with debounced duplicate warnings."""

    def __init__(
        self,
        service: IssueService,
        user: CurrentUser | None,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_created: Callable[[str], Awaitable[None] | None] | None = None,
    ) -> None:
        self.service = service
        self.user = user
        self.on_created = on_created
        self.draft = IssueDraft()
        self.similar_issues: list[Issue] = []
        self.loading = False
        self.error = ""
        self._generation = 0
        self._debouncer = Debouncer(debounce_seconds, self._check_similar)
        self.logger = get_logger()

    @property
    def show_similar_warning(self) -> bool:
        return bool(self.similar_issues)

    # ---- field edits --------------------------------------------------
    def set_title(self, title: str) -> None:
        self.draft.title = title
        self._debouncer.schedule(self.draft.title, self.draft.description)

    def set_description(self, description: str) -> None:
        self.draft.description = description
        self._debouncer.schedule(self.draft.title, self.draft.description)

    def set_priority(self, priority: Priority | str) -> None:
        self.draft.priority = Priority.parse(priority)

    def set_status(self, status: Status | str) -> None:
        self.draft.status = Status.parse(status)

    def set_assigned_to(self, assigned_to: str) -> None:
        self.draft.assigned_to = assigned_to

    # ---- duplicate detection -----------------------------------------
    async def _check_similar(self, title: str, description: str) -> None:
        self._generation += 1
        generation = self._generation
        if not should_check(title, description):
            self.similar_issues = []
            return
        similar = await _in_executor(self.service.check_similar, title, description, self.user)
        if generation != self._generation:
            # A newer check started while this one was in flight
            return
        self.similar_issues = similar

    async def settle(self) -> None:
        """Wait until every fired duplicate check has finished."""
        await self._debouncer.drain()

    # ---- submission ---------------------------------------------------
    async def submit(self) -> str | None:
        self.error = ""
        self.loading = True
        try:
            issue_id = await _in_executor(self.service.create_issue, self.draft, self.user)
        except IssueBoardError as exc:
            self.error = display_message(exc, "Failed to create issue")
            self.logger.log_error("create issue failed", error=self.error)
            return None
        finally:
            self.loading = False
        self._debouncer.cancel()
        self._generation += 1
        self.draft = IssueDraft()
        self.similar_issues = []
        if self.on_created is not None:
            result = self.on_created(issue_id)
            if result is not None:
                await result
        return issue_id


class IssueListView:
    """Filtered issue listing with guarded status changes."""

    def __init__(
        self,
        service: IssueService,
        user: CurrentUser | None,
        *,
        status_error_clear_seconds: float = DEFAULT_STATUS_ERROR_CLEAR_SECONDS,
    ) -> None:
        self.service = service
        self.user = user
        self.status_error_clear_seconds = status_error_clear_seconds
        self.issues: list[Issue] = []
        self.status_filter: Status | None = None
        self.priority_filter: Priority | None = None
        self.loading = False
        self.error = ""
        self.status_error = ""
        self.error_issue_id: str | None = None
        self._clear_handle: asyncio.TimerHandle | None = None
        self.logger = get_logger()

    async def load(self) -> None:
        self.loading = True
        self.error = ""
        try:
            self.issues = await _in_executor(
                self.service.list_issues, self.user, self.status_filter, self.priority_filter
            )
        except IssueBoardError as exc:
            self.error = display_message(exc, "Failed to load issues")
            self.logger.log_error("load issues failed", error=self.error)
        finally:
            self.loading = False

    async def set_status_filter(self, status: Status | str | None) -> None:
        self.status_filter = Status.parse(status) if status else None
        await self.load()

    async def set_priority_filter(self, priority: Priority | str | None) -> None:
        self.priority_filter = Priority.parse(priority) if priority else None
        await self.load()

    def get(self, issue_id: str) -> Issue | None:
        return next((issue for issue in self.issues if issue.id == issue_id), None)

    def _cancel_clear_timer(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None

    def _clear_status_error(self) -> None:
        self._clear_handle = None
        self.status_error = ""
        self.error_issue_id = None

    def _show_status_error(self, issue_id: str, message: str) -> None:
        # Only the latest error owns the clear timer
        self._cancel_clear_timer()
        self.status_error = message
        self.error_issue_id = issue_id
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(
            self.status_error_clear_seconds, self._clear_status_error
        )

    async def change_status(self, issue_id: str, requested: Status | str) -> bool:
        """Move one displayed issue to ``requested``; reloads the list on success."""
        self._cancel_clear_timer()
        self._clear_status_error()
        issue = self.get(issue_id)
        if issue is None:
            self._show_status_error(issue_id, f"Issue {issue_id} is not in the current list")
            return False
        try:
            target = _requested_status(requested)
            await _in_executor(
                self.service.change_status, issue_id, issue.status, target, self.user
            )
        except IssueBoardError as exc:
            self._show_status_error(issue_id, display_message(exc, "Failed to update status"))
            return False
        await self.load()
        return True


class IssueBoard:
    """Form and list wired together: creating an issue reloads the list."""

    def __init__(
        self,
        service: IssueService,
        user: CurrentUser | None,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        status_error_clear_seconds: float = DEFAULT_STATUS_ERROR_CLEAR_SECONDS,
    ) -> None:
        self.issues = IssueListView(
            service, user, status_error_clear_seconds=status_error_clear_seconds
        )
        self.form = CreateIssueForm(
            service, user, debounce_seconds=debounce_seconds, on_created=self._on_created
        )

    async def _on_created(self, issue_id: str) -> None:
        await self.issues.load()


__all__ = ["CreateIssueForm", "IssueBoard", "IssueListView"]
