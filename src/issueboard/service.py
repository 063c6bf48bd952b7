"""Issue operations with the actor passed explicitly.

``IssueService`` is the only place that talks to an :class:`IssueStore`.
It injects ``createdBy`` on creation, runs the status guard before any
status write and runs the duplicate heuristic against a fresh listing.
Store failures propagate as :class:`~issueboard.errors.StoreError`; turning
them into user-facing text is the caller's job.
"""

from __future__ import annotations

from .errors import AuthError, TransitionRejected
from .logging import StructuredLogger, get_logger
from .models import CurrentUser, Issue, IssueDraft, Priority, Status
from .similarity import DEFAULT_LIMIT, find_similar_issues, should_check
from .store import IssueStore
from .transitions import attempt_transition


class IssueService:
    def __init__(
        self,
        store: IssueStore,
        *,
        similar_limit: int = DEFAULT_LIMIT,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.store = store
        self.similar_limit = similar_limit
        self.logger = logger or get_logger()

    def create_issue(self, draft: IssueDraft, user: CurrentUser | None) -> str:
        if user is None:
            raise AuthError("You must be logged in to create an issue")
        draft.validate()
        with self.logger.timed_operation("create_issue"):
            issue_id = self.store.create_issue(draft, user.identity, user=user)
        self.logger.log_issue_action("create", issue_id, status=draft.status.value, user=user.identity)
        return issue_id

    def list_issues(
        self,
        user: CurrentUser | None,
        status: Status | None = None,
        priority: Priority | None = None,
    ) -> list[Issue]:
        with self.logger.timed_operation(
            "list_issues",
            status_filter=status.value if status else None,
            priority_filter=priority.value if priority else None,
        ):
            return self.store.list_issues(status, priority, user=user)

    def change_status(
        self,
        issue_id: str,
        current: Status,
        requested: Status,
        user: CurrentUser | None,
    ) -> None:
        """Persist ``requested`` as the new status if the guard allows it.

        Raises TransitionRejected without touching the store otherwise.
        """
        result = attempt_transition(current, requested)
        if not result.allowed:
            self.logger.debug(
                "status transition rejected",
                issue_id=issue_id,
                current=current.value,
                requested=requested.value,
            )
            raise TransitionRejected(
                result.reason or "Transition not allowed", current=current, requested=requested
            )
        self.store.set_status(issue_id, requested, user=user)
        self.logger.log_issue_action(
            "status", issue_id, status=requested.value, user=user.identity if user else None
        )

    def check_similar(self, title: str, description: str, user: CurrentUser | None) -> list[Issue]:
        """Advisory duplicate lookup; any failure reads as 'nothing similar'."""
        if not should_check(title, description):
            return []
        try:
            existing = self.store.list_issues(user=user)
        except Exception as exc:  # noqa: BLE001 - heuristic fails open
            self.logger.debug("similar issue lookup failed", error=str(exc))
            return []
        return find_similar_issues(title, description, existing, limit=self.similar_limit)


__all__ = ["IssueService"]
