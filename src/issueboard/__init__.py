"""issueboard - a small issue tracker on top of a hosted document store.

High-level public API:

from issueboard import IssueService, LocalIssueStore, IssueDraft, Status

service = IssueService(LocalIssueStore())
issue_id = service.create_issue(IssueDraft(title="Login broken", description="..."), user)
service.change_status(issue_id, Status.OPEN, Status.IN_PROGRESS, user)

The CLI (``issueboard``) delegates to this library.
"""

from __future__ import annotations

from .board import CreateIssueForm, IssueBoard, IssueListView
from .config import BoardConfig, load_config
from .errors import AuthError, IssueBoardError, StoreError, TransitionRejected, ValidationError
from .models import CurrentUser, Issue, IssueDraft, Priority, Status
from .service import IssueService
from .similarity import find_similar_issues
from .store import IssueStore, LocalIssueStore
from .transitions import TransitionResult, attempt_transition

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "BoardConfig",
    "CreateIssueForm",
    "CurrentUser",
    "Issue",
    "IssueBoard",
    "IssueBoardError",
    "IssueDraft",
    "IssueListView",
    "IssueService",
    "IssueStore",
    "LocalIssueStore",
    "Priority",
    "Status",
    "StoreError",
    "TransitionRejected",
    "TransitionResult",
    "ValidationError",
    "attempt_transition",
    "find_similar_issues",
    "load_config",
    "__version__",
]
