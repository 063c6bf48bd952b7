from __future__ import annotations

from datetime import datetime, timezone

import pytest

from issueboard.errors import ValidationError
from issueboard.models import CurrentUser, Issue, IssueDraft, Priority, Status, parse_timestamp


@pytest.mark.parametrize(
    "raw", ["In Progress", "IN_PROGRESS", "in-progress", "inprogress", Status.IN_PROGRESS]
)
def test_status_parse_accepts_loose_spellings(raw):
    assert Status.parse(raw) is Status.IN_PROGRESS


def test_priority_parse_rejects_unknown():
    assert Priority.parse("high") is Priority.HIGH
    with pytest.raises(ValueError):
        Priority.parse("urgent")


def test_draft_defaults_and_validation():
    draft = IssueDraft()
    assert draft.priority is Priority.MEDIUM
    assert draft.status is Status.OPEN
    with pytest.raises(ValidationError):
        draft.validate()
    draft.title = "Title"
    draft.description = "   "
    with pytest.raises(ValidationError, match="Description"):
        draft.validate()


def test_draft_fields_use_wire_values():
    draft = IssueDraft(title="T", description="D", status=Status.IN_PROGRESS, assigned_to="amy")
    assert draft.to_fields() == {
        "title": "T",
        "description": "D",
        "priority": "Medium",
        "status": "In Progress",
        "assignedTo": "amy",
    }


def test_issue_dict_round_trip_keeps_camel_case():
    raw = {
        "id": "abc",
        "title": "T",
        "description": "D",
        "priority": "High",
        "status": "Done",
        "assignedTo": "",
        "createdBy": "dev@example.com",
        "createdTime": "2024-05-01T10:00:00+00:00",
    }
    issue = Issue.from_dict(raw)
    assert issue.assignee_label == "Unassigned"
    assert issue.to_dict() == raw


def test_parse_timestamp_handles_zulu_and_nanoseconds():
    parsed = parse_timestamp("2024-05-01T10:00:00.123456789Z")
    assert parsed == datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)


def test_current_user_identity_falls_back_to_uid():
    assert CurrentUser(uid="u1", email="", id_token="t").identity == "u1"
    user = CurrentUser(uid="u1", email="a@b.c", id_token="t")
    assert CurrentUser.from_dict(user.to_dict()) == user
