from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import ticking_clock
from issueboard.errors import StoreError
from issueboard.models import IssueDraft, Priority, Status
from issueboard.store import AUTO_ID_LENGTH, LocalIssueStore


def _draft(title: str, status: Status = Status.OPEN, priority: Priority = Priority.MEDIUM) -> IssueDraft:
    return IssueDraft(title=title, description=f"{title} details", status=status, priority=priority)


def test_create_assigns_id_creator_and_time(store):
    issue_id = store.create_issue(_draft("First"), "dev@example.com")

    assert len(issue_id) == AUTO_ID_LENGTH
    (issue,) = store.list_issues()
    assert issue.id == issue_id
    assert issue.created_by == "dev@example.com"
    assert issue.created_time.tzinfo is not None


def test_list_filters_by_status_newest_first(store):
    first = store.create_issue(_draft("one", Status.OPEN), "a")
    store.create_issue(_draft("two", Status.DONE), "a")
    third = store.create_issue(_draft("three", Status.OPEN), "a")

    result = store.list_issues(status=Status.OPEN)

    assert [i.id for i in result] == [third, first]


def test_list_combines_filters(store):
    store.create_issue(_draft("a", Status.OPEN, Priority.HIGH), "x")
    wanted = store.create_issue(_draft("b", Status.IN_PROGRESS, Priority.HIGH), "x")
    store.create_issue(_draft("c", Status.IN_PROGRESS, Priority.LOW), "x")

    result = store.list_issues(status=Status.IN_PROGRESS, priority=Priority.HIGH)

    assert [i.id for i in result] == [wanted]


def test_set_status_only_touches_status(store):
    issue_id = store.create_issue(_draft("one"), "a")
    before = store.list_issues()[0]

    store.set_status(issue_id, Status.IN_PROGRESS)

    after = store.list_issues()[0]
    assert after.status is Status.IN_PROGRESS
    assert (after.id, after.title, after.created_by, after.created_time) == (
        before.id,
        before.title,
        before.created_by,
        before.created_time,
    )


def test_set_status_unknown_id(store):
    with pytest.raises(StoreError) as excinfo:
        store.set_status("missing", Status.DONE)
    assert excinfo.value.status == 404


def test_file_backed_store_persists(tmp_path):
    path = tmp_path / "issues.json"
    first = LocalIssueStore(path, clock=ticking_clock())
    issue_id = first.create_issue(_draft("persisted"), "a")
    first.set_status(issue_id, Status.IN_PROGRESS)

    reopened = LocalIssueStore(path)

    (issue,) = reopened.list_issues()
    assert issue.id == issue_id
    assert issue.status is Status.IN_PROGRESS
    assert json.loads(path.read_text())["issues"][0]["title"] == "persisted"


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "issues.json"
    path.write_text("{not json")
    with pytest.raises(StoreError, match="not valid JSON"):
        LocalIssueStore(path)


def test_unknown_enum_value_surfaces_as_store_error(tmp_path):
    path = tmp_path / "issues.json"
    path.write_text(
        json.dumps(
            {
                "issues": [
                    {
                        "id": "x1",
                        "title": "Written elsewhere",
                        "description": "by another client",
                        "priority": "Medium",
                        "status": "Closed",
                        "createdBy": "other@example.com",
                        "createdTime": "2024-01-01T09:00:00+00:00",
                    }
                ]
            }
        )
    )
    store = LocalIssueStore(path)

    with pytest.raises(StoreError, match="Malformed issue document"):
        store.list_issues()


def test_concurrent_writes_keep_file_consistent(tmp_path):
    path = tmp_path / "issues.json"
    store = LocalIssueStore(path)
    seeded = store.create_issue(_draft("seed"), "a")

    def work(n: int) -> None:
        if n % 2:
            store.set_status(seeded, Status.IN_PROGRESS)
        else:
            store.create_issue(_draft(f"issue {n}"), "a")

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(40)))

    on_disk = json.loads(path.read_text())["issues"]
    assert len(on_disk) == 21
    assert len(LocalIssueStore(path).list_issues()) == 21
    assert list(tmp_path.glob("*.tmp")) == []
