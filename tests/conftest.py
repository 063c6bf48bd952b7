"""Pytest configuration for issueboard tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and forces the
local store so no test reaches the hosted services.
"""

from __future__ import annotations

import os
import sys
import time
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("ISSUEBOARD_MOCK", "1")

from issueboard import logging as board_logging  # noqa: E402
from issueboard.models import CurrentUser  # noqa: E402
from issueboard.store import LocalIssueStore  # noqa: E402


def ticking_clock(start: datetime | None = None) -> Callable[[], datetime]:
    """Clock that advances one minute per call so creation order is explicit."""
    current = [start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)]

    def _now() -> datetime:
        value = current[0]
        current[0] = value + timedelta(minutes=1)
        return value

    return _now


@pytest.fixture
def user() -> CurrentUser:
    return CurrentUser(uid="u-1", email="dev@example.com", id_token="token-123")


@pytest.fixture
def store() -> LocalIssueStore:
    return LocalIssueStore(clock=ticking_clock())


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for var in ("ISSUEBOARD_EMAIL", "ISSUEBOARD_PASSWORD", "ISSUEBOARD_QUIET"):
        monkeypatch.delenv(var, raising=False)
    # Fresh logger per test so handlers bind to the current (captured) stderr
    monkeypatch.setattr(board_logging, "_GLOBAL", None)
    yield


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        _TEST_DURATIONS.append((item.nodeid, time.perf_counter() - start))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
